"""SQLite implementation of the draft store."""

from __future__ import annotations

import asyncio
import json
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from ..errors import DraftStoreError
from .models import DraftRecord, StepDraft, as_utc, utcnow
from .repository import DraftStore


def _stamp(value: datetime | None) -> str:
    return as_utc(value or utcnow()).isoformat(timespec="microseconds")


class SQLiteDraftStore(DraftStore):
    """Persist registration drafts using SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS drafts (
                owner_id TEXT PRIMARY KEY,
                completed_steps TEXT NOT NULL,
                current_step INTEGER,
                updated_at TEXT NOT NULL
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS draft_steps (
                owner_id TEXT NOT NULL,
                step_key TEXT NOT NULL,
                data TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (owner_id, step_key)
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute_many(self, statements: list[tuple[str, tuple[Any, ...]]]) -> None:
        with self._lock:
            cur = self._conn.cursor()
            try:
                for query, params in statements:
                    cur.execute(query, params)
                self._conn.commit()
            except sqlite3.Error as e:
                self._conn.rollback()
                raise DraftStoreError(f"SQLite draft write failed: {e}") from e

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        with self._lock:
            cur = self._conn.cursor()
            cur.execute(query, params)
            return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        with self._lock:
            cur = self._conn.cursor()
            cur.execute(query, params)
            return cur.fetchall()

    def _build_record(self, row: sqlite3.Row) -> DraftRecord:
        step_rows = self._fetchall(
            "SELECT step_key, data, updated_at FROM draft_steps WHERE owner_id = ? ORDER BY step_key",
            row["owner_id"],
        )
        steps = [
            StepDraft(
                step_key=r["step_key"],
                data=json.loads(r["data"]),
                updated_at=datetime.fromisoformat(r["updated_at"]),
            )
            for r in step_rows
        ]
        return DraftRecord(
            owner_id=row["owner_id"],
            document={s.step_key: dict(s.data) for s in steps},
            completed_steps=json.loads(row["completed_steps"]),
            current_step=row["current_step"],
            updated_at=datetime.fromisoformat(row["updated_at"]),
            steps=steps,
        )

    # ------------------------------------------------------------------
    # Repository API
    async def load_draft(self, owner_id: str) -> DraftRecord | None:
        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT owner_id, completed_steps, current_step, updated_at FROM drafts WHERE owner_id = ?",
            owner_id,
        )
        if not row:
            return None
        return await asyncio.to_thread(self._build_record, row)

    async def save_step(
        self,
        owner_id: str,
        step_key: str,
        data: dict[str, Any],
        completed_steps: Iterable[int],
        current_step: int | None = None,
        updated_at: datetime | None = None,
    ) -> None:
        stamp = _stamp(updated_at)
        completed = json.dumps(sorted(set(completed_steps)))
        await asyncio.to_thread(
            self._execute_many,
            [
                (
                    """
                    INSERT INTO draft_steps (owner_id, step_key, data, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT (owner_id, step_key) DO UPDATE
                    SET data = excluded.data, updated_at = excluded.updated_at
                    WHERE excluded.updated_at >= draft_steps.updated_at
                    """,
                    (owner_id, step_key, json.dumps(data), stamp),
                ),
                (
                    """
                    INSERT INTO drafts (owner_id, completed_steps, current_step, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT (owner_id) DO UPDATE
                    SET completed_steps = excluded.completed_steps,
                        current_step = COALESCE(excluded.current_step, drafts.current_step),
                        updated_at = excluded.updated_at
                    WHERE excluded.updated_at >= drafts.updated_at
                    """,
                    (owner_id, completed, current_step, stamp),
                ),
            ],
        )

    async def list_drafts(self) -> list[DraftRecord]:
        rows = await asyncio.to_thread(
            self._fetchall,
            "SELECT owner_id, completed_steps, current_step, updated_at FROM drafts ORDER BY updated_at DESC",
        )
        return [await asyncio.to_thread(self._build_record, row) for row in rows]

    async def delete_draft(self, owner_id: str) -> None:
        await asyncio.to_thread(
            self._execute_many,
            [
                ("DELETE FROM draft_steps WHERE owner_id = ?", (owner_id,)),
                ("DELETE FROM drafts WHERE owner_id = ?", (owner_id,)),
            ],
        )
