"""PostgreSQL implementation of the draft store."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Iterable

import asyncpg

from ..errors import DraftStoreError
from .models import DraftRecord, StepDraft, as_utc, utcnow
from .repository import DraftStore


def _json(value: Any) -> Any:
    return json.loads(value) if isinstance(value, str) else value


class PostgresDraftStore(DraftStore):
    """Persist registration drafts using PostgreSQL."""

    def __init__(self, dsn: str):
        self._dsn = dsn
        self._initialized = False

    async def _connect(self) -> asyncpg.Connection:
        conn = await asyncpg.connect(self._dsn)
        if not self._initialized:
            await self._ensure_schema(conn)
            self._initialized = True
        return conn

    async def _ensure_schema(self, conn: asyncpg.Connection) -> None:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS drafts (
                owner_id TEXT PRIMARY KEY,
                completed_steps INTEGER[] NOT NULL,
                current_step INTEGER,
                updated_at TIMESTAMPTZ NOT NULL
            )
            """
        )
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS draft_steps (
                owner_id TEXT NOT NULL,
                step_key TEXT NOT NULL,
                data JSONB NOT NULL,
                updated_at TIMESTAMPTZ NOT NULL,
                PRIMARY KEY (owner_id, step_key)
            )
            """
        )

    async def _build_record(self, conn: asyncpg.Connection, row: Any) -> DraftRecord:
        step_rows = await conn.fetch(
            "SELECT step_key, data, updated_at FROM draft_steps WHERE owner_id = $1 ORDER BY step_key",
            row["owner_id"],
        )
        steps = [
            StepDraft(step_key=r["step_key"], data=_json(r["data"]), updated_at=r["updated_at"])
            for r in step_rows
        ]
        return DraftRecord(
            owner_id=row["owner_id"],
            document={s.step_key: dict(s.data) for s in steps},
            completed_steps=list(row["completed_steps"]),
            current_step=row["current_step"],
            updated_at=row["updated_at"],
            steps=steps,
        )

    # ------------------------------------------------------------------
    async def load_draft(self, owner_id: str) -> DraftRecord | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                "SELECT owner_id, completed_steps, current_step, updated_at FROM drafts WHERE owner_id = $1",
                owner_id,
            )
            if not row:
                return None
            return await self._build_record(conn, row)
        finally:
            await conn.close()

    async def save_step(
        self,
        owner_id: str,
        step_key: str,
        data: dict[str, Any],
        completed_steps: Iterable[int],
        current_step: int | None = None,
        updated_at: datetime | None = None,
    ) -> None:
        stamp = as_utc(updated_at or utcnow())
        conn = await self._connect()
        try:
            async with conn.transaction():
                await conn.execute(
                    """
                    INSERT INTO draft_steps (owner_id, step_key, data, updated_at)
                    VALUES ($1, $2, $3::jsonb, $4)
                    ON CONFLICT (owner_id, step_key) DO UPDATE
                    SET data = EXCLUDED.data, updated_at = EXCLUDED.updated_at
                    WHERE EXCLUDED.updated_at >= draft_steps.updated_at
                    """,
                    owner_id,
                    step_key,
                    json.dumps(data),
                    stamp,
                )
                await conn.execute(
                    """
                    INSERT INTO drafts (owner_id, completed_steps, current_step, updated_at)
                    VALUES ($1, $2, $3, $4)
                    ON CONFLICT (owner_id) DO UPDATE
                    SET completed_steps = EXCLUDED.completed_steps,
                        current_step = COALESCE(EXCLUDED.current_step, drafts.current_step),
                        updated_at = EXCLUDED.updated_at
                    WHERE EXCLUDED.updated_at >= drafts.updated_at
                    """,
                    owner_id,
                    sorted(set(completed_steps)),
                    current_step,
                    stamp,
                )
        except asyncpg.PostgresError as e:
            raise DraftStoreError(f"PostgreSQL draft write failed: {e}") from e
        finally:
            await conn.close()

    async def list_drafts(self) -> list[DraftRecord]:
        conn = await self._connect()
        try:
            rows = await conn.fetch(
                "SELECT owner_id, completed_steps, current_step, updated_at FROM drafts ORDER BY updated_at DESC"
            )
            return [await self._build_record(conn, r) for r in rows]
        finally:
            await conn.close()

    async def delete_draft(self, owner_id: str) -> None:
        conn = await self._connect()
        try:
            async with conn.transaction():
                await conn.execute("DELETE FROM draft_steps WHERE owner_id = $1", owner_id)
                await conn.execute("DELETE FROM drafts WHERE owner_id = $1", owner_id)
        finally:
            await conn.close()
