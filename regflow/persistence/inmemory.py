"""In-memory implementation of the draft store."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable

from .models import DraftRecord, StepDraft, as_utc, utcnow
from .repository import DraftStore


class InMemoryDraftStore(DraftStore):
    """Store drafts in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._drafts: Dict[str, DraftRecord] = {}
        self.save_calls: list[dict[str, Any]] = []

    # ------------------------------------------------------------------
    async def load_draft(self, owner_id: str) -> DraftRecord | None:
        draft = self._drafts.get(owner_id)
        return draft.model_copy(deep=True) if draft else None

    async def save_step(
        self,
        owner_id: str,
        step_key: str,
        data: dict[str, Any],
        completed_steps: Iterable[int],
        current_step: int | None = None,
        updated_at: datetime | None = None,
    ) -> None:
        stamp = as_utc(updated_at) if updated_at else utcnow()
        completed = sorted(set(completed_steps))
        self.save_calls.append(
            {
                "owner_id": owner_id,
                "step_key": step_key,
                "data": dict(data),
                "completed_steps": completed,
                "current_step": current_step,
                "updated_at": stamp,
            }
        )
        draft = self._drafts.setdefault(owner_id, DraftRecord(owner_id=owner_id))

        existing = next((s for s in draft.steps if s.step_key == step_key), None)
        if existing is None:
            draft.steps.append(StepDraft(step_key=step_key, data=dict(data), updated_at=stamp))
            draft.document[step_key] = dict(data)
        elif stamp >= existing.updated_at:
            existing.data = dict(data)
            existing.updated_at = stamp
            draft.document[step_key] = dict(data)

        if draft.updated_at is None or stamp >= draft.updated_at:
            draft.completed_steps = completed
            if current_step is not None:
                draft.current_step = current_step
            draft.updated_at = stamp

    async def list_drafts(self) -> list[DraftRecord]:
        return [d.model_copy(deep=True) for d in self._drafts.values()]

    async def delete_draft(self, owner_id: str) -> None:
        self._drafts.pop(owner_id, None)
