"""Repository abstraction for registration draft persistence."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Protocol

from .models import DraftRecord


class DraftStore(Protocol):
    """Protocol for draft persistence backends.

    ``save_step`` is an idempotent upsert keyed by ``(owner_id, step_key)``.
    A write whose ``updated_at`` is older than the stored one is ignored, so
    replaying the same call leaves the record unchanged.
    """

    async def load_draft(self, owner_id: str) -> DraftRecord | None:
        """Return the stored draft or ``None`` when the owner has none."""

    async def save_step(
        self,
        owner_id: str,
        step_key: str,
        data: dict[str, Any],
        completed_steps: Iterable[int],
        current_step: int | None = None,
        updated_at: datetime | None = None,
    ) -> None:
        """Upsert one step's sub-document and the completion header."""

    async def list_drafts(self) -> list[DraftRecord]:
        """Return all stored drafts."""

    async def delete_draft(self, owner_id: str) -> None:
        """Remove the owner's draft if present."""
