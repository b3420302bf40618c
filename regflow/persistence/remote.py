"""Draft store backed by the remote portal functions."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

import httpx

from ..errors import DraftStoreError
from ..portal import PortalClient, from_wire_name, to_wire_name
from .models import DraftRecord, as_utc, utcnow
from .repository import DraftStore


class RemoteDraftStore(DraftStore):
    """Load and save drafts through ``load-registration-data`` and
    ``save-registration-draft``."""

    LOAD_FUNCTION = "load-registration-data"
    SAVE_FUNCTION = "save-registration-draft"

    def __init__(self, client: PortalClient) -> None:
        self._client = client

    async def load_draft(self, owner_id: str) -> DraftRecord | None:
        try:
            status, body = await self._client.call(self.LOAD_FUNCTION, {"userId": owner_id})
        except httpx.HTTPError as e:
            raise DraftStoreError(f"Draft load request failed: {e}") from e
        if status == 404:
            return None
        if status >= 400:
            raise DraftStoreError(
                f"Draft load failed with status {status}: {body.get('error')}"
            )
        if not body.get("success"):
            return None
        raw_document = body.get("registrationData") or {}
        return DraftRecord(
            owner_id=owner_id,
            document={
                from_wire_name(name): dict(section or {})
                for name, section in raw_document.items()
            },
            completed_steps=list(body.get("completedSteps") or []),
            current_step=body.get("currentStep"),
            updated_at=body.get("updatedAt"),
        )

    async def save_step(
        self,
        owner_id: str,
        step_key: str,
        data: dict[str, Any],
        completed_steps: Iterable[int],
        current_step: int | None = None,
        updated_at: datetime | None = None,
    ) -> None:
        payload = {
            "userId": owner_id,
            "stepName": to_wire_name(step_key),
            "stepData": data,
            "completedSteps": sorted(set(completed_steps)),
            "currentStep": current_step,
            "updatedAt": as_utc(updated_at or utcnow()).isoformat(),
        }
        try:
            status, body = await self._client.call(self.SAVE_FUNCTION, payload)
        except httpx.HTTPError as e:
            raise DraftStoreError(f"Draft save request failed: {e}") from e
        if status >= 400 or not body.get("success"):
            raise DraftStoreError(
                f"Draft save for {step_key} failed with status {status}: {body.get('error')}"
            )

    async def list_drafts(self) -> list[DraftRecord]:
        raise DraftStoreError("The remote portal does not support listing drafts")

    async def delete_draft(self, owner_id: str) -> None:
        raise DraftStoreError("The remote portal does not support deleting drafts")
