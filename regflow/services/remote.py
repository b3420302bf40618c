"""Submission service backed by the remote portal ``submit-registration`` function."""

from __future__ import annotations

from typing import Any, Dict

import httpx

from ..contracts import SubmissionResult
from ..errors import SubmissionTransportError
from ..portal import PortalClient, to_wire_name
from .base import SubmissionService


class RemoteSubmissionService(SubmissionService):
    SUBMIT_FUNCTION = "submit-registration"

    def __init__(self, client: PortalClient) -> None:
        self._client = client

    async def submit(self, owner_id: str, document: Dict[str, Dict[str, Any]]) -> SubmissionResult:
        payload = {
            "userId": owner_id,
            "registrationData": {
                to_wire_name(key): dict(section) for key, section in document.items()
            },
        }
        try:
            status, body = await self._client.call(self.SUBMIT_FUNCTION, payload)
        except httpx.HTTPError as e:
            raise SubmissionTransportError(f"Submission request failed: {e}") from e
        if status >= 400 or not body.get("success"):
            raise SubmissionTransportError(
                f"Submission rejected with status {status}: {body.get('error') or 'unknown error'}"
            )

        reference_id = body.get("requestId")
        if not reference_id:
            member_id = str((body.get("member") or {}).get("id") or "")
            reference_id = member_id[-8:].upper()
        if not reference_id:
            raise SubmissionTransportError("Submission response did not include a reference id")
        return SubmissionResult(reference_id=reference_id)
