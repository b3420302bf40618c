"""Submission service interface."""

from __future__ import annotations

from typing import Any, Dict, Protocol

from ..contracts import SubmissionResult


class SubmissionService(Protocol):
    """Receives the final registration document.

    Implementations must be idempotent per ``owner_id``: a retried submit
    after a timeout returns the original result instead of creating a second
    registration.
    """

    async def submit(self, owner_id: str, document: Dict[str, Dict[str, Any]]) -> SubmissionResult:
        """Submit the full document and return the durable receipt."""
