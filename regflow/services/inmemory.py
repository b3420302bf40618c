"""In-memory submission service for testing."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict

from ..contracts import SubmissionResult
from .base import SubmissionService

logger = logging.getLogger(__name__)


def new_reference_id() -> str:
    """Short, human-readable reference such as ``9F2C41AB``."""
    return uuid.uuid4().hex[-8:].upper()


class InMemorySubmissionService(SubmissionService):
    """Keeps submissions in a dict keyed by owner."""

    def __init__(self) -> None:
        self.results: Dict[str, SubmissionResult] = {}
        self.documents: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.calls = 0

    async def submit(self, owner_id: str, document: Dict[str, Dict[str, Any]]) -> SubmissionResult:
        self.calls += 1
        existing = self.results.get(owner_id)
        if existing is not None:
            logger.info(f"Duplicate submission for owner={owner_id}; returning {existing.reference_id}")
            return existing
        result = SubmissionResult(reference_id=new_reference_id())
        self.results[owner_id] = result
        self.documents[owner_id] = {key: dict(section) for key, section in document.items()}
        return result
