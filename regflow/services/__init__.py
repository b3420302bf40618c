"""Submission service factory and backends."""

from __future__ import annotations

from typing import Optional

from ..config import RegflowConfig, load_config
from ..portal import PortalClient
from .base import SubmissionService
from .inmemory import InMemorySubmissionService, new_reference_id
from .remote import RemoteSubmissionService


def get_submission_service(config: Optional[RegflowConfig] = None) -> SubmissionService:
    """Factory function to get the configured submission service."""

    config = config or load_config()
    backend = config.submission.backend

    if backend == "inmemory":
        return InMemorySubmissionService()
    elif backend == "http":
        return RemoteSubmissionService(PortalClient.from_config(config.service))
    else:
        raise ValueError(f"Unsupported submission backend: {backend}")


__all__ = [
    "InMemorySubmissionService",
    "RemoteSubmissionService",
    "SubmissionService",
    "get_submission_service",
    "new_reference_id",
]
