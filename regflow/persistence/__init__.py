"""Persistence layer for registration drafts."""

from __future__ import annotations

import os
from typing import Optional

from ..config import RegflowConfig, load_config
from ..portal import PortalClient
from .inmemory import InMemoryDraftStore
from .models import DraftRecord, StepDraft
from .remote import RemoteDraftStore
from .repository import DraftStore
from .sqlite import SQLiteDraftStore

try:  # pragma: no cover - optional dependency
    from .postgres import PostgresDraftStore
except Exception:  # pragma: no cover - optional dependency
    PostgresDraftStore = None  # type: ignore

_store_instance: DraftStore | None = None


def get_draft_store(
    database_url: Optional[str] = None, config: Optional[RegflowConfig] = None
) -> DraftStore:
    """Factory function to obtain a draft store.

    The backend is chosen from ``config.draft_store.backend`` when set,
    otherwise from ``database_url`` which can be provided explicitly, via
    environment variable ``REGFLOW_DATABASE_URL`` or ``DATABASE_URL``, or from
    loaded configuration. When nothing is configured, an in-memory store is
    returned.
    """

    global _store_instance
    if _store_instance is not None and database_url is None and config is None:
        return _store_instance

    config = config or load_config()
    backend = config.draft_store.backend
    database_url = (
        database_url
        or os.getenv("REGFLOW_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or config.draft_store.database_url
    )

    if backend == "http" or (
        backend is None
        and database_url
        and database_url.startswith(("http://", "https://"))
    ):
        service = config.service
        if backend is None:
            service = service.model_copy(update={"base_url": database_url})
        _store_instance = RemoteDraftStore(PortalClient.from_config(service))
        return _store_instance

    if backend == "inmemory" or (backend is None and not database_url):
        _store_instance = InMemoryDraftStore()
        return _store_instance

    if not database_url:
        raise ValueError(f"Draft store backend {backend!r} requires a database_url")

    if database_url.startswith("sqlite://"):
        path = database_url.replace("sqlite://", "", 1)
        _store_instance = SQLiteDraftStore(path)
    elif database_url.startswith("postgres://") or database_url.startswith(
        "postgresql://"
    ):
        if PostgresDraftStore is None:
            raise RuntimeError("Postgres support not available")
        _store_instance = PostgresDraftStore(database_url)
    else:
        raise ValueError(f"Unsupported database backend: {database_url}")

    return _store_instance


__all__ = [
    "DraftRecord",
    "DraftStore",
    "StepDraft",
    "InMemoryDraftStore",
    "PostgresDraftStore",
    "RemoteDraftStore",
    "SQLiteDraftStore",
    "get_draft_store",
]
