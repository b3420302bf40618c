"""Data models for persisted registration drafts."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class StepDraft(BaseModel):
    """Latest saved sub-document of one step."""

    step_key: str
    data: dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=utcnow)


class DraftRecord(BaseModel):
    """Durable projection of a registration in progress."""

    owner_id: str
    document: dict[str, dict[str, Any]] = Field(default_factory=dict)
    completed_steps: list[int] = Field(default_factory=list)
    current_step: Optional[int] = None
    updated_at: Optional[datetime] = None
    steps: list[StepDraft] = Field(default_factory=list)
