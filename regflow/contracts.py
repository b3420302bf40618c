"""Core state contracts for the registration workflow."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Literal, Mapping, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import TOTAL_STEPS
from .registry import StepKey, all_steps, order_for

WorkflowDocument = Dict[StepKey, Dict[str, Any]]


def empty_document() -> WorkflowDocument:
    """Return a document with an empty section for every step."""
    return {step.key: {} for step in all_steps()}


def merge_section(
    document: Mapping[StepKey, Mapping[str, Any]],
    step_key: StepKey,
    partial: Mapping[str, Any],
) -> WorkflowDocument:
    """Shallow-merge ``partial`` into one step's section.

    Sections of other steps are carried over untouched.
    """
    merged: WorkflowDocument = {key: dict(section) for key, section in document.items()}
    section = merged.setdefault(step_key, {})
    section.update(partial)
    return merged


class ValidationResult(BaseModel):
    """Outcome of running a validation gate."""

    is_valid: bool = True
    errors: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_errors(cls, errors: Mapping[str, str]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=dict(errors))


class WorkflowPhase(str, Enum):
    EMPTY = "empty"
    IN_PROGRESS = "in_progress"
    ALL_STEPS_COMPLETE = "all_steps_complete"
    SUBMITTED = "submitted"


class StepStatus(str, Enum):
    NOT_STARTED = "not_started"
    COMPLETED = "completed"
    COMPLETED_BUT_STALE = "completed_but_stale"


class WorkflowState(BaseModel):
    """Everything the controller knows about one owner's registration."""

    owner_id: str
    phase: WorkflowPhase = WorkflowPhase.EMPTY
    current_step: int = Field(default=1, ge=1, le=TOTAL_STEPS)
    completed_steps: Set[int] = Field(default_factory=set)
    stale_steps: Set[int] = Field(default_factory=set)
    document: WorkflowDocument = Field(default_factory=empty_document)
    has_resumed_draft: bool = False

    @field_validator("completed_steps", "stale_steps")
    @classmethod
    def _check_orders(cls, v: Set[int]) -> Set[int]:
        for order in v:
            if not 1 <= order <= TOTAL_STEPS:
                raise ValueError(f"step order {order} outside 1..{TOTAL_STEPS}")
        return v

    def section(self, step_key: StepKey) -> Dict[str, Any]:
        return self.document.get(step_key, {})

    def step_status(self, order: int) -> StepStatus:
        if order in self.stale_steps:
            return StepStatus.COMPLETED_BUT_STALE
        if order in self.completed_steps:
            return StepStatus.COMPLETED
        return StepStatus.NOT_STARTED

    def is_step_complete(self, key: StepKey) -> bool:
        return self.step_status(order_for(key)) == StepStatus.COMPLETED

    @property
    def is_submitted(self) -> bool:
        return self.phase == WorkflowPhase.SUBMITTED

    def to_json(self) -> str:
        """Serialize state to JSON."""
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str) -> "WorkflowState":
        """Deserialize state from JSON."""
        return cls.model_validate_json(data)


class SubmissionResult(BaseModel):
    """Receipt of a successful final submission."""

    model_config = ConfigDict(frozen=True)

    reference_id: str = Field(..., min_length=1)
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: Literal["pending_review"] = "pending_review"
