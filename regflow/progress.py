"""Progress projection over a workflow state."""

from __future__ import annotations

import math
from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from .contracts import StepStatus, WorkflowPhase, WorkflowState
from .registry import StepKey, all_steps, total_steps


class RegistrationStatus(str, Enum):
    NOT_STARTED = "not_started"
    PROFILE_INCOMPLETE = "profile_incomplete"
    READY_FOR_SUBMISSION = "ready_for_submission"
    PENDING_REVIEW = "pending_review"


class StepView(BaseModel):
    """One entry of the stepper strip."""

    order: int
    key: StepKey
    title: str
    status: str = Field(..., description="completed, stale, active or pending")


class ProgressReport(BaseModel):
    percentage: int
    status: RegistrationStatus
    label: str
    completed_count: int
    total_steps: int
    steps: List[StepView] = Field(default_factory=list)


def completion_percentage(completed_count: int, total: int) -> int:
    """Whole-number percentage, rounding halves up."""
    if total <= 0:
        return 0
    return int(math.floor(100 * completed_count / total + 0.5))


class ProgressProjector:
    """Derives completion metrics from ``WorkflowState``; holds no state."""

    def percentage(self, state: WorkflowState) -> int:
        return completion_percentage(len(state.completed_steps), total_steps())

    def status(self, state: WorkflowState) -> RegistrationStatus:
        if state.phase == WorkflowPhase.SUBMITTED:
            return RegistrationStatus.PENDING_REVIEW
        if state.phase == WorkflowPhase.ALL_STEPS_COMPLETE:
            return RegistrationStatus.READY_FOR_SUBMISSION
        if not state.completed_steps and not any(state.document.values()):
            return RegistrationStatus.NOT_STARTED
        return RegistrationStatus.PROFILE_INCOMPLETE

    def status_label(self, state: WorkflowState) -> str:
        status = self.status(state)
        if status == RegistrationStatus.PENDING_REVIEW:
            return "Registration submitted and pending review"
        if status == RegistrationStatus.READY_FOR_SUBMISSION:
            return "All steps completed, ready to submit"
        if status == RegistrationStatus.NOT_STARTED:
            return "Registration not started"
        label = f"{len(state.completed_steps)} of {total_steps()} steps completed"
        if state.stale_steps:
            label += f", {len(state.stale_steps)} awaiting confirmation"
        return label

    def stepper(self, state: WorkflowState) -> List[StepView]:
        views = []
        for step in all_steps():
            step_status = state.step_status(step.order)
            if step_status == StepStatus.COMPLETED_BUT_STALE:
                status = "stale"
            elif step_status == StepStatus.COMPLETED:
                status = "completed"
            elif step.order == state.current_step:
                status = "active"
            else:
                status = "pending"
            views.append(StepView(order=step.order, key=step.key, title=step.title, status=status))
        return views

    def report(self, state: WorkflowState) -> ProgressReport:
        return ProgressReport(
            percentage=self.percentage(state),
            status=self.status(state),
            label=self.status_label(state),
            completed_count=len(state.completed_steps),
            total_steps=total_steps(),
            steps=self.stepper(state),
        )
