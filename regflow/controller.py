"""Workflow controller: the registration state machine."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional, Union

from .config import RegflowConfig, load_config
from .constants import TOTAL_STEPS
from .contracts import (
    SubmissionResult,
    ValidationResult,
    WorkflowPhase,
    WorkflowState,
    empty_document,
    merge_section,
)
from .errors import InvalidTransitionError, UnknownStepError, WorkflowSubmittedError
from .finalizer import SubmissionFinalizer
from .persistence import DraftRecord, DraftStore, get_draft_store
from .progress import ProgressProjector, ProgressReport
from .registry import (
    StepKey,
    is_last_step,
    order_for,
    resolve_step_key,
    step_at,
    total_steps,
)
from .services import SubmissionService, get_submission_service
from .sync import DraftSynchronizer
from .validation import ValidationGate

logger = logging.getLogger(__name__)

StepRef = Union[int, str, StepKey]


def reconcile_draft(owner_id: str, draft: Optional[DraftRecord]) -> WorkflowState:
    """Build the initial in-memory state from a loaded draft.

    Unknown sections and out-of-range step numbers are dropped, and the
    current step is clamped into range. Without a stored current step the
    workflow resumes at the first incomplete step.
    """
    state = WorkflowState(owner_id=owner_id)
    if draft is None:
        return state

    document = empty_document()
    for name, section in draft.document.items():
        try:
            key = resolve_step_key(name)
        except UnknownStepError:
            logger.warning(f"Dropping unknown draft section {name!r} for owner={owner_id}")
            continue
        if key == StepKey.REVIEW:
            continue
        if not isinstance(section, Mapping):
            logger.warning(f"Dropping malformed draft section {name!r} for owner={owner_id}")
            continue
        document[key] = dict(section)

    completed = set()
    for order in draft.completed_steps:
        if isinstance(order, int) and 1 <= order <= TOTAL_STEPS:
            completed.add(order)
        else:
            logger.warning(f"Dropping invalid completed step {order!r} for owner={owner_id}")

    current = draft.current_step
    if current is None:
        current = next(
            (order for order in range(1, total_steps() + 1) if order not in completed),
            total_steps(),
        )
    current = max(1, min(total_steps(), current))

    has_content = bool(completed) or any(document.values())
    if completed >= set(range(1, total_steps() + 1)):
        phase = WorkflowPhase.ALL_STEPS_COMPLETE
    elif has_content:
        phase = WorkflowPhase.IN_PROGRESS
    else:
        phase = WorkflowPhase.EMPTY

    return WorkflowState(
        owner_id=owner_id,
        phase=phase,
        current_step=current,
        completed_steps=completed,
        document=document,
        has_resumed_draft=has_content,
    )


class WorkflowController:
    """Single source of truth for one owner's registration session.

    Navigation and document edits are synchronous; persistence happens in the
    background through the ``DraftSynchronizer``; without a running event loop
    saves are skipped and reported through ``is_saved``. ``submit`` is the only
    awaited transition, and no other transition is accepted while it runs.
    """

    def __init__(
        self,
        owner_id: str,
        synchronizer: DraftSynchronizer,
        finalizer: SubmissionFinalizer,
        gate: ValidationGate | None = None,
        state: WorkflowState | None = None,
        projector: ProgressProjector | None = None,
    ) -> None:
        if state is not None and state.owner_id != owner_id:
            raise ValueError("state belongs to a different owner")
        self.owner_id = owner_id
        self._sync = synchronizer
        self._finalizer = finalizer
        self._gate = gate or ValidationGate()
        self._projector = projector or ProgressProjector()
        self._state = state or WorkflowState(owner_id=owner_id)
        self._submit_lock = asyncio.Lock()
        self._submitting = False
        self.submission_result: Optional[SubmissionResult] = None

    # ------------------------------------------------------------------
    # Construction
    @classmethod
    async def mount(
        cls,
        owner_id: str,
        synchronizer: DraftSynchronizer,
        submission_service: SubmissionService,
        gate: ValidationGate | None = None,
    ) -> "WorkflowController":
        """Load the owner's draft (once) and return a ready controller."""
        gate = gate or ValidationGate()
        draft = await synchronizer.load_draft(owner_id)
        state = reconcile_draft(owner_id, draft)
        if state.has_resumed_draft:
            logger.info(
                f"Resuming registration for owner={owner_id} at step {state.current_step}"
            )
        return cls(
            owner_id,
            synchronizer,
            SubmissionFinalizer(submission_service, gate),
            gate=gate,
            state=state,
        )

    @classmethod
    async def from_config(
        cls,
        owner_id: str,
        config: RegflowConfig | None = None,
        store: DraftStore | None = None,
        submission_service: SubmissionService | None = None,
    ) -> "WorkflowController":
        """Mount a controller wired from configuration."""
        config = config or load_config()
        synchronizer = DraftSynchronizer(
            store or get_draft_store(config=config),
            debounce_seconds=config.sync.debounce_seconds,
        )
        gate = ValidationGate(
            verify_national_id_checksum=config.validation.verify_national_id_checksum
        )
        return await cls.mount(
            owner_id,
            synchronizer,
            submission_service or get_submission_service(config),
            gate=gate,
        )

    @classmethod
    def from_state(
        cls,
        state: WorkflowState,
        synchronizer: DraftSynchronizer,
        submission_service: SubmissionService,
        gate: ValidationGate | None = None,
    ) -> "WorkflowController":
        """Rebuild a controller from a previously serialized state."""
        gate = gate or ValidationGate()
        return cls(
            state.owner_id,
            synchronizer,
            SubmissionFinalizer(submission_service, gate),
            gate=gate,
            state=state.model_copy(deep=True),
        )

    # ------------------------------------------------------------------
    # Read-only views
    def get_state(self) -> WorkflowState:
        """Return a copy of the current state."""
        return self._state.model_copy(deep=True)

    def snapshot(self) -> str:
        return self._state.to_json()

    @property
    def phase(self) -> WorkflowPhase:
        return self._state.phase

    @property
    def current_step(self) -> int:
        return self._state.current_step

    @property
    def synchronizer(self) -> DraftSynchronizer:
        return self._sync

    @property
    def is_saved(self) -> bool:
        return self._sync.is_saved

    def progress(self) -> ProgressReport:
        return self._projector.report(self._state)

    def validate_step(self, step: StepRef | None = None) -> ValidationResult:
        """Run the gate for ``step`` (default: the current step) without side effects."""
        order = self._state.current_step if step is None else self._order(step)
        return self._gate.validate_step(self._state, step_at(order).key)

    # ------------------------------------------------------------------
    # Transitions
    def advance(self) -> ValidationResult:
        """Validate the current step and move forward on success.

        On the review step success moves the workflow to
        ``ALL_STEPS_COMPLETE`` and the current step stays put. A failed
        re-validation of an edited, previously completed step revokes its
        completion; otherwise failure changes nothing.
        """
        self._ensure_mutable()
        order = self._state.current_step
        key = step_at(order).key
        result = self._gate.validate_step(self._state, key)

        if not result.is_valid:
            if order in self._state.stale_steps:
                self._state.completed_steps.discard(order)
                self._state.stale_steps.discard(order)
                logger.info(
                    f"Step {key.value} no longer valid for owner={self.owner_id}; completion revoked"
                )
                self._save(key)
            return result

        self._complete(order)
        if is_last_step(order):
            self._state.phase = WorkflowPhase.ALL_STEPS_COMPLETE
            logger.info(f"All registration steps complete for owner={self.owner_id}")
        else:
            self._state.current_step = order + 1
        self._save(key)
        return result

    def retreat(self) -> bool:
        """Move back one step. Returns ``False`` on the first step."""
        self._ensure_mutable()
        if self._state.current_step <= 1:
            return False
        self._state.current_step -= 1
        return True

    def jump_to_step(self, step: StepRef) -> None:
        """From the review step, reopen an already completed step for editing."""
        self._ensure_mutable()
        order = self._order(step)
        if not is_last_step(self._state.current_step):
            raise InvalidTransitionError("Steps can only be reopened from the review step")
        if is_last_step(order):
            return
        if order not in self._state.completed_steps:
            raise InvalidTransitionError(f"Step {order} has not been completed yet")
        self._state.current_step = order
        logger.debug(f"Owner={self.owner_id} reopened step {order} from review")

    def mark_complete(self, step: StepRef | None = None) -> ValidationResult:
        """Validate a step and mark it complete without navigating."""
        self._ensure_mutable()
        order = self._state.current_step if step is None else self._order(step)
        key = step_at(order).key
        result = self._gate.validate_step(self._state, key)
        if result.is_valid:
            self._complete(order)
            self._save(key)
        return result

    def update_document(self, step_key: StepKey | str, partial: Mapping[str, Any]) -> None:
        """Shallow-merge ``partial`` into one step's sub-document and save that step."""
        self._ensure_mutable()
        key = resolve_step_key(step_key)
        if key == StepKey.REVIEW:
            raise InvalidTransitionError("The review step has no fields to update")

        before = self._state.section(key)
        merged = merge_section(self._state.document, key, partial)
        if merged[key] == before:
            return
        self._state.document = merged

        order = order_for(key)
        if order in self._state.completed_steps:
            self._state.stale_steps.add(order)
            if self._state.phase == WorkflowPhase.ALL_STEPS_COMPLETE:
                self._state.phase = WorkflowPhase.IN_PROGRESS
        if self._state.phase == WorkflowPhase.EMPTY:
            self._state.phase = WorkflowPhase.IN_PROGRESS
        self._save(key)

    async def submit(self, consent_given: bool) -> SubmissionResult:
        """Finalize the registration.

        Raises:
            SubmissionPreconditionError: Steps missing or consent not given.
            SubmissionTransportError: The service failed; state is kept so the
                call can be retried.
        """
        async with self._submit_lock:
            if self._state.phase == WorkflowPhase.SUBMITTED and self.submission_result:
                return self.submission_result

            self._finalizer.ensure_ready(self._state, consent_given)
            self._state.phase = WorkflowPhase.ALL_STEPS_COMPLETE
            self._submitting = True
            try:
                result = await self._finalizer.send(self.owner_id, self._state)
            finally:
                self._submitting = False

            self._state.phase = WorkflowPhase.SUBMITTED
            self.submission_result = result
            await self._sync.close()
            return result

    async def close(self) -> None:
        """Detach from persistence, e.g. when the user navigates away."""
        await self._sync.close()

    # ------------------------------------------------------------------
    # Helpers
    def _ensure_mutable(self) -> None:
        if self._state.phase == WorkflowPhase.SUBMITTED:
            raise WorkflowSubmittedError("Registration has already been submitted")
        if self._submitting:
            raise InvalidTransitionError("Registration is being submitted")

    def _order(self, step: StepRef) -> int:
        if isinstance(step, int) and not isinstance(step, bool):
            return step_at(step).order
        return order_for(step)

    def _complete(self, order: int) -> None:
        if order not in self._state.completed_steps:
            logger.info(f"Step {step_at(order).key.value} completed for owner={self.owner_id}")
        self._state.completed_steps.add(order)
        self._state.stale_steps.discard(order)
        if self._state.phase == WorkflowPhase.EMPTY:
            self._state.phase = WorkflowPhase.IN_PROGRESS

    def _save(self, key: StepKey) -> None:
        self._sync.save_step_draft(
            self.owner_id,
            key,
            self._state.section(key),
            self._state.completed_steps - self._state.stale_steps,
            self._state.current_step,
        )
