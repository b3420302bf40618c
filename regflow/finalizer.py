"""Terminal submission of a registration."""

from __future__ import annotations

import logging
from typing import Dict

from .contracts import StepStatus, SubmissionResult, ValidationResult, WorkflowState
from .errors import (
    RegistrationError,
    SubmissionPreconditionError,
    SubmissionTransportError,
)
from .registry import document_steps
from .services import SubmissionService
from .validation import ValidationGate

logger = logging.getLogger(__name__)

CONSENT_FIELD = "consent"


class SubmissionFinalizer:
    """Checks submission preconditions and issues the single submit call."""

    def __init__(self, service: SubmissionService, gate: ValidationGate | None = None) -> None:
        self._service = service
        self._gate = gate or ValidationGate()

    def check_preconditions(self, state: WorkflowState, consent_given: bool) -> ValidationResult:
        """Every step before review must be complete, fresh and still valid,
        and consent must be given explicitly."""
        errors: Dict[str, str] = {}
        for step in document_steps():
            status = state.step_status(step.order)
            if status == StepStatus.NOT_STARTED:
                errors[step.key.value] = f"{step.title} is not completed"
                continue
            if status == StepStatus.COMPLETED_BUT_STALE:
                errors[step.key.value] = f"{step.title} was edited and must be confirmed again"
                continue
            result = self._gate.validate(step.key, state.section(step.key))
            for field, message in result.errors.items():
                errors[f"{step.key.value}.{field}"] = message
        if consent_given is not True:
            errors[CONSENT_FIELD] = "You must accept the terms and conditions"
        return ValidationResult.from_errors(errors)

    def ensure_ready(self, state: WorkflowState, consent_given: bool) -> None:
        check = self.check_preconditions(state, consent_given)
        if not check.is_valid:
            raise SubmissionPreconditionError(
                "Registration is not ready for submission", check.errors
            )

    async def submit(
        self, owner_id: str, state: WorkflowState, consent_given: bool
    ) -> SubmissionResult:
        """Submit the merged document.

        Raises:
            SubmissionPreconditionError: Preconditions failed; no request was made.
            SubmissionTransportError: The service failed. Safe to retry.
        """
        self.ensure_ready(state, consent_given)
        return await self.send(owner_id, state)

    async def send(self, owner_id: str, state: WorkflowState) -> SubmissionResult:
        """Issue the submit call without re-checking preconditions."""
        document = {
            step.key.value: dict(state.section(step.key)) for step in document_steps()
        }
        logger.info(f"Submitting registration for owner={owner_id}")
        try:
            result = await self._service.submit(owner_id, document)
        except RegistrationError:
            logger.error(f"Submission failed for owner={owner_id}")
            raise
        except Exception as e:
            logger.error(f"Submission failed for owner={owner_id}: {e}")
            raise SubmissionTransportError(f"Submission failed: {e}") from e

        logger.info(f"Registration submitted for owner={owner_id}, reference={result.reference_id}")
        return result
