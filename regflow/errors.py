"""Exception hierarchy for the registration workflow."""

from __future__ import annotations

from typing import Dict, Optional


class RegistrationError(Exception):
    """Base class for all registration workflow errors."""


class UnknownStepError(RegistrationError, ValueError):
    """Raised when a step order or key does not exist in the registry."""


class InvalidTransitionError(RegistrationError):
    """Raised when a navigation request is not allowed from the current state."""


class WorkflowSubmittedError(RegistrationError):
    """Raised when a submitted workflow is asked to change."""


class DraftStoreError(RegistrationError):
    """Raised by draft store backends when a read or write fails."""


class SubmissionPreconditionError(RegistrationError):
    """Submission was refused locally; no request reached the service."""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message)
        self.errors: Dict[str, str] = dict(errors or {})


class SubmissionTransportError(RegistrationError):
    """The submission service could not be reached or rejected the request."""
