"""Regflow: multi-step beneficiary registration with resumable drafts."""

from .contracts import SubmissionResult, ValidationResult, WorkflowPhase, WorkflowState
from .controller import WorkflowController
from .persistence import get_draft_store
from .progress import ProgressProjector
from .registry import REGISTRY
from .services import get_submission_service
from .sync import DraftSynchronizer
from .validation import ValidationGate

__version__ = "0.1.0"
__all__ = [
    "DraftSynchronizer",
    "ProgressProjector",
    "REGISTRY",
    "SubmissionResult",
    "ValidationGate",
    "ValidationResult",
    "WorkflowController",
    "WorkflowPhase",
    "WorkflowState",
    "get_draft_store",
    "get_submission_service",
]
