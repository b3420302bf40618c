"""Step definition registry.

The registry is a constant table built at import time. Every component that
needs to know "which step is this" or "is this the last step" asks here.
"""

from __future__ import annotations

from typing import List, Union

from ..errors import UnknownStepError
from .models import StepCatalog, StepDefinition, StepKey

REGISTRY = StepCatalog(
    steps=[
        StepDefinition(
            key=StepKey.PERSONAL,
            order=1,
            title="Personal information",
            description="Name, national ID, date of birth and disability",
            document_name="personalInfo",
        ),
        StepDefinition(
            key=StepKey.PROFESSIONAL,
            order=2,
            title="Professional information",
            description="Education and employment",
            document_name="professionalInfo",
        ),
        StepDefinition(
            key=StepKey.ADDRESS,
            order=3,
            title="National address",
            description="Address details",
            document_name="addressInfo",
        ),
        StepDefinition(
            key=StepKey.CONTACT,
            order=4,
            title="Contact information",
            description="Phone, email and emergency contact",
            document_name="contactInfo",
        ),
        StepDefinition(
            key=StepKey.BRANCH,
            order=5,
            title="Branch selection",
            description="Preferred service branch",
            document_name="branchSelection",
        ),
        StepDefinition(
            key=StepKey.DOCUMENTS,
            order=6,
            title="Document upload",
            description="National ID and disability card",
            document_name="documentUpload",
        ),
        StepDefinition(
            key=StepKey.REVIEW,
            order=7,
            title="Review and submit",
            description="Review the entered data and submit",
        ),
    ]
)

_BY_ORDER = {step.order: step for step in REGISTRY.steps}
_BY_KEY = {step.key: step for step in REGISTRY.steps}


def total_steps() -> int:
    return len(REGISTRY.steps)


def all_steps() -> List[StepDefinition]:
    """Return step definitions sorted by order."""
    return sorted(REGISTRY.steps, key=lambda step: step.order)


def step_at(order: int) -> StepDefinition:
    """Return the definition of the step at ``order`` (1-based)."""
    try:
        return _BY_ORDER[order]
    except KeyError:
        raise UnknownStepError(f"No registration step at position {order}") from None


def step_key_for(order: int) -> StepKey:
    return step_at(order).key


def resolve_step_key(value: Union[str, StepKey]) -> StepKey:
    """Accept a ``StepKey`` or its string value."""
    if isinstance(value, StepKey):
        return value
    try:
        return StepKey(value)
    except ValueError:
        raise UnknownStepError(f"Unknown registration step: {value!r}") from None


def step_for_key(key: Union[str, StepKey]) -> StepDefinition:
    return _BY_KEY[resolve_step_key(key)]


def order_for(key: Union[str, StepKey]) -> int:
    return step_for_key(key).order


def is_last_step(order: int) -> bool:
    return order == total_steps()


def document_steps() -> List[StepDefinition]:
    """Steps that own a sub-document (everything except review)."""
    return [step for step in all_steps() if step.owns_document]


__all__ = [
    "REGISTRY",
    "StepCatalog",
    "StepDefinition",
    "StepKey",
    "all_steps",
    "document_steps",
    "is_last_step",
    "order_for",
    "resolve_step_key",
    "step_at",
    "step_for_key",
    "step_key_for",
    "total_steps",
]
