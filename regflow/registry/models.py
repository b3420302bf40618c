"""Pydantic models describing registration steps."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class StepKey(str, Enum):
    """Identifier of a registration step and of the sub-document it owns."""

    PERSONAL = "personal"
    PROFESSIONAL = "professional"
    ADDRESS = "address"
    CONTACT = "contact"
    BRANCH = "branch"
    DOCUMENTS = "documents"
    REVIEW = "review"


class StepDefinition(BaseModel):
    """Static description of one step of the registration wizard."""

    model_config = ConfigDict(frozen=True)

    key: StepKey
    order: int = Field(..., ge=1)
    title: str
    description: str
    document_name: Optional[str] = Field(
        default=None, description="Sub-document name used by the remote portal"
    )

    @property
    def owns_document(self) -> bool:
        return self.document_name is not None


class StepCatalog(BaseModel):
    """Ordered, immutable catalog of steps."""

    model_config = ConfigDict(frozen=True)

    steps: List[StepDefinition]

    @model_validator(mode="after")
    def _check_ordering(self) -> "StepCatalog":
        orders = sorted(step.order for step in self.steps)
        if orders != list(range(1, len(self.steps) + 1)):
            raise ValueError("step orders must be a contiguous permutation of 1..n")
        keys = [step.key for step in self.steps]
        if len(set(keys)) != len(keys):
            raise ValueError("step keys must be unique")
        return self
