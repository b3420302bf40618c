"""Synchronous validation gates for registration steps."""

from __future__ import annotations

from .gates import (
    ValidationGate,
    review_readiness,
    validate_address,
    validate_branch,
    validate_contact,
    validate_documents,
    validate_personal,
    validate_professional,
)
from .rules import calculate_age, national_id_checksum_ok, normalize_phone

__all__ = [
    "ValidationGate",
    "calculate_age",
    "national_id_checksum_ok",
    "normalize_phone",
    "review_readiness",
    "validate_address",
    "validate_branch",
    "validate_contact",
    "validate_documents",
    "validate_personal",
    "validate_professional",
]
