"""Per-step validation gates."""

from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, Mapping, Optional

from ..constants import (
    DISABILITY_TYPES,
    EDUCATION_LEVELS,
    EMERGENCY_CONTACT_RELATIONS,
    EMPLOYMENT_STATUSES,
    GENDERS,
)
from ..contracts import StepStatus, ValidationResult, WorkflowState
from ..registry import StepKey, document_steps, resolve_step_key
from . import rules

Section = Mapping[str, Any]
Errors = Dict[str, Optional[str]]


def _collect(errors: Errors) -> ValidationResult:
    return ValidationResult.from_errors(
        {field: message for field, message in errors.items() if message}
    )


def validate_personal(
    section: Section, today: date, verify_checksum: bool = False
) -> ValidationResult:
    errors: Errors = {
        "fullName": rules.validate_name(section.get("fullName"), "Full name"),
        "nationalId": rules.validate_national_id(
            section.get("nationalId"), verify_checksum=verify_checksum
        ),
        "dateOfBirth": rules.validate_birth_date(section.get("dateOfBirth"), today),
        "disabilityType": rules.validate_choice(
            section.get("disabilityType"), DISABILITY_TYPES, "Disability type"
        ),
        "disabilityCardNumber": rules.validate_name(
            section.get("disabilityCardNumber"), "Disability card number"
        ),
    }
    if not rules.is_blank(section.get("gender")):
        errors["gender"] = rules.validate_choice(section.get("gender"), GENDERS, "Gender")
    return _collect(errors)


def validate_professional(section: Section) -> ValidationResult:
    errors: Errors = {
        "educationLevel": rules.validate_choice(
            section.get("educationLevel"), EDUCATION_LEVELS, "Education level"
        ),
        "employmentStatus": rules.validate_choice(
            section.get("employmentStatus"), EMPLOYMENT_STATUSES, "Employment status"
        ),
        "monthlyIncome": rules.validate_amount(
            section.get("monthlyIncome"), "Monthly income"
        ),
    }
    # requiredness follows employmentStatus on every run
    if rules.text(section.get("employmentStatus")) == "employed":
        errors["jobTitle"] = rules.require(section.get("jobTitle"), "Job title")
        errors["employer"] = rules.require(section.get("employer"), "Employer")
    return _collect(errors)


def validate_address(section: Section) -> ValidationResult:
    return _collect(
        {
            "buildingNumber": rules.validate_digits(
                section.get("buildingNumber"),
                rules.FOUR_DIGITS_PATTERN,
                "Building number",
                4,
            ),
            "streetName": rules.require(section.get("streetName"), "Street name"),
            "district": rules.require(section.get("district"), "District"),
            "city": rules.require(section.get("city"), "City"),
            "postalCode": rules.validate_digits(
                section.get("postalCode"), rules.POSTAL_CODE_PATTERN, "Postal code", 5
            ),
            "additionalNumber": rules.validate_digits(
                section.get("additionalNumber"),
                rules.FOUR_DIGITS_PATTERN,
                "Additional number",
                4,
            ),
        }
    )


def validate_contact(section: Section) -> ValidationResult:
    phone = section.get("phone")
    emergency_phone = section.get("emergencyContactPhone")
    errors: Errors = {
        "phone": rules.validate_phone(phone, "Mobile number"),
        "alternativePhone": rules.validate_phone(
            section.get("alternativePhone"), "Alternative mobile number", required=False
        ),
        "email": rules.validate_email(section.get("email")),
        "emergencyContactName": rules.require(
            section.get("emergencyContactName"), "Emergency contact name"
        ),
        "emergencyContactPhone": rules.validate_phone(
            emergency_phone, "Emergency contact number"
        ),
        "emergencyContactRelation": rules.validate_choice(
            section.get("emergencyContactRelation"),
            EMERGENCY_CONTACT_RELATIONS,
            "Emergency contact relation",
        ),
    }
    if (
        not rules.is_blank(phone)
        and not rules.is_blank(emergency_phone)
        and rules.normalize_phone(phone) == rules.normalize_phone(emergency_phone)
    ):
        errors["emergencyContactPhone"] = (
            "Emergency contact number must differ from your own number"
        )
    return _collect(errors)


def validate_branch(section: Section) -> ValidationResult:
    return _collect(
        {
            "preferredBranchId": rules.require(
                section.get("preferredBranchId"), "Preferred branch"
            )
        }
    )


def validate_documents(section: Section) -> ValidationResult:
    errors: Errors = {
        "nationalIdDocument": rules.validate_uploaded_document(
            section.get("nationalIdDocument"), "National ID copy"
        ),
        "disabilityCardDocument": rules.validate_uploaded_document(
            section.get("disabilityCardDocument"), "Disability card copy"
        ),
    }
    extra = section.get("additionalDocuments") or []
    if not isinstance(extra, list):
        errors["additionalDocuments"] = "Additional documents must be a list"
    else:
        for index, document in enumerate(extra):
            errors[f"additionalDocuments.{index}"] = rules.validate_uploaded_document(
                document, f"Additional document {index + 1}"
            )
    return _collect(errors)


def review_readiness(state: WorkflowState) -> ValidationResult:
    """The review step passes once every earlier step is complete and fresh."""
    errors: Dict[str, str] = {}
    for step in document_steps():
        status = state.step_status(step.order)
        if status == StepStatus.NOT_STARTED:
            errors[step.key.value] = f"{step.title} is not completed"
        elif status == StepStatus.COMPLETED_BUT_STALE:
            errors[step.key.value] = f"{step.title} was edited and must be confirmed again"
    return ValidationResult.from_errors(errors)


class ValidationGate:
    """Dispatches a step's section to its gate.

    Args:
        verify_national_id_checksum: Also enforce the national ID check digit.
        today: Callable returning the reference date for age checks.
    """

    def __init__(
        self,
        verify_national_id_checksum: bool = False,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self.verify_national_id_checksum = verify_national_id_checksum
        self._today = today or date.today
        self._gates: Dict[StepKey, Callable[[Section], ValidationResult]] = {
            StepKey.PERSONAL: lambda s: validate_personal(
                s, self._today(), self.verify_national_id_checksum
            ),
            StepKey.PROFESSIONAL: validate_professional,
            StepKey.ADDRESS: validate_address,
            StepKey.CONTACT: validate_contact,
            StepKey.BRANCH: validate_branch,
            StepKey.DOCUMENTS: validate_documents,
        }

    def validate(self, step_key: StepKey | str, section: Optional[Section]) -> ValidationResult:
        """Validate one step's section; the review step has no fields."""
        key = resolve_step_key(step_key)
        gate = self._gates.get(key)
        if gate is None:
            return ValidationResult()
        return gate(section or {})

    def validate_step(self, state: WorkflowState, step_key: StepKey | str) -> ValidationResult:
        """Validate a step in the context of the whole workflow state."""
        key = resolve_step_key(step_key)
        if key == StepKey.REVIEW:
            return review_readiness(state)
        return self.validate(key, state.section(key))
