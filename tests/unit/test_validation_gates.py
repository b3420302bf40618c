from datetime import date

import pytest

from regflow.contracts import WorkflowState
from regflow.registry import StepKey
from regflow.validation import (
    ValidationGate,
    calculate_age,
    national_id_checksum_ok,
    normalize_phone,
    review_readiness,
    validate_contact,
    validate_documents,
    validate_professional,
)

TODAY = date(2025, 1, 1)


def test_every_document_step_accepts_valid_data(gate, registration_data):
    for key, section in registration_data.items():
        result = gate.validate(key, section)
        assert result.is_valid, f"{key}: {result.errors}"


def test_personal_gate_reports_each_missing_field(gate):
    result = gate.validate(StepKey.PERSONAL, {})
    assert not result.is_valid
    assert set(result.errors) == {
        "fullName",
        "nationalId",
        "dateOfBirth",
        "disabilityType",
        "disabilityCardNumber",
    }


@pytest.mark.parametrize(
    "national_id, message",
    [
        ("12345", "National ID must be 10 digits"),
        ("12345abcde", "National ID must contain digits only"),
    ],
)
def test_national_id_format(gate, registration_data, national_id, message):
    section = {**registration_data[StepKey.PERSONAL], "nationalId": national_id}
    result = gate.validate(StepKey.PERSONAL, section)
    assert result.errors == {"nationalId": message}


def test_national_id_checksum_is_optional(registration_data):
    section = registration_data[StepKey.PERSONAL]
    strict = ValidationGate(verify_national_id_checksum=True, today=lambda: TODAY)

    assert not national_id_checksum_ok("1234567890")
    assert national_id_checksum_ok("1000000008")
    assert "nationalId" in strict.validate(StepKey.PERSONAL, section).errors
    assert strict.validate(
        StepKey.PERSONAL, {**section, "nationalId": "1000000008"}
    ).is_valid


@pytest.mark.parametrize(
    "birth, expected_error",
    [
        ("2026-01-01", "Date of birth cannot be in the future"),
        ("2010-06-01", "Applicant must be at least 18 years old"),
        ("1890-01-01", "Date of birth is not plausible"),
        ("not-a-date", "Date of birth is not a valid date"),
    ],
)
def test_birth_date_rules(gate, registration_data, birth, expected_error):
    section = {**registration_data[StepKey.PERSONAL], "dateOfBirth": birth}
    assert gate.validate(StepKey.PERSONAL, section).errors == {"dateOfBirth": expected_error}


def test_age_counts_birthday_not_yet_reached():
    assert calculate_age(date(2007, 1, 2), TODAY) == 17
    assert calculate_age(date(2007, 1, 1), TODAY) == 18


def test_employer_required_only_when_employed(registration_data):
    section = dict(registration_data[StepKey.PROFESSIONAL])
    assert validate_professional(section).is_valid

    section["employmentStatus"] = "employed"
    result = validate_professional(section)
    assert set(result.errors) == {"jobTitle", "employer"}

    section.update(jobTitle="Clerk", employer="Ministry")
    assert validate_professional(section).is_valid

    section["monthlyIncome"] = -5
    assert validate_professional(section).errors == {
        "monthlyIncome": "Monthly income cannot be negative"
    }


def test_address_digit_fields(gate, registration_data):
    section = {
        **registration_data[StepKey.ADDRESS],
        "buildingNumber": "12",
        "postalCode": "1234a",
        "additionalNumber": "",
    }
    result = gate.validate(StepKey.ADDRESS, section)
    assert set(result.errors) == {"buildingNumber", "postalCode", "additionalNumber"}


def test_phone_formats_and_normalisation(registration_data):
    section = dict(registration_data[StepKey.CONTACT])
    for phone in ("0501234567", "+966501234567", "501234567", "050 123-4567"):
        assert validate_contact({**section, "phone": phone}).is_valid, phone
    assert "phone" in validate_contact({**section, "phone": "0401234567"}).errors
    assert normalize_phone("050 123 4567") == "+966501234567"


def test_emergency_phone_must_differ_from_own_phone(registration_data):
    section = {
        **registration_data[StepKey.CONTACT],
        "emergencyContactPhone": "+966 50 123 4567",
    }
    result = validate_contact(section)
    assert result.errors == {
        "emergencyContactPhone": "Emergency contact number must differ from your own number"
    }


def test_contact_optional_fields(registration_data):
    section = dict(registration_data[StepKey.CONTACT])
    assert validate_contact({**section, "email": ""}).is_valid
    assert "email" in validate_contact({**section, "email": "not-an-email"}).errors
    assert "alternativePhone" in validate_contact(
        {**section, "alternativePhone": "123"}
    ).errors
    assert "emergencyContactRelation" in validate_contact(
        {**section, "emergencyContactRelation": "neighbour"}
    ).errors


def test_document_uploads(registration_data):
    section = dict(registration_data[StepKey.DOCUMENTS])
    too_big = {"fileName": "scan.pdf", "mimeType": "application/pdf", "fileSize": 6 * 1024 * 1024}
    wrong_type = {"fileName": "scan.doc", "mimeType": "application/msword", "fileSize": 10}

    result = validate_documents({**section, "nationalIdDocument": too_big})
    assert result.errors == {"nationalIdDocument": "National ID copy is larger than 5 MB"}

    result = validate_documents({**section, "additionalDocuments": [too_big, wrong_type]})
    assert set(result.errors) == {"additionalDocuments.0", "additionalDocuments.1"}

    result = validate_documents({})
    assert set(result.errors) == {"nationalIdDocument", "disabilityCardDocument"}


def test_review_readiness_lists_missing_and_stale_steps():
    state = WorkflowState(owner_id="u1", completed_steps={1, 2, 3, 4, 5}, stale_steps={2})
    result = review_readiness(state)
    assert set(result.errors) == {"professional", "documents"}

    state = WorkflowState(owner_id="u1", completed_steps={1, 2, 3, 4, 5, 6})
    assert review_readiness(state).is_valid


def test_review_step_has_no_fields(gate):
    assert gate.validate(StepKey.REVIEW, None).is_valid
    state = WorkflowState(owner_id="u1")
    assert not gate.validate_step(state, "review").is_valid
