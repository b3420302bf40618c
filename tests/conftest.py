"""Shared registration data for the test suite."""

from datetime import date

import pytest

from regflow.registry import StepKey
from regflow.validation import ValidationGate

TODAY = date(2025, 1, 1)


def make_registration_data() -> dict:
    return {
        StepKey.PERSONAL: {
            "fullName": "Ali Al-Harbi",
            "nationalId": "1234567890",
            "dateOfBirth": "1990-05-15",
            "gender": "male",
            "disabilityType": "deaf",
            "disabilityCardNumber": "DC-12345",
        },
        StepKey.PROFESSIONAL: {
            "educationLevel": "bachelor",
            "employmentStatus": "unemployed",
        },
        StepKey.ADDRESS: {
            "buildingNumber": "1234",
            "streetName": "King Fahd Road",
            "district": "Al Olaya",
            "city": "Riyadh",
            "postalCode": "12345",
            "additionalNumber": "5678",
        },
        StepKey.CONTACT: {
            "phone": "0501234567",
            "email": "ali@example.com",
            "emergencyContactName": "Sara",
            "emergencyContactPhone": "0559876543",
            "emergencyContactRelation": "sibling",
        },
        StepKey.BRANCH: {"preferredBranchId": "branch-1", "branchName": "Riyadh Main"},
        StepKey.DOCUMENTS: {
            "nationalIdDocument": {
                "fileName": "id.pdf",
                "mimeType": "application/pdf",
                "fileSize": 120_000,
            },
            "disabilityCardDocument": {
                "fileName": "card.png",
                "mimeType": "image/png",
                "fileSize": 80_000,
            },
        },
    }


@pytest.fixture
def registration_data() -> dict:
    return make_registration_data()


@pytest.fixture
def gate() -> ValidationGate:
    return ValidationGate(today=lambda: TODAY)
