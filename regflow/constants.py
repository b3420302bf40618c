"""Reference data shared by the registration workflow."""

from __future__ import annotations

TOTAL_STEPS = 7
DEFAULT_DEBOUNCE_SECONDS = 0.5
DEFAULT_SERVICE_TIMEOUT = 10.0

MIN_AGE = 18
MAX_AGE = 120
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100

MAX_DOCUMENT_SIZE = 5 * 1024 * 1024
ALLOWED_DOCUMENT_TYPES = frozenset(
    {"image/jpeg", "image/png", "image/jpg", "application/pdf"}
)

GENDERS = frozenset({"male", "female"})

DISABILITY_TYPES = {
    "deaf": "Deaf",
    "hearing_impaired": "Hearing impaired",
    "hearing_loss": "Hearing loss",
    "visual_impaired": "Visually impaired",
    "blind": "Blind",
    "mobility_impaired": "Mobility impairment",
    "intellectual_disability": "Intellectual disability",
    "multiple_disabilities": "Multiple disabilities",
    "other": "Other",
}

EDUCATION_LEVELS = {
    "no_education": "No formal education",
    "primary": "Primary",
    "intermediate": "Intermediate",
    "secondary": "Secondary",
    "diploma": "Diploma",
    "bachelor": "Bachelor",
    "master": "Master",
    "phd": "Doctorate",
}

EMPLOYMENT_STATUSES = {
    "unemployed": "Unemployed",
    "employed": "Employed",
    "retired": "Retired",
    "student": "Student",
    "disabled_unable_work": "Unable to work due to disability",
}

EMERGENCY_CONTACT_RELATIONS = (
    "father",
    "mother",
    "spouse",
    "child",
    "sibling",
    "grandparent",
    "uncle",
    "aunt",
    "friend",
    "other",
)
