"""Field-level validation rules.

Every rule takes a raw field value and returns an error message, or ``None``
when the value is acceptable. Rules never touch the network.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Iterable, Optional

from ..constants import (
    ALLOWED_DOCUMENT_TYPES,
    MAX_AGE,
    MAX_DOCUMENT_SIZE,
    MIN_AGE,
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
)

NATIONAL_ID_PATTERN = re.compile(r"^\d{10}$")
PHONE_PATTERN = re.compile(r"^((\+966)|0)?5[0-9]{8}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
POSTAL_CODE_PATTERN = re.compile(r"^\d{5}$")
FOUR_DIGITS_PATTERN = re.compile(r"^\d{4}$")


def text(value: Any) -> str:
    """Return ``value`` as a stripped string; ``None`` becomes empty."""
    if value is None:
        return ""
    return str(value).strip()


def is_blank(value: Any) -> bool:
    if isinstance(value, (list, tuple, dict, set)):
        return not value
    return text(value) == ""


def require(value: Any, label: str) -> Optional[str]:
    if is_blank(value):
        return f"{label} is required"
    return None


def validate_name(value: Any, label: str = "Name") -> Optional[str]:
    name = text(value)
    if not name:
        return f"{label} is required"
    if len(name) < NAME_MIN_LENGTH:
        return f"{label} must be at least {NAME_MIN_LENGTH} characters"
    if len(name) > NAME_MAX_LENGTH:
        return f"{label} is too long"
    return None


def national_id_checksum_ok(national_id: str) -> bool:
    """Luhn-style check digit used by Saudi national IDs."""
    digits = [int(c) for c in national_id]
    check = digits.pop()
    total = 0
    for i, digit in enumerate(digits):
        if i % 2 == 0:
            doubled = digit * 2
            total += doubled - 9 if doubled > 9 else doubled
        else:
            total += digit
    return (10 - total % 10) % 10 == check


def validate_national_id(value: Any, verify_checksum: bool = False) -> Optional[str]:
    national_id = text(value)
    if not national_id:
        return "National ID is required"
    if len(national_id) != 10:
        return "National ID must be 10 digits"
    if not NATIONAL_ID_PATTERN.match(national_id):
        return "National ID must contain digits only"
    if verify_checksum and not national_id_checksum_ok(national_id):
        return "National ID is not valid"
    return None


def parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = text(value)
    if not raw:
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None


def calculate_age(birth: date, today: date) -> int:
    age = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        age -= 1
    return age


def validate_birth_date(value: Any, today: date) -> Optional[str]:
    if is_blank(value):
        return "Date of birth is required"
    birth = parse_date(value)
    if birth is None:
        return "Date of birth is not a valid date"
    if birth > today:
        return "Date of birth cannot be in the future"
    age = calculate_age(birth, today)
    if age > MAX_AGE:
        return "Date of birth is not plausible"
    if age < MIN_AGE:
        return f"Applicant must be at least {MIN_AGE} years old"
    return None


def clean_phone(value: Any) -> str:
    return re.sub(r"[\s-]", "", text(value))


def is_valid_phone(value: Any) -> bool:
    return bool(PHONE_PATTERN.match(clean_phone(value)))


def normalize_phone(value: Any) -> str:
    """Return the phone number in ``+9665XXXXXXXX`` form when recognisable."""
    digits = re.sub(r"\D", "", text(value))
    if len(digits) == 9 and digits.startswith("5"):
        return f"+966{digits}"
    if len(digits) == 10 and digits.startswith("05"):
        return f"+966{digits[1:]}"
    if len(digits) == 12 and digits.startswith("966"):
        return f"+{digits}"
    return clean_phone(value)


def validate_phone(value: Any, label: str, required: bool = True) -> Optional[str]:
    if is_blank(value):
        return f"{label} is required" if required else None
    if not is_valid_phone(value):
        return f"{label} is not a valid mobile number (expected 05XXXXXXXX)"
    return None


def validate_email(value: Any) -> Optional[str]:
    if is_blank(value):
        return None
    if not EMAIL_PATTERN.match(text(value)):
        return "Email address is not valid"
    return None


def validate_digits(
    value: Any, pattern: re.Pattern, label: str, count: int
) -> Optional[str]:
    if is_blank(value):
        return f"{label} is required"
    if not pattern.match(text(value)):
        return f"{label} must be {count} digits"
    return None


def validate_choice(value: Any, choices: Iterable[str], label: str) -> Optional[str]:
    if is_blank(value):
        return f"{label} is required"
    if text(value) not in set(choices):
        return f"{label} has an unsupported value"
    return None


def validate_amount(value: Any, label: str) -> Optional[str]:
    if is_blank(value):
        return None
    if isinstance(value, bool):
        return f"{label} must be a number"
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return f"{label} must be a number"
    if amount < 0:
        return f"{label} cannot be negative"
    return None


def validate_uploaded_document(value: Any, label: str, required: bool = True) -> Optional[str]:
    """Check an uploaded document descriptor (``fileName``/``mimeType``/``fileSize``)."""
    if not value:
        return f"{label} is required" if required else None
    if not isinstance(value, dict):
        return f"{label} is not a valid upload"
    if is_blank(value.get("fileName")):
        return f"{label} is missing a file name"
    mime_type = text(value.get("mimeType")).lower()
    if mime_type not in ALLOWED_DOCUMENT_TYPES:
        return f"{label} has an unsupported file type (JPG, PNG or PDF only)"
    size = value.get("fileSize")
    if not isinstance(size, (int, float)) or isinstance(size, bool) or size < 0:
        return f"{label} has an invalid file size"
    if size > MAX_DOCUMENT_SIZE:
        return f"{label} is larger than 5 MB"
    return None
