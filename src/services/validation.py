"""Server-side checks for a school submission.

Mirrors the rules the add-school form enforces in the browser so that a
request sent straight to the API cannot bypass them.
"""

from __future__ import annotations

import re

from src.db.base import NewSchool
from src.errors import ErrorCode, ValidationError

REQUIRED_FIELDS = ("name", "address", "city", "state", "contact", "email_id")

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_CONTACT_RE = re.compile(r"^[0-9]{7,15}$")


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value))


def validate_submission(fields: dict[str, str | None]) -> NewSchool:
    """Trim and check the submitted form fields.

    Raises:
        ValidationError: ``VALIDATION_ERROR`` if any required field is blank,
            ``INVALID_EMAIL`` for a malformed address, ``INVALID_CONTACT``
            unless the contact is 7-15 digits.
    """
    cleaned = {key: (fields.get(key) or "").strip() for key in REQUIRED_FIELDS}

    if not all(cleaned.values()):
        raise ValidationError(ErrorCode.VALIDATION_ERROR, "All fields are required")

    if not is_valid_email(cleaned["email_id"]):
        raise ValidationError(ErrorCode.INVALID_EMAIL, "Invalid email")

    if not _CONTACT_RE.match(cleaned["contact"]):
        raise ValidationError(ErrorCode.INVALID_CONTACT, "Contact must be 7-15 digits")

    return NewSchool(**cleaned)
