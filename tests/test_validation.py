"""Tests for submission validation and the error taxonomy."""

from __future__ import annotations

import pytest

from src.db.base import NewSchool
from src.errors import (
    ConfigurationError,
    ErrorCode,
    PersistenceError,
    StorageError,
    ValidationError,
)
from src.services.validation import REQUIRED_FIELDS, is_valid_email, validate_submission

# ---------------------------------------------------------------------------
# validate_submission
# ---------------------------------------------------------------------------


class TestValidateSubmission:
    def test_trims_every_field(self, valid_form):
        padded = {key: f"  {value}\t" for key, value in valid_form.items()}
        school = validate_submission(padded)
        assert school == NewSchool(**valid_form)
        assert school.image is None

    @pytest.mark.parametrize("field", REQUIRED_FIELDS)
    def test_missing_field(self, valid_form, field):
        del valid_form[field]
        with pytest.raises(ValidationError) as exc_info:
            validate_submission(valid_form)
        assert exc_info.value.code is ErrorCode.VALIDATION_ERROR

    @pytest.mark.parametrize("field", REQUIRED_FIELDS)
    def test_whitespace_only_field(self, valid_form, field):
        valid_form[field] = "   "
        with pytest.raises(ValidationError) as exc_info:
            validate_submission(valid_form)
        assert exc_info.value.code is ErrorCode.VALIDATION_ERROR

    def test_none_counts_as_missing(self, valid_form):
        valid_form["city"] = None
        with pytest.raises(ValidationError):
            validate_submission(valid_form)

    @pytest.mark.parametrize("email", ["not-an-email", "a@b", "a b@c.com", "@example.com", "user@.com"])
    def test_invalid_email(self, valid_form, email):
        valid_form["email_id"] = email
        with pytest.raises(ValidationError) as exc_info:
            validate_submission(valid_form)
        assert exc_info.value.code is ErrorCode.INVALID_EMAIL

    def test_missing_fields_reported_before_email(self, valid_form):
        valid_form["email_id"] = "not-an-email"
        valid_form["name"] = ""
        with pytest.raises(ValidationError) as exc_info:
            validate_submission(valid_form)
        assert exc_info.value.code is ErrorCode.VALIDATION_ERROR

    @pytest.mark.parametrize("contact", ["123456", "1234567890123456", "555-0123", "+915550123456", "phone"])
    def test_invalid_contact(self, valid_form, contact):
        valid_form["contact"] = contact
        with pytest.raises(ValidationError) as exc_info:
            validate_submission(valid_form)
        assert exc_info.value.code is ErrorCode.INVALID_CONTACT

    @pytest.mark.parametrize("contact", ["1234567", "123456789012345"])
    def test_contact_length_bounds(self, valid_form, contact):
        valid_form["contact"] = contact
        assert validate_submission(valid_form).contact == contact


def test_is_valid_email():
    assert is_valid_email("info@school.org")
    assert is_valid_email("first.last+tag@sub.domain.co.in")
    assert not is_valid_email("info@school")


# ---------------------------------------------------------------------------
# Error taxonomy
# ---------------------------------------------------------------------------


class TestErrorFamilies:
    def test_family_rejects_foreign_code(self):
        with pytest.raises(ValueError):
            StorageError(ErrorCode.DB_CONFIG_MISSING, "wrong family")

    def test_configuration_codes_have_hints(self):
        for code in ConfigurationError.allowed_codes:
            assert ConfigurationError(code, "boom").hint

    def test_storage_codes_have_hints(self):
        for code in StorageError.allowed_codes:
            assert StorageError(code, "boom").hint

    def test_persistence_error_has_no_hint(self):
        err = PersistenceError("syntax error at or near")
        assert err.code is ErrorCode.DB_QUERY_FAILED
        assert err.hint is None

    def test_families_do_not_share_codes(self):
        families = [ConfigurationError, ValidationError, StorageError, PersistenceError]
        seen: set[ErrorCode] = set()
        for family in families:
            assert not (family.allowed_codes & seen)
            seen |= family.allowed_codes
