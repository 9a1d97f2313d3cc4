"""Error taxonomy shared by the store, the image sink and the request handlers.

Lower layers raise one of the four error families below; each family accepts
only its own :class:`ErrorCode` members, so the mapping to HTTP responses in
:mod:`src.api.responses` stays exhaustive.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    # Configuration
    DB_CONFIG_MISSING = "DB_CONFIG_MISSING"
    DB_CONFIG_INVALID = "DB_CONFIG_INVALID"
    DB_LOCALHOST_IN_PROD = "DB_LOCALHOST_IN_PROD"
    # Client input
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_EMAIL = "INVALID_EMAIL"
    INVALID_CONTACT = "INVALID_CONTACT"
    # Image storage
    BLOB_NOT_CONFIGURED = "BLOB_NOT_CONFIGURED"
    BLOB_UPLOAD_FAILED = "BLOB_UPLOAD_FAILED"
    # Persistence
    DB_QUERY_FAILED = "DB_QUERY_FAILED"
    # Anything not raised by this package
    INTERNAL_ERROR = "INTERNAL_ERROR"


REMEDIATION_HINTS: dict[ErrorCode, str] = {
    ErrorCode.DB_CONFIG_MISSING: (
        "Set DATABASE_URL to your Neon pooled connection string (must include sslmode=require), "
        "or set DB_HOST, DB_USER, DB_PASSWORD and DB_NAME for a MySQL server, then restart."
    ),
    ErrorCode.DB_CONFIG_INVALID: (
        "DB_NAME may only contain letters, digits, '_' and '$'. DB_PORT must be a number between 1 and 65535."
    ),
    ErrorCode.DB_LOCALHOST_IN_PROD: (
        "Do not point the database at localhost in production. Use the Neon public pooled URL."
    ),
    ErrorCode.BLOB_NOT_CONFIGURED: (
        "Enable Vercel Blob for this project and set USE_BLOB=true. "
        "The integration will add BLOB_READ_WRITE_TOKEN."
    ),
    ErrorCode.BLOB_UPLOAD_FAILED: (
        "Check BLOB_READ_WRITE_TOKEN and that the Vercel Blob integration is installed for this project."
    ),
}


class SchoolDirectoryError(Exception):
    """Base class for every error raised deliberately by this package."""

    allowed_codes: frozenset[ErrorCode] = frozenset()

    def __init__(self, code: ErrorCode, message: str) -> None:
        if code not in self.allowed_codes:
            raise ValueError(f"{type(self).__name__} cannot carry code {code.value!r}")
        self.code = code
        self.message = message
        super().__init__(message)

    @property
    def hint(self) -> str | None:
        return REMEDIATION_HINTS.get(self.code)


class ConfigurationError(SchoolDirectoryError):
    """Missing or invalid environment settings. Raised before any network I/O."""

    allowed_codes = frozenset(
        {ErrorCode.DB_CONFIG_MISSING, ErrorCode.DB_CONFIG_INVALID, ErrorCode.DB_LOCALHOST_IN_PROD}
    )

    def __init__(self, code: ErrorCode, message: str, missing_keys: tuple[str, ...] = ()) -> None:
        super().__init__(code, message)
        self.missing_keys = missing_keys


class ValidationError(SchoolDirectoryError):
    """Malformed or missing client input."""

    allowed_codes = frozenset({ErrorCode.VALIDATION_ERROR, ErrorCode.INVALID_EMAIL, ErrorCode.INVALID_CONTACT})


class StorageError(SchoolDirectoryError):
    """The image sink could not persist an upload."""

    allowed_codes = frozenset({ErrorCode.BLOB_NOT_CONFIGURED, ErrorCode.BLOB_UPLOAD_FAILED})


class PersistenceError(SchoolDirectoryError):
    """The underlying database rejected a statement."""

    allowed_codes = frozenset({ErrorCode.DB_QUERY_FAILED})

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.DB_QUERY_FAILED, message)
