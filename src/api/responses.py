"""Turn errors into the JSON error body the frontend understands."""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from src.errors import (
    ConfigurationError,
    ErrorCode,
    PersistenceError,
    SchoolDirectoryError,
    StorageError,
    ValidationError,
)
from src.schemas.school import ErrorResponse

logger = logging.getLogger(__name__)


def status_for(exc: SchoolDirectoryError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, (ConfigurationError, StorageError, PersistenceError)):
        return 500
    raise TypeError(f"Unhandled error family: {type(exc).__name__}")


def error_response(exc: Exception, fallback: str) -> JSONResponse:
    """Log *exc* and build ``{success: false, error, code, hint?}``.

    Errors raised by this package keep their message, code and remediation
    hint. Anything else is reported as ``INTERNAL_ERROR`` with *fallback* as
    the message; the exception is logged with its traceback.
    """
    if isinstance(exc, ValidationError):
        logger.info("Rejected submission [%s]: %s", exc.code.value, exc.message)
        body = ErrorResponse(error=exc.message, code=exc.code.value)
    elif isinstance(exc, SchoolDirectoryError):
        logger.warning("%s [%s]: %s", fallback, exc.code.value, exc.message)
        body = ErrorResponse(error=exc.message, code=exc.code.value, hint=exc.hint)
    else:
        logger.error("%s: unexpected error", fallback, exc_info=exc)
        return JSONResponse(
            ErrorResponse(error=fallback, code=ErrorCode.INTERNAL_ERROR.value).model_dump(exclude_none=True),
            status_code=500,
        )
    return JSONResponse(body.model_dump(exclude_none=True), status_code=status_for(exc))


async def directory_error_handler(request: Request, exc: SchoolDirectoryError) -> JSONResponse:
    """App-level handler for errors raised while resolving route dependencies."""
    return error_response(exc, f"{request.method} {request.url.path} failed")
