from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Internal server error"


class TrackerError(Exception):
    """Base class for errors that map onto an HTTP status at the request boundary."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(TrackerError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(TrackerError):
    """Missing credentials (401) or a token that failed verification (403)."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ConflictError(TrackerError):
    status_code = status.HTTP_409_CONFLICT


class PersistenceError(TrackerError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"error": message}
        super().__init__(payload, status_code=status_code, headers=headers)


async def tracker_error_handler(request: Request, exc: TrackerError):
    if isinstance(exc, PersistenceError):
        # Storage details stay in the logs.
        return ErrorEnvelope(status_code=exc.status_code, message=GENERIC_SERVER_ERROR)
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return ErrorEnvelope(status_code=exc.status_code, message=exc.message, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    message = detail if isinstance(detail, str) and detail else "Error"
    return ErrorEnvelope(status_code=exc.status_code, message=message, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        return ErrorEnvelope(status_code=status.HTTP_400_BAD_REQUEST, message="Malformed JSON body")
    fields = [".".join(str(part) for part in err.get("loc", ())[1:]) for err in errors]
    fields = [name for name in fields if name]
    message = f"Invalid request: {', '.join(fields)}" if fields else "Invalid request body"
    logger.info("request.invalid", extra={"extra_data": {"path": request.url.path, "fields": fields}})
    return ErrorEnvelope(status_code=status.HTTP_400_BAD_REQUEST, message=message)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("request.failed", extra={"extra_data": {"path": request.url.path}})
    return ErrorEnvelope(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, message=GENERIC_SERVER_ERROR)


def register_exception_handlers(app) -> None:
    app.add_exception_handler(TrackerError, tracker_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = [
    "AuthError",
    "ConflictError",
    "ErrorEnvelope",
    "GENERIC_SERVER_ERROR",
    "PersistenceError",
    "TrackerError",
    "ValidationError",
    "register_exception_handlers",
]
