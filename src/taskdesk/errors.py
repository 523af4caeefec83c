"""Application error taxonomy and the exception handlers that render it."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from typing import Any, Mapping

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from .core.context import REQUEST_ID_HEADER, bind_request_id, reset_request_id
from .schemas.envelope import ErrorEnvelope

logger = logging.getLogger(__name__)

INVALID_REFERENCE_MESSAGE = "Invalid reference to related resource"


class ErrorKind(str, Enum):
    """Categories of failure, each mapped to exactly one HTTP status."""

    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self]


_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ApplicationError(Exception):
    """Base class for domain errors raised by services and dependencies."""

    kind: ErrorKind = ErrorKind.INTERNAL
    default_message: str = "Internal server error."

    def __init__(self, message: str | None = None, *, details: Any | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        self.details = details

    @property
    def status_code(self) -> int:
        return self.kind.status_code


class ValidationError(ApplicationError):
    kind = ErrorKind.VALIDATION
    default_message = "Validation failed."


class UnauthorizedError(ApplicationError):
    kind = ErrorKind.UNAUTHORIZED
    default_message = "Authentication required."


class ForbiddenError(ApplicationError):
    kind = ErrorKind.FORBIDDEN
    default_message = "Invalid or expired token"


class NotFoundError(ApplicationError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found."


class ConflictError(ApplicationError):
    kind = ErrorKind.CONFLICT
    default_message = "Resource already exists."


class ServerError(ApplicationError):
    kind = ErrorKind.INTERNAL


class ConfigurationError(ServerError):
    """Raised when the deployment is missing required configuration."""

    default_message = "Server is misconfigured."


_KIND_BY_HTTP_STATUS: dict[int, ErrorKind] = {
    status_code: kind for kind, status_code in _STATUS_BY_KIND.items()
}


@contextmanager
def _request_scope(request: Request) -> Iterator[str | None]:
    """Re-bind the request id while a handler runs outside the middleware."""
    request_id = getattr(request.state, "request_id", None)
    token = bind_request_id(request_id) if request_id else None
    try:
        yield request_id
    finally:
        if token is not None:
            reset_request_id(token)


def _envelope(
    request_id: str | None,
    status_code: int,
    error: str,
    *,
    message: str | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    body = ErrorEnvelope(error=error, message=message).model_dump(exclude_none=True)
    response_headers = dict(headers or {})
    if request_id:
        response_headers.setdefault(REQUEST_ID_HEADER, request_id)
    return JSONResponse(status_code=status_code, content=body, headers=response_headers or None)


def _describe_validation_error(error: Mapping[str, Any]) -> str:
    location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    message = str(error.get("msg", "Invalid value"))
    return f"{'.'.join(location)}: {message}" if location else message


async def _application_error(request: Request, exc: ApplicationError) -> JSONResponse:
    with _request_scope(request) as request_id:
        log = logger.error if exc.kind is ErrorKind.INTERNAL else logger.warning
        log("Application error: %s", exc.message, extra={"kind": exc.kind.value})
        headers = {"WWW-Authenticate": "Bearer"} if exc.kind is ErrorKind.UNAUTHORIZED else None
        return _envelope(request_id, exc.status_code, exc.message, headers=headers)


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    with _request_scope(request) as request_id:
        errors = exc.errors()
        logger.warning("Request validation failed", extra={"errors": errors})
        first = _describe_validation_error(errors[0]) if errors else "Invalid request."
        return _envelope(
            request_id,
            ErrorKind.VALIDATION.status_code,
            first,
            message="Request validation failed.",
        )


def _is_foreign_key_violation(exc: IntegrityError) -> bool:
    # 23503 is the SQLSTATE for foreign_key_violation; SQLite only reports it in the message.
    if getattr(exc.orig, "sqlstate", None) == "23503":
        return True
    return "foreign key" in str(exc.orig).lower()


async def _integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
    with _request_scope(request) as request_id:
        logger.error("Database integrity error", exc_info=exc)
        if _is_foreign_key_violation(exc):
            return _envelope(request_id, ErrorKind.VALIDATION.status_code, INVALID_REFERENCE_MESSAGE)
        return _envelope(request_id, ErrorKind.CONFLICT.status_code, ConflictError.default_message)


async def _http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    with _request_scope(request) as request_id:
        logger.warning(
            "HTTP exception raised",
            extra={"status_code": exc.status_code, "path": request.url.path},
        )
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            error = f"Route {request.method} {request.url.path} not found"
        elif isinstance(exc.detail, str):
            error = exc.detail
        else:
            kind = _KIND_BY_HTTP_STATUS.get(exc.status_code)
            error = kind.value if kind is not None else "HTTP error"
        return _envelope(request_id, exc.status_code, error, headers=exc.headers)


async def _unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    with _request_scope(request) as request_id:
        logger.exception("Unhandled application error")
        settings = getattr(request.app.state, "settings", None)
        message = str(exc) if getattr(settings, "debug", False) else "Something went wrong"
        return _envelope(
            request_id,
            ErrorKind.INTERNAL.status_code,
            ServerError.default_message,
            message=message,
        )


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as an error envelope."""
    app.add_exception_handler(ApplicationError, _application_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(IntegrityError, _integrity_error)
    app.add_exception_handler(StarletteHTTPException, _http_exception)
    app.add_exception_handler(Exception, _unhandled_exception)


__all__ = [
    "ApplicationError",
    "ConfigurationError",
    "ConflictError",
    "ErrorKind",
    "INVALID_REFERENCE_MESSAGE",
    "ForbiddenError",
    "NotFoundError",
    "ServerError",
    "UnauthorizedError",
    "ValidationError",
    "register_exception_handlers",
]
