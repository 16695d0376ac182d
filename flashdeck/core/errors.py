"""Shared error primitives and FastAPI exception handlers."""

from __future__ import annotations

import logging
from enum import StrEnum
from http import HTTPStatus
from typing import Awaitable, Callable, Mapping, Sequence, cast

from fastapi import FastAPI, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from flashdeck.core.config import settings

ExceptionHandlerCallable = Callable[[Request, Exception], Awaitable[Response]]

logger = logging.getLogger("flashdeck.errors")


class ErrorCode(StrEnum):
    """Canonical error codes rendered in the public error envelope."""

    # Authentication
    AUTH_FAILED = "AUTH_FAILED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"  # noqa: S105
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    FORBIDDEN = "FORBIDDEN"

    # Validation
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Resources
    DECK_NOT_FOUND = "DECK_NOT_FOUND"
    CARD_NOT_FOUND = "CARD_NOT_FOUND"
    NOT_FOUND = "NOT_FOUND"
    EMAIL_TAKEN = "EMAIL_TAKEN"

    # Infrastructure
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Transport/common
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    CONFLICT = "CONFLICT"


class ApplicationError(Exception):
    """Domain/business error that should be rendered in the public API."""

    def __init__(
        self,
        code: ErrorCode | str,
        message: str,
        *,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: object | None = None,
    ) -> None:
        super().__init__(message)
        self.code = str(code)
        self.message = message
        self.status_code = status_code
        self.details = details


class ValidationFailedError(ApplicationError):
    """400 error for input the service refuses to process."""

    def __init__(self, message: str, *, details: object | None = None) -> None:
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


class UnauthorizedError(ApplicationError):
    """401 error for bad, missing, or expired credentials."""

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | str = ErrorCode.AUTH_FAILED,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class NotFoundError(ApplicationError):
    """404 error with a domain specific code."""

    def __init__(
        self,
        code: ErrorCode | str,
        message: str,
        *,
        details: object | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
        )


class ConflictError(ApplicationError):
    """409 error for duplicate/conflict scenarios."""

    def __init__(
        self,
        code: ErrorCode | str,
        message: str,
        *,
        details: object | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
        )


class ExternalServiceError(ApplicationError):
    """502/503 error when dependencies fail."""

    def __init__(
        self,
        code: ErrorCode | str,
        message: str,
        *,
        status_code: int = status.HTTP_502_BAD_GATEWAY,
        details: object | None = None,
    ) -> None:
        if status_code not in (status.HTTP_502_BAD_GATEWAY, status.HTTP_503_SERVICE_UNAVAILABLE):
            raise ValueError("External service errors must map to 502 or 503.")
        super().__init__(
            code=code,
            message=message,
            status_code=status_code,
            details=details,
        )


class DatabaseUnavailableError(ExternalServiceError):
    """Raised once the database stays unreachable after reconnect and retries."""

    def __init__(self, message: str = "Database is temporarily unavailable.") -> None:
        super().__init__(
            code=ErrorCode.DATABASE_ERROR,
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach global exception handlers to the FastAPI app."""

    app.add_exception_handler(
        ApplicationError,
        cast(ExceptionHandlerCallable, application_error_handler),
    )
    app.add_exception_handler(
        RequestValidationError,
        cast(ExceptionHandlerCallable, request_validation_exception_handler),
    )
    app.add_exception_handler(
        StarletteHTTPException,
        cast(ExceptionHandlerCallable, http_exception_handler),
    )
    app.add_exception_handler(
        Exception,
        cast(ExceptionHandlerCallable, unexpected_exception_handler),
    )


async def application_error_handler(request: Request, exc: ApplicationError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return error_response(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
        error=_raw_error(exc.__cause__),
        headers=headers,
    )


async def request_validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    details = _format_validation_errors(exc)
    return error_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        code=ErrorCode.VALIDATION_ERROR,
        message="Validation failed",
        details=details or None,
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    detail = exc.detail

    if isinstance(detail, Mapping):
        code = _coerce_code(detail.get("code"))
        message = str(detail.get("message") or HTTPStatus(exc.status_code).phrase)
        details = detail.get("details")
    else:
        code = _default_code_for_status(exc.status_code)
        message = str(detail or HTTPStatus(exc.status_code).phrase)
        details = None

    return error_response(
        status_code=exc.status_code,
        code=code,
        message=message,
        details=details,
        headers=dict(exc.headers) if exc.headers else None,
    )


async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception during request",
        exc_info=(exc.__class__, exc, exc.__traceback__),
    )
    return error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code=ErrorCode.INTERNAL_ERROR,
        message="Internal server error. Please try again later.",
        error=_raw_error(exc),
    )


def error_response(
    *,
    status_code: int,
    code: ErrorCode | str,
    message: str,
    details: object | None = None,
    error: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Return JSONResponse adhering to the public error contract."""
    body = build_error_payload(code=code, message=message, details=details, error=error)
    return JSONResponse(content=jsonable_encoder(body), status_code=status_code, headers=headers)


def build_error_payload(
    *,
    code: ErrorCode | str,
    message: str,
    details: object | None = None,
    error: str | None = None,
) -> dict[str, object]:
    payload: dict[str, object] = {
        "success": False,
        "message": message,
        "code": _coerce_code(code),
    }

    if details is not None:
        payload["errors"] = details
    if error is not None:
        payload["error"] = error

    return payload


def _raw_error(exc: BaseException | None) -> str | None:
    if exc is None or not settings.expose_error_details:
        return None
    return str(exc) or exc.__class__.__name__


def _format_validation_errors(exc: RequestValidationError) -> dict[str, str]:
    formatted: dict[str, str] = {}
    for error in exc.errors():
        loc = error.get("loc") or ()
        field = _format_error_location(loc)
        message = error.get("msg", "Invalid value")
        if field in formatted:
            formatted[field] = f"{formatted[field]}; {message}"
        else:
            formatted[field] = message
    return formatted


def _format_error_location(location: Sequence[object]) -> str:
    filtered = [
        str(part)
        for part in location
        if part not in {"body", "query", "path"}  # hide transport-specific prefixes
    ]
    if not filtered:
        filtered = [str(part) for part in location]
    return ".".join(filtered) if filtered else "_schema"


def _default_code_for_status(status_code: int) -> str:
    mapping: dict[int, ErrorCode] = {
        status.HTTP_400_BAD_REQUEST: ErrorCode.VALIDATION_ERROR,
        status.HTTP_401_UNAUTHORIZED: ErrorCode.AUTH_FAILED,
        status.HTTP_403_FORBIDDEN: ErrorCode.FORBIDDEN,
        status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
        status.HTTP_405_METHOD_NOT_ALLOWED: ErrorCode.METHOD_NOT_ALLOWED,
        status.HTTP_409_CONFLICT: ErrorCode.CONFLICT,
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: ErrorCode.PAYLOAD_TOO_LARGE,
        status.HTTP_500_INTERNAL_SERVER_ERROR: ErrorCode.INTERNAL_ERROR,
        status.HTTP_502_BAD_GATEWAY: ErrorCode.SERVICE_UNAVAILABLE,
        status.HTTP_503_SERVICE_UNAVAILABLE: ErrorCode.SERVICE_UNAVAILABLE,
    }
    return mapping.get(status_code, ErrorCode.INTERNAL_ERROR)


def _coerce_code(code: ErrorCode | str | None) -> str:
    if code is None:
        return ErrorCode.INTERNAL_ERROR
    return str(code)


__all__ = [
    "ApplicationError",
    "ConflictError",
    "DatabaseUnavailableError",
    "ErrorCode",
    "ExternalServiceError",
    "NotFoundError",
    "UnauthorizedError",
    "ValidationFailedError",
    "application_error_handler",
    "build_error_payload",
    "error_response",
    "http_exception_handler",
    "register_exception_handlers",
    "request_validation_exception_handler",
    "unexpected_exception_handler",
]
