"""Custom FastAPI middlewares for request context and access logging."""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Iterable
from uuid import uuid4

from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from flashdeck.core.errors import ErrorCode, error_response
from flashdeck.core.logging import bind_request_id, reset_request_id

# Incoming ids end up in every log line; accept only short, printable tokens.
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a stable request_id to each request for correlation."""

    header_name = "X-Request-ID"

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        incoming_request_id = request.headers.get(self.header_name)
        if incoming_request_id and _REQUEST_ID_PATTERN.match(incoming_request_id):
            request_id = incoming_request_id
        else:
            request_id = uuid4().hex

        request.state.request_id = request_id
        token = bind_request_id(request_id)

        try:
            response = await call_next(request)
        finally:
            reset_request_id(token)

        response.headers[self.header_name] = request_id
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Emit structured access logs; paths listed in ``quiet_paths`` log at DEBUG."""

    def __init__(
        self,
        app: ASGIApp,
        logger_name: str = "flashdeck.access",
        quiet_paths: Iterable[str] = ("/health", "/metrics"),
    ) -> None:
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)
        self.quiet_paths = frozenset(quiet_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            self._log(request, status.HTTP_500_INTERNAL_SERVER_ERROR, start)
            raise

        self._log(request, response.status_code, start)
        return response

    def _log(self, request: Request, status_code: int, start: float) -> None:
        duration_ms = (time.perf_counter() - start) * 1000
        if status_code >= 500:
            level = logging.ERROR
        elif request.url.path in self.quiet_paths:
            level = logging.DEBUG
        else:
            level = logging.INFO

        self.logger.log(
            level,
            "access",
            extra={
                "event": "access",
                "http_method": request.method,
                "http_path": request.url.path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
                "client_ip": request.client.host if request.client else None,
                "user_agent": request.headers.get("user-agent"),
            },
        )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Attach a minimal set of security headers (HSTS, X-Frame-Options, etc.).

    Responses carrying tokens or user data are marked ``no-store``. HSTS is
    only enabled when explicitly requested to avoid forcing HTTPS on local
    development hosts.
    """

    def __init__(self, app: ASGIApp, enable_hsts: bool = False, api_prefix: str = "/api") -> None:
        super().__init__(app)
        self.enable_hsts = enable_hsts
        self.api_prefix = api_prefix

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)

        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "same-origin")
        if request.url.path.startswith(self.api_prefix):
            response.headers.setdefault("Cache-Control", "no-store")

        if self.enable_hsts:
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains",
            )

        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose body exceeds the configured upper bound."""

    def __init__(self, app: ASGIApp, max_request_bytes: int) -> None:
        if max_request_bytes <= 0:
            raise ValueError("max_request_bytes must be greater than zero.")
        super().__init__(app)
        self.max_request_bytes = max_request_bytes

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method in {"GET", "HEAD", "OPTIONS"}:
            return await call_next(request)

        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            if int(content_length) > self.max_request_bytes:
                return self._payload_too_large_response()

        body = await request.body()
        if len(body) > self.max_request_bytes:
            return self._payload_too_large_response()

        return await call_next(request)

    def _payload_too_large_response(self) -> Response:
        return error_response(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            code=ErrorCode.PAYLOAD_TOO_LARGE,
            message=f"Request body exceeds {self.max_request_bytes} bytes.",
        )


__all__ = [
    "AccessLogMiddleware",
    "RequestIDMiddleware",
    "RequestSizeLimitMiddleware",
    "SecurityHeadersMiddleware",
]
