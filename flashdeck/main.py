"""FastAPI application factory and entrypoint."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flashdeck.api.routes import api_router, root_router
from flashdeck.core.config import settings
from flashdeck.core.db import create_schema, database
from flashdeck.core.errors import register_exception_handlers
from flashdeck.core.logging import configure_logging
from flashdeck.core.metrics import setup_metrics
from flashdeck.core.middleware import (
    AccessLogMiddleware,
    RequestIDMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
)
from flashdeck.core.version import APP_VERSION

ALLOWED_METHODS = ["GET", "POST", "PATCH", "PUT", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Authorization", "Content-Type", "Accept", "X-Requested-With", "X-Request-ID"]

configure_logging(settings.log_level)

logger = logging.getLogger("flashdeck.app")


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""

    application = FastAPI(
        title=settings.project_name,
        debug=settings.debug,
        version=APP_VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    register_exception_handlers(application)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
        max_age=86400,
    )

    setup_metrics(application)

    application.add_middleware(
        SecurityHeadersMiddleware,
        enable_hsts=settings.environment in {"staging", "production"},
        api_prefix=settings.api_v1_prefix,
    )
    application.add_middleware(AccessLogMiddleware)
    application.add_middleware(
        RequestSizeLimitMiddleware,
        max_request_bytes=settings.max_request_bytes,
    )
    application.add_middleware(RequestIDMiddleware)

    application.include_router(root_router)
    application.include_router(api_router)

    @application.on_event("startup")
    async def _start_database() -> None:
        connected = await database.warmup()
        if connected and settings.db_auto_create_schema:
            await create_schema()
        logger.info(
            "Application started",
            extra={"environment": settings.environment, "database_ready": connected},
        )
        if settings.db_keepalive_enabled:
            database.start_keepalive()

    @application.on_event("shutdown")
    async def _stop_database() -> None:
        await database.shutdown()
        logger.info("Application stopped")

    return application


app = create_app()

__all__ = ["app", "create_app"]
