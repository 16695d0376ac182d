"""Health check endpoint."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Final, Literal

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, Field

from flashdeck.core.db import database
from flashdeck.core.version import APP_VERSION

router = APIRouter()

STARTED_AT: Final[float] = time.monotonic()


class HealthResponse(BaseModel):
    """Schema returned by the /health endpoint."""

    status: Literal["healthy", "unhealthy"]
    timestamp: datetime
    checks: dict[str, str]
    version: str = Field(default=APP_VERSION)
    uptime_seconds: float


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"model": HealthResponse}},
    summary="Health check",
    tags=["health"],
)
async def health(response: Response) -> HealthResponse:
    """
    Return the current application health snapshot.

    The database check reuses the gateway liveness query and reports 503 when
    the pool cannot reach the server.
    """
    database_ok = await database.ping()
    if not database_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="healthy" if database_ok else "unhealthy",
        timestamp=datetime.now(tz=timezone.utc),
        checks={"database": "ok" if database_ok else "unavailable"},
        version=APP_VERSION,
        uptime_seconds=round(time.monotonic() - STARTED_AT, 3),
    )


__all__ = ["HealthResponse", "router"]
