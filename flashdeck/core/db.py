"""Database engine, session configuration and the resilient persistence gateway.

Every repository call goes through :class:`DatabaseGateway.run`, which retries
a unit of work after connectivity failures (reconnecting in between with a
capped exponential backoff) and lets every other error propagate untouched.
The gateway also owns the process-wide keep-alive task that stops hosted
databases from evicting idle connections.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any, Final, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, DisconnectionError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from flashdeck.core.config import settings
from flashdeck.core.errors import DatabaseUnavailableError
from flashdeck.core.metrics import DB_KEEPALIVE_PINGS, DB_RECONNECTS, DB_RETRIES
from flashdeck.models import Base

T = TypeVar("T")

logger = logging.getLogger("flashdeck.db")

TRANSIENT_MESSAGE_MARKERS: Final[tuple[str, ...]] = (
    "can't reach database",
    "connection refused",
    "connection terminated",
    "connection closed",
    "connection is closed",
    "connection was closed",
    "connection reset",
    "could not connect",
    "server closed the connection",
)


def is_transient_error(exc: BaseException) -> bool:
    """Return True when ``exc`` signals lost connectivity rather than a query failure."""

    if isinstance(exc, (DatabaseUnavailableError, DisconnectionError, ConnectionError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in TRANSIENT_MESSAGE_MARKERS)


class DatabaseGateway:
    """Single point of database access with reconnect, retry and keep-alive."""

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        max_retries: int = 2,
        base_delay: float = 1.0,
        max_delay: float = 5.0,
        keepalive_interval: float = 240.0,
        keepalive_idle: float = 60.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1.")
        self.engine = engine
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.keepalive_interval = keepalive_interval
        self.keepalive_idle = keepalive_idle
        self._sleep = sleep
        self._clock = clock
        self._last_activity: float | None = None
        self._keepalive_task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()

    #
    # Unit-of-work execution
    #
    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        max_retries: int | None = None,
        *,
        on_retry: Callable[[], Awaitable[None]] | None = None,
    ) -> T:
        """
        Await ``operation()`` and return its result.

        Connectivity failures trigger a reconnect and another attempt after
        ``min(base_delay * 2 ** (attempt - 1), max_delay)`` seconds, up to
        ``max_retries`` attempts in total. ``on_retry`` runs before every
        repeated attempt so callers can reset session state.

        Raises:
            DatabaseUnavailableError: connectivity did not recover in time.
        """
        attempts = self.max_retries if max_retries is None else max_retries
        if attempts < 1:
            raise ValueError("max_retries must be at least 1.")

        retrying = AsyncRetrying(
            sleep=self._sleep,
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=self.base_delay, max=self.max_delay),
            retry=retry_if_exception(is_transient_error),
            before_sleep=self._log_retry,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        await self._recover(on_retry)
                    result = await operation()
        except DatabaseUnavailableError:
            raise
        except Exception as exc:
            if not is_transient_error(exc):
                raise
            logger.error(
                "Database operation failed after retries",
                extra={"attempts": attempts, "error": str(exc)},
            )
            raise DatabaseUnavailableError() from exc

        self.touch()
        return result

    async def _recover(self, on_retry: Callable[[], Awaitable[None]] | None) -> None:
        if on_retry is not None:
            try:
                await on_retry()
            except Exception:  # noqa: BLE001
                logger.warning("Failed to reset session before retry", exc_info=True)
        await self.ensure_connection()

    def _log_retry(self, retry_state: RetryCallState) -> None:
        DB_RETRIES.inc()
        outcome = retry_state.outcome
        error = outcome.exception() if outcome is not None else None
        delay = retry_state.next_action.sleep if retry_state.next_action else None
        logger.warning(
            "Database operation failed, retrying",
            extra={
                "attempt": retry_state.attempt_number,
                "delay_seconds": delay,
                "error": str(error) if error else None,
            },
        )

    #
    # Connectivity
    #
    async def ping(self) -> bool:
        """Issue a trivial liveness query and report whether it succeeded."""
        try:
            await self._execute_ping()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Database ping failed", extra={"error": str(exc)})
            return False
        return True

    async def ensure_connection(self) -> None:
        """Verify connectivity, running a full dispose/reconnect cycle if needed."""
        if await self.ping():
            return

        logger.warning("Database connection lost, attempting to reconnect")
        DB_RECONNECTS.inc()
        try:
            await self.engine.dispose()
            await self._execute_ping()
        except Exception as exc:
            logger.error("Failed to reconnect to database", extra={"error": str(exc)})
            raise DatabaseUnavailableError() from exc
        logger.info("Database reconnected successfully")

    async def _execute_ping(self) -> None:
        async with self.engine.connect() as connection:
            await connection.execute(text("SELECT 1"))

    def touch(self) -> None:
        """Record real database activity."""
        self._last_activity = self._clock()

    def idle_seconds(self) -> float:
        if self._last_activity is None:
            return math.inf
        return self._clock() - self._last_activity

    #
    # Lifecycle
    #
    async def warmup(self) -> bool:
        """Establish connectivity eagerly; failures are logged, not raised."""
        logger.info("Warming up database connection")
        try:
            await self.ensure_connection()
        except DatabaseUnavailableError:
            logger.exception("Database warmup failed")
            return False
        logger.info("Database warmed up successfully")
        return True

    @property
    def keepalive_running(self) -> bool:
        return self._keepalive_task is not None

    def start_keepalive(self) -> None:
        if self._keepalive_task is not None:
            return
        self._stop_event.clear()
        self._keepalive_task = asyncio.create_task(self._keepalive_loop(), name="db-keepalive")
        logger.info(
            "Database keep-alive started",
            extra={
                "interval_seconds": self.keepalive_interval,
                "idle_seconds": self.keepalive_idle,
            },
        )

    async def stop_keepalive(self) -> None:
        if self._keepalive_task is None:
            return
        self._stop_event.set()
        await self._keepalive_task
        self._keepalive_task = None
        logger.info("Database keep-alive stopped")

    async def shutdown(self) -> None:
        """Cancel the keep-alive task and release pooled connections."""
        await self.stop_keepalive()
        logger.info("Disconnecting from database")
        await self.engine.dispose()

    async def _keepalive_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.keepalive_interval)
                continue
            except asyncio.TimeoutError:
                pass

            try:
                await self.keepalive_tick()
            except Exception:  # noqa: BLE001
                logger.exception("Database keep-alive cycle failed")

    async def keepalive_tick(self) -> str:
        """Run one keep-alive cycle and return its outcome label."""
        if self.idle_seconds() < self.keepalive_idle:
            DB_KEEPALIVE_PINGS.labels(result="skipped").inc()
            return "skipped"

        if await self.ping():
            DB_KEEPALIVE_PINGS.labels(result="ok").inc()
            logger.debug("Database keep-alive ping successful")
            return "ok"

        try:
            await self.ensure_connection()
        except DatabaseUnavailableError:
            DB_KEEPALIVE_PINGS.labels(result="failed").inc()
            logger.error("Failed to reconnect after keep-alive ping failure")
            return "failed"

        DB_KEEPALIVE_PINGS.labels(result="reconnected").inc()
        logger.info("Database reconnected after keep-alive ping failure")
        return "reconnected"


def _build_engine() -> AsyncEngine:
    options: dict[str, Any] = {"echo": settings.sql_echo, "pool_pre_ping": True}
    if not settings.database_url.startswith("sqlite"):
        options["pool_size"] = settings.db_pool_size
        options["pool_timeout"] = settings.db_pool_timeout_seconds
    return create_async_engine(settings.database_url, **options)


engine: AsyncEngine = _build_engine()
AsyncSessionFactory = async_sessionmaker(engine, expire_on_commit=False)

database = DatabaseGateway(
    engine,
    max_retries=settings.db_max_retries,
    base_delay=settings.db_retry_base_delay_seconds,
    max_delay=settings.db_retry_max_delay_seconds,
    keepalive_interval=settings.db_keepalive_interval_seconds,
    keepalive_idle=settings.db_keepalive_idle_seconds,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields a scoped AsyncSession."""

    async with AsyncSessionFactory() as session:
        yield session


async def create_schema() -> None:
    """Create missing tables; existing tables are left untouched."""

    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Close the global engine (used in application shutdown hooks or tests)."""

    await engine.dispose()


__all__ = [
    "AsyncSessionFactory",
    "DatabaseGateway",
    "create_schema",
    "database",
    "dispose_engine",
    "engine",
    "get_session",
    "is_transient_error",
]
