"""Common helpers for repository implementations."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Generic, Literal, TypeVar, cast

from sqlalchemy import ColumnElement, Select, func, inspect, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from flashdeck.core.db import DatabaseGateway, database

ModelT = TypeVar("ModelT")
T = TypeVar("T")

LIKE_ESCAPE = "\\"


def search_clause(term: str, *columns: InstrumentedAttribute[Any]) -> ColumnElement[bool]:
    """Case-insensitive substring match of ``term`` over ``columns``, OR-combined."""
    escaped = (
        term.lower()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )
    pattern = f"%{escaped}%"
    return or_(*(func.lower(column).like(pattern, escape=LIKE_ESCAPE) for column in columns))


def order_clause(
    column: InstrumentedAttribute[Any],
    direction: Literal["asc", "desc"],
) -> ColumnElement[Any]:
    return column.asc() if direction == "asc" else column.desc()


class BaseRepository(Generic[ModelT]):
    """Stores the AsyncSession and routes every round-trip through the gateway."""

    def __init__(self, session: AsyncSession, gateway: DatabaseGateway | None = None) -> None:
        self.session = session
        self.gateway = gateway or database

    async def _run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Execute a unit of work with reconnect/retry, resetting the session between tries.

        Rolling back expires every instance the session holds, including the
        authenticated user and rows fetched earlier in the request. The next
        attempt reloads them first so callers can keep reading plain
        attributes; lazy loads outside the greenlet would fail otherwise.
        """
        expired: list[object] = []

        async def _reset() -> None:
            expired[:] = list(self.session.identity_map.values())
            await self.session.rollback()

        async def _attempt() -> T:
            while expired:
                instance = expired.pop()
                # Rows inserted by the rolled back attempt were expunged.
                if instance in self.session:
                    await self.session.refresh(instance)
            return await operation()

        return await self.gateway.run(_attempt, on_retry=_reset)

    async def add(self, instance: ModelT) -> ModelT:
        """Add model to session handling async mocks in tests."""

        async def _add() -> ModelT:
            add_result = cast(object, self.session.add(instance))
            if isinstance(add_result, Awaitable):
                await add_result
            await self.session.flush()
            return instance

        return await self._run(_add)

    async def apply_update(self, instance: ModelT, values: dict[str, Any]) -> ModelT:
        """Write ``values`` with a single UPDATE and reload the instance.

        The statement is keyed by the persisted identity so a retry after a
        rollback replays the same write instead of flushing a reverted object.
        """
        if not values:
            return instance

        model = type(instance)
        identity = inspect(instance).identity
        if identity is None:
            raise ValueError(f"{model.__name__} must be persisted before it can be updated.")

        stmt = update(model).where(model.id == identity[0]).values(**values)  # type: ignore[attr-defined]

        async def _update() -> ModelT:
            await self.session.execute(stmt)
            await self.session.refresh(instance)
            return instance

        return await self._run(_update)

    async def commit(self) -> None:
        """Commit once; a lost connection here must not replay an empty transaction."""
        await self.gateway.run(self.session.commit, max_retries=1)

    async def _paginate(
        self,
        stmt: Select[tuple[ModelT]],
        *,
        offset: int,
        limit: int,
    ) -> tuple[list[ModelT], int]:
        """Return one page of ``stmt`` plus the total matching the same filter."""
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())

        async def _fetch() -> tuple[list[ModelT], int]:
            result = await self.session.execute(stmt.offset(offset).limit(limit))
            items = list(result.scalars().unique())
            total_result = await self.session.execute(count_stmt)
            return items, int(total_result.scalar_one())

        return await self._run(_fetch)


__all__ = ["BaseRepository", "order_clause", "search_clause"]
