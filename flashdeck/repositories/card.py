"""Repositories for card persistence."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime
from typing import Any, Literal, NamedTuple

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.orm import InstrumentedAttribute

from flashdeck.models.card import Card
from flashdeck.models.deck import Deck
from flashdeck.repositories.base import BaseRepository, order_clause, search_clause


class CardCounters(NamedTuple):
    total: int
    memorized: int
    recent: int


class CardRepository(BaseRepository[Card]):
    """Query helpers for Card entities."""

    SORTABLE_FIELDS: dict[str, InstrumentedAttribute[Any]] = {
        "front_text": Card.front_text,
        "back_text": Card.back_text,
        "memorized": Card.memorized,
        "created_at": Card.created_at,
        "updated_at": Card.updated_at,
    }

    async def create(
        self,
        *,
        deck_id: uuid.UUID,
        front_text: str,
        back_text: str,
        memorized: bool = False,
    ) -> Card:
        card = Card(
            deck_id=deck_id,
            front_text=front_text,
            back_text=back_text,
            memorized=memorized,
        )
        return await self.add(card)

    async def get_for_user(self, card_id: uuid.UUID, user_id: uuid.UUID) -> Card | None:
        """Fetch a card only when its deck belongs to ``user_id``."""
        stmt = (
            select(Card)
            .join(Deck, Card.deck_id == Deck.id)
            .where(Card.id == card_id, Deck.user_id == user_id)
        )

        async def _fetch() -> Card | None:
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()

        return await self._run(_fetch)

    async def list_for_deck(
        self,
        deck_id: uuid.UUID,
        *,
        search: str | None = None,
        memorized: bool | None = None,
        sort_by: str = "created_at",
        sort_order: Literal["asc", "desc"] = "desc",
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Card], int]:
        column = self.SORTABLE_FIELDS[sort_by]
        stmt: Select[tuple[Card]] = (
            select(Card)
            .where(Card.deck_id == deck_id)
            .order_by(order_clause(column, sort_order), Card.id)
        )
        if memorized is not None:
            stmt = stmt.where(Card.memorized.is_(memorized))
        if search:
            stmt = stmt.where(search_clause(search, Card.front_text, Card.back_text))

        return await self._paginate(stmt, offset=offset, limit=limit)

    async def list_for_deck_detail(self, deck_id: uuid.UUID) -> list[Card]:
        """Every card of a deck, newest first."""
        stmt = (
            select(Card)
            .where(Card.deck_id == deck_id)
            .order_by(Card.created_at.desc(), Card.id)
        )

        async def _fetch() -> list[Card]:
            result = await self.session.execute(stmt)
            return list(result.scalars().unique())

        return await self._run(_fetch)

    async def search_for_user(
        self,
        user_id: uuid.UUID,
        query: str,
        *,
        deck_id: uuid.UUID | None = None,
        memorized: bool | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Card], int]:
        stmt: Select[tuple[Card]] = (
            select(Card)
            .join(Deck, Card.deck_id == Deck.id)
            .where(
                Deck.user_id == user_id,
                search_clause(query, Card.front_text, Card.back_text),
            )
            .order_by(Card.updated_at.desc(), Card.id)
        )
        if deck_id is not None:
            stmt = stmt.where(Card.deck_id == deck_id)
        if memorized is not None:
            stmt = stmt.where(Card.memorized.is_(memorized))

        return await self._paginate(stmt, offset=offset, limit=limit)

    async def list_for_study(
        self,
        deck_id: uuid.UUID,
        *,
        limit: int = 20,
        memorized: bool | None = None,
    ) -> list[Card]:
        """Unmemorized first, then least recently touched."""
        stmt: Select[tuple[Card]] = (
            select(Card)
            .where(Card.deck_id == deck_id)
            .order_by(Card.memorized.asc(), Card.updated_at.asc(), Card.id)
            .limit(limit)
        )
        if memorized is not None:
            stmt = stmt.where(Card.memorized.is_(memorized))

        async def _fetch() -> list[Card]:
            result = await self.session.execute(stmt)
            return list(result.scalars().unique())

        return await self._run(_fetch)

    async def count_for_deck(self, deck_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(Card).where(Card.deck_id == deck_id)

        async def _fetch() -> int:
            result = await self.session.execute(stmt)
            return int(result.scalar_one())

        return await self._run(_fetch)

    async def stats_for_deck(
        self,
        deck_id: uuid.UUID,
        *,
        since: datetime,
    ) -> CardCounters:
        stmt = select(
            func.count().label("total"),
            func.count().filter(Card.memorized.is_(True)).label("memorized"),
            func.count().filter(Card.created_at >= since).label("recent"),
        ).where(Card.deck_id == deck_id)

        async def _fetch() -> CardCounters:
            result = await self.session.execute(stmt)
            row = result.one()
            return CardCounters(
                total=int(row.total or 0),
                memorized=int(row.memorized or 0),
                recent=int(row.recent or 0),
            )

        return await self._run(_fetch)

    async def update(self, card: Card, **fields: Any) -> Card:
        unknown = set(fields) - {"front_text", "back_text", "memorized"}
        if unknown:
            raise ValueError(f"Unsupported card fields: {sorted(unknown)}")
        return await self.apply_update(card, fields)

    async def delete(self, card_id: uuid.UUID) -> None:
        stmt = delete(Card).where(Card.id == card_id)

        async def _delete() -> None:
            await self.session.execute(stmt)

        await self._run(_delete)

    async def set_memorized_bulk(
        self,
        deck_id: uuid.UUID,
        card_ids: Sequence[uuid.UUID],
        memorized: bool,
    ) -> int:
        """Update only cards that are both listed and inside ``deck_id``."""
        if not card_ids:
            return 0

        stmt = (
            update(Card)
            .where(Card.id.in_(list(card_ids)), Card.deck_id == deck_id)
            .values(memorized=memorized)
        )

        async def _update() -> int:
            result = await self.session.execute(stmt)
            return int(getattr(result, "rowcount", 0) or 0)

        return await self._run(_update)


__all__ = ["CardCounters", "CardRepository"]
