"""Repository helpers for Deck entities."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Any, Literal

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.orm import InstrumentedAttribute

from flashdeck.models.card import Card
from flashdeck.models.deck import Deck
from flashdeck.repositories.base import BaseRepository, order_clause, search_clause


class DeckRepository(BaseRepository[Deck]):
    """Persistence primitives for Deck objects."""

    SORTABLE_FIELDS: dict[str, InstrumentedAttribute[Any]] = {
        "name": Deck.name,
        "created_at": Deck.created_at,
        "updated_at": Deck.updated_at,
        "card_count": Deck.card_count,
    }

    async def create(
        self,
        *,
        user_id: uuid.UUID,
        name: str,
        description: str | None = None,
    ) -> Deck:
        deck = Deck(user_id=user_id, name=name, description=description, card_count=0)
        return await self.add(deck)

    async def get_for_user(self, deck_id: uuid.UUID, user_id: uuid.UUID) -> Deck | None:
        stmt = select(Deck).where(Deck.id == deck_id, Deck.user_id == user_id)

        async def _fetch() -> Deck | None:
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()

        return await self._run(_fetch)

    async def list_for_user(
        self,
        user_id: uuid.UUID,
        *,
        search: str | None = None,
        sort_by: str = "created_at",
        sort_order: Literal["asc", "desc"] = "desc",
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Deck], int]:
        column = self.SORTABLE_FIELDS[sort_by]
        stmt: Select[tuple[Deck]] = (
            select(Deck)
            .where(Deck.user_id == user_id)
            .order_by(order_clause(column, sort_order), Deck.id)
        )
        if search:
            stmt = stmt.where(search_clause(search, Deck.name, Deck.description))

        return await self._paginate(stmt, offset=offset, limit=limit)

    async def search_for_user(
        self,
        user_id: uuid.UUID,
        query: str,
        *,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Deck], int]:
        stmt: Select[tuple[Deck]] = (
            select(Deck)
            .where(Deck.user_id == user_id, search_clause(query, Deck.name, Deck.description))
            .order_by(Deck.updated_at.desc(), Deck.id)
        )
        return await self._paginate(stmt, offset=offset, limit=limit)

    async def update(self, deck: Deck, **fields: Any) -> Deck:
        """Apply a partial update of ``name`` and/or ``description``."""
        unknown = set(fields) - {"name", "description"}
        if unknown:
            raise ValueError(f"Unsupported deck fields: {sorted(unknown)}")
        return await self.apply_update(deck, fields)

    async def delete(self, deck_id: uuid.UUID) -> None:
        """Remove the deck and all of its cards in the current transaction."""

        async def _delete() -> None:
            await self.session.execute(delete(Card).where(Card.deck_id == deck_id))
            await self.session.execute(delete(Deck).where(Deck.id == deck_id))

        await self._run(_delete)

    async def set_card_count(self, deck_id: uuid.UUID, card_count: int) -> None:
        stmt = update(Deck).where(Deck.id == deck_id).values(card_count=card_count)

        async def _update() -> None:
            await self.session.execute(stmt)

        await self._run(_update)

    async def card_counters(
        self,
        deck_ids: Sequence[uuid.UUID],
    ) -> dict[uuid.UUID, tuple[int, int]]:
        """Return ``{deck_id: (total, memorized)}`` for the given decks."""
        if not deck_ids:
            return {}

        stmt = (
            select(
                Card.deck_id,
                func.count().label("total"),
                func.count().filter(Card.memorized.is_(True)).label("memorized"),
            )
            .where(Card.deck_id.in_(deck_ids))
            .group_by(Card.deck_id)
        )

        async def _fetch() -> dict[uuid.UUID, tuple[int, int]]:
            result = await self.session.execute(stmt)
            return {row.deck_id: (int(row.total), int(row.memorized)) for row in result}

        return await self._run(_fetch)


__all__ = ["DeckRepository"]
