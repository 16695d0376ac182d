"""Business logic for deck management and progress statistics."""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta

from flashdeck.core.errors import ErrorCode, NotFoundError, ValidationFailedError
from flashdeck.models.base import utcnow
from flashdeck.models.deck import Deck
from flashdeck.models.user import User
from flashdeck.repositories.card import CardRepository
from flashdeck.repositories.deck import DeckRepository
from flashdeck.schemas.card import CardResponse
from flashdeck.schemas.common import ListParams, PaginationMeta
from flashdeck.schemas.deck import (
    DeckCardStats,
    DeckDetail,
    DeckResponse,
    DeckStatsResponse,
    DeckSummary,
)
from flashdeck.services.card import progress_percentage, require_search_query, validate_sort_field

logger = logging.getLogger("flashdeck.services.decks")

RECENT_CARDS_WINDOW = timedelta(days=7)


def _clean_description(description: str | None) -> str | None:
    if description is None:
        return None
    stripped = description.strip()
    return stripped or None


class DeckService:
    """High-level operations for deck management."""

    def __init__(self, deck_repo: DeckRepository, card_repo: CardRepository) -> None:
        self.deck_repo = deck_repo
        self.card_repo = card_repo

    async def get_user_deck(self, user: User, deck_id: uuid.UUID) -> Deck:
        """Fetch a single deck ensuring it belongs to the current user."""
        deck = await self.deck_repo.get_for_user(deck_id, user.id)
        if deck is None:
            raise NotFoundError(code=ErrorCode.DECK_NOT_FOUND, message="Deck not found")
        return deck

    async def _summaries(self, decks: list[Deck]) -> list[DeckSummary]:
        counters = await self.deck_repo.card_counters([deck.id for deck in decks])
        summaries: list[DeckSummary] = []
        for deck in decks:
            total, memorized = counters.get(deck.id, (0, 0))
            summaries.append(
                DeckSummary(
                    **DeckResponse.model_validate(deck).model_dump(),
                    stats=DeckCardStats(
                        total_cards=total,
                        memorized_cards=memorized,
                        unmemorized_cards=total - memorized,
                    ),
                )
            )
        return summaries

    async def create_deck(
        self,
        user: User,
        *,
        name: str,
        description: str | None = None,
    ) -> Deck:
        clean_name = name.strip()
        if not clean_name:
            raise ValidationFailedError("Deck name is required", details={"name": "Required"})

        deck = await self.deck_repo.create(
            user_id=user.id,
            name=clean_name,
            description=_clean_description(description),
        )
        await self.deck_repo.commit()
        logger.info("Deck created", extra={"user_id": str(user.id), "deck_id": str(deck.id)})
        return deck

    async def list_decks(
        self,
        user: User,
        params: ListParams,
    ) -> tuple[list[DeckSummary], PaginationMeta]:
        """Return the user's decks, each with its memorized/unmemorized split."""
        validate_sort_field(params.sort_by, list(DeckRepository.SORTABLE_FIELDS))

        decks, total = await self.deck_repo.list_for_user(
            user.id,
            search=params.search,
            sort_by=params.sort_by,
            sort_order=params.sort_order,
            limit=params.limit,
            offset=params.offset,
        )
        summaries = await self._summaries(decks)
        return summaries, PaginationMeta.build(page=params.page, limit=params.limit, total=total)

    async def search_decks(
        self,
        user: User,
        query: str | None,
        *,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[DeckSummary], PaginationMeta]:
        term = require_search_query(query)
        decks, total = await self.deck_repo.search_for_user(
            user.id,
            term,
            limit=limit,
            offset=(page - 1) * limit,
        )
        summaries = await self._summaries(decks)
        return summaries, PaginationMeta.build(page=page, limit=limit, total=total)

    async def get_deck(self, user: User, deck_id: uuid.UUID) -> DeckDetail:
        """Deck with every card (newest first) and its current stats."""
        deck = await self.get_user_deck(user, deck_id)
        cards = await self.card_repo.list_for_deck_detail(deck.id)

        memorized = sum(1 for card in cards if card.memorized)
        # Built from columns only; touching the lazy ``Deck.cards`` relationship would block.
        return DeckDetail(
            **DeckResponse.model_validate(deck).model_dump(),
            stats=DeckCardStats(
                total_cards=len(cards),
                memorized_cards=memorized,
                unmemorized_cards=len(cards) - memorized,
            ),
            cards=[CardResponse.model_validate(card) for card in cards],
        )

    async def update_deck(
        self,
        user: User,
        deck_id: uuid.UUID,
        **changes: str | None,
    ) -> Deck:
        """Apply ``name`` and/or ``description``; an explicit ``description=None`` clears it."""
        deck = await self.get_user_deck(user, deck_id)

        fields: dict[str, str | None] = {}
        name = changes.get("name")
        if name is not None and name.strip():
            fields["name"] = name.strip()
        if "description" in changes:
            fields["description"] = _clean_description(changes["description"])

        if not fields:
            return deck

        updated = await self.deck_repo.update(deck, **fields)
        await self.deck_repo.commit()
        logger.info(
            "Deck updated",
            extra={"user_id": str(user.id), "deck_id": str(deck_id), "fields": sorted(fields)},
        )
        return updated

    async def delete_deck(self, user: User, deck_id: uuid.UUID) -> None:
        """Delete the deck together with all of its cards."""
        deck = await self.get_user_deck(user, deck_id)
        await self.deck_repo.delete(deck.id)
        await self.deck_repo.commit()
        logger.info("Deck deleted", extra={"user_id": str(user.id), "deck_id": str(deck_id)})

    async def get_deck_stats(self, user: User, deck_id: uuid.UUID) -> DeckStatsResponse:
        """Progress computed from the live card set, not from ``card_count``."""
        deck = await self.get_user_deck(user, deck_id)
        counters = await self.card_repo.stats_for_deck(
            deck.id,
            since=utcnow() - RECENT_CARDS_WINDOW,
        )

        return DeckStatsResponse(
            deck_id=deck.id,
            deck_name=deck.name,
            total_cards=counters.total,
            memorized_cards=counters.memorized,
            unmemorized_cards=counters.total - counters.memorized,
            progress_percentage=progress_percentage(counters.memorized, counters.total),
            recent_cards=counters.recent,
            created_at=deck.created_at,
            updated_at=deck.updated_at,
        )


__all__ = ["DeckService", "RECENT_CARDS_WINDOW"]
