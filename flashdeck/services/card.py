"""Card service covering listing, creation, memorization, and study sessions."""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Sequence

from flashdeck.core.errors import ErrorCode, NotFoundError, ValidationFailedError
from flashdeck.models.card import Card
from flashdeck.models.deck import Deck
from flashdeck.models.user import User
from flashdeck.repositories.card import CardRepository
from flashdeck.repositories.deck import DeckRepository
from flashdeck.schemas.card import BulkMemorizedResult, CardStatsResponse
from flashdeck.schemas.common import ListParams, PaginationMeta

logger = logging.getLogger("flashdeck.services.cards")

DEFAULT_STUDY_LIMIT = 20
MAX_STUDY_LIMIT = 100


def progress_percentage(memorized: int, total: int) -> int:
    """Share of memorized cards in whole percent, halves rounded up; 0 for empty decks."""
    if total <= 0:
        return 0
    return int(math.floor(memorized * 100 / total + 0.5))


def validate_sort_field(sort_by: str, allowed: Sequence[str]) -> None:
    if sort_by not in allowed:
        raise ValidationFailedError(
            "Invalid sort field",
            details={"sort_by": f"Must be one of: {', '.join(sorted(allowed))}"},
        )


def require_search_query(query: str | None) -> str:
    term = (query or "").strip()
    if not term:
        raise ValidationFailedError(
            "Search query is required",
            details={"q": "Search query is required"},
        )
    return term


class CardService:
    """Coordinate card lifecycle operations and keep deck counters in sync."""

    def __init__(self, card_repo: CardRepository, deck_repo: DeckRepository) -> None:
        self.card_repo = card_repo
        self.deck_repo = deck_repo

    #
    # Helpers
    #
    async def _get_deck_for_user(self, user: User, deck_id: uuid.UUID) -> Deck:
        deck = await self.deck_repo.get_for_user(deck_id, user.id)
        if deck is None:
            raise NotFoundError(code=ErrorCode.DECK_NOT_FOUND, message="Deck not found")
        return deck

    async def refresh_card_count(self, deck_id: uuid.UUID) -> int:
        """Recompute ``Deck.card_count`` from the live card set."""
        card_count = await self.card_repo.count_for_deck(deck_id)
        await self.deck_repo.set_card_count(deck_id, card_count)
        await self.deck_repo.commit()
        return card_count

    #
    # Query operations
    #
    async def list_deck_cards(
        self,
        user: User,
        deck_id: uuid.UUID,
        params: ListParams,
        *,
        memorized: bool | None = None,
    ) -> tuple[list[Card], PaginationMeta]:
        """Return paginated cards for a specific deck owned by the user."""
        validate_sort_field(params.sort_by, list(CardRepository.SORTABLE_FIELDS))
        deck = await self._get_deck_for_user(user, deck_id)

        cards, total = await self.card_repo.list_for_deck(
            deck.id,
            search=params.search,
            memorized=memorized,
            sort_by=params.sort_by,
            sort_order=params.sort_order,
            limit=params.limit,
            offset=params.offset,
        )
        return cards, PaginationMeta.build(page=params.page, limit=params.limit, total=total)

    async def get_card(self, user: User, card_id: uuid.UUID) -> Card:
        """Fetch a single card for the user."""
        card = await self.card_repo.get_for_user(card_id, user.id)
        if card is None:
            raise NotFoundError(code=ErrorCode.CARD_NOT_FOUND, message="Card not found")
        return card

    async def get_study_cards(
        self,
        user: User,
        deck_id: uuid.UUID,
        *,
        limit: int = DEFAULT_STUDY_LIMIT,
        memorized_only: bool = False,
        unmemorized_only: bool = False,
    ) -> list[Card]:
        """Cards to review: unmemorized first, then least recently updated."""
        deck = await self._get_deck_for_user(user, deck_id)

        memorized: bool | None = None
        if memorized_only:
            memorized = True
        elif unmemorized_only:
            memorized = False

        safe_limit = max(1, min(limit, MAX_STUDY_LIMIT))
        return await self.card_repo.list_for_study(deck.id, limit=safe_limit, memorized=memorized)

    async def search_cards(
        self,
        user: User,
        query: str | None,
        *,
        page: int = 1,
        limit: int = 10,
        deck_id: uuid.UUID | None = None,
        memorized: bool | None = None,
    ) -> tuple[list[Card], PaginationMeta]:
        term = require_search_query(query)
        cards, total = await self.card_repo.search_for_user(
            user.id,
            term,
            deck_id=deck_id,
            memorized=memorized,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return cards, PaginationMeta.build(page=page, limit=limit, total=total)

    async def get_card_stats(self, user: User, deck_id: uuid.UUID) -> CardStatsResponse:
        deck = await self._get_deck_for_user(user, deck_id)
        counters = await self.deck_repo.card_counters([deck.id])
        total, memorized = counters.get(deck.id, (0, 0))
        return CardStatsResponse(
            deck_id=deck.id,
            total_cards=total,
            memorized_cards=memorized,
            unmemorized_cards=total - memorized,
            progress_percentage=progress_percentage(memorized, total),
        )

    #
    # Mutating operations
    #
    async def create_card(
        self,
        user: User,
        deck_id: uuid.UUID,
        *,
        front_text: str,
        back_text: str,
        memorized: bool = False,
    ) -> Card:
        deck = await self._get_deck_for_user(user, deck_id)
        target_deck_id = deck.id

        card = await self.card_repo.create(
            deck_id=target_deck_id,
            front_text=front_text.strip(),
            back_text=back_text.strip(),
            memorized=memorized,
        )
        await self.card_repo.commit()
        await self.refresh_card_count(target_deck_id)

        logger.info(
            "Card created",
            extra={"user_id": str(user.id), "deck_id": str(target_deck_id), "card_id": str(card.id)},
        )
        return card

    async def update_card(
        self,
        user: User,
        card_id: uuid.UUID,
        *,
        front_text: str | None = None,
        back_text: str | None = None,
        memorized: bool | None = None,
    ) -> Card:
        card = await self.get_card(user, card_id)

        fields: dict[str, object] = {}
        if front_text and front_text.strip():
            fields["front_text"] = front_text.strip()
        if back_text and back_text.strip():
            fields["back_text"] = back_text.strip()
        if memorized is not None:
            fields["memorized"] = memorized

        if not fields:
            return card

        updated = await self.card_repo.update(card, **fields)
        await self.card_repo.commit()
        return updated

    async def delete_card(self, user: User, card_id: uuid.UUID) -> None:
        card = await self.get_card(user, card_id)
        deck_id = card.deck_id

        await self.card_repo.delete(card.id)
        await self.card_repo.commit()
        await self.refresh_card_count(deck_id)

        logger.info(
            "Card deleted",
            extra={"user_id": str(user.id), "deck_id": str(deck_id), "card_id": str(card_id)},
        )

    async def toggle_memorized(self, user: User, card_id: uuid.UUID) -> Card:
        """Flip ``memorized``; concurrent toggles resolve as last-write-wins."""
        card = await self.get_card(user, card_id)
        updated = await self.card_repo.update(card, memorized=not card.memorized)
        await self.card_repo.commit()
        return updated

    async def bulk_update_memorized(
        self,
        user: User,
        deck_id: uuid.UUID,
        card_ids: Sequence[uuid.UUID],
        memorized: bool,
    ) -> BulkMemorizedResult:
        """Set ``memorized`` on the listed cards that belong to the deck; others are ignored."""
        deck = await self._get_deck_for_user(user, deck_id)
        updated_count = await self.card_repo.set_memorized_bulk(deck.id, card_ids, memorized)
        await self.card_repo.commit()

        logger.info(
            "Bulk memorized update",
            extra={
                "user_id": str(user.id),
                "deck_id": str(deck.id),
                "requested": len(card_ids),
                "updated": updated_count,
            },
        )
        return BulkMemorizedResult(updated_count=updated_count, memorized=memorized)


__all__ = [
    "CardService",
    "DEFAULT_STUDY_LIMIT",
    "progress_percentage",
    "require_search_query",
    "validate_sort_field",
]
