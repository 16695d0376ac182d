"""Schemas for card request payloads and API responses."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

CardText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]


class CardCreateRequest(BaseModel):
    """Request payload for POST /api/decks/{deck_id}/cards."""

    front_text: CardText
    back_text: CardText
    memorized: bool = False


class CardUpdateRequest(BaseModel):
    """Partial update for PUT /api/cards/{card_id}."""

    front_text: CardText | None = None
    back_text: CardText | None = None
    memorized: bool | None = None


class CardResponse(BaseModel):
    """Single card representation exposed via the API."""

    id: UUID
    deck_id: UUID
    front_text: str
    back_text: str
    memorized: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BulkMemorizedRequest(BaseModel):
    """Set the memorized flag for several cards of one deck."""

    card_ids: list[UUID] = Field(min_length=1, max_length=500)
    memorized: bool


class BulkMemorizedResult(BaseModel):
    """Number of cards actually changed by a bulk update."""

    updated_count: int
    memorized: bool


class CardStatsResponse(BaseModel):
    """Memorization progress for the cards of a deck."""

    deck_id: UUID
    total_cards: int
    memorized_cards: int
    unmemorized_cards: int
    progress_percentage: int


__all__ = [
    "BulkMemorizedRequest",
    "BulkMemorizedResult",
    "CardCreateRequest",
    "CardResponse",
    "CardStatsResponse",
    "CardText",
    "CardUpdateRequest",
]
