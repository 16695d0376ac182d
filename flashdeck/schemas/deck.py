"""Pydantic schemas describing deck endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from flashdeck.schemas.card import CardResponse

DeckName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
DeckDescription = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]


class DeckCreateRequest(BaseModel):
    """Request payload for POST /api/decks."""

    name: DeckName
    description: DeckDescription | None = None


class DeckUpdateRequest(BaseModel):
    """Partial update; an explicit ``description: null`` clears the description."""

    name: DeckName | None = None
    description: DeckDescription | None = None


class DeckCardStats(BaseModel):
    """Memorized/unmemorized split attached to deck listings."""

    total_cards: int = 0
    memorized_cards: int = 0
    unmemorized_cards: int = 0


class DeckResponse(BaseModel):
    """Deck representation without nested cards."""

    id: UUID
    user_id: UUID
    name: str
    description: str | None
    card_count: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DeckSummary(DeckResponse):
    """Deck listing entry enriched with card statistics."""

    stats: DeckCardStats = Field(default_factory=DeckCardStats)


class DeckDetail(DeckSummary):
    """Single deck including its cards, newest first."""

    cards: list[CardResponse] = Field(default_factory=list)


class DeckStatsResponse(BaseModel):
    """Progress statistics computed from the live card set."""

    deck_id: UUID
    deck_name: str
    total_cards: int
    memorized_cards: int
    unmemorized_cards: int
    progress_percentage: int
    recent_cards: int
    created_at: datetime
    updated_at: datetime


__all__ = [
    "DeckCardStats",
    "DeckCreateRequest",
    "DeckDetail",
    "DeckResponse",
    "DeckStatsResponse",
    "DeckSummary",
    "DeckUpdateRequest",
]
