"""Card endpoints addressed by card id, plus cross-deck search."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from flashdeck.core.auth import get_current_user
from flashdeck.core.db import get_session
from flashdeck.models.user import User
from flashdeck.repositories.card import CardRepository
from flashdeck.repositories.deck import DeckRepository
from flashdeck.schemas.card import CardResponse, CardUpdateRequest
from flashdeck.schemas.common import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    ApiResponse,
    MessageResponse,
    PaginatedResponse,
)
from flashdeck.services.card import CardService

router = APIRouter(prefix="/cards", tags=["cards"])

CardId = Annotated[UUID, Path(description="Card identifier")]


async def get_card_service(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardService:
    return CardService(CardRepository(session), DeckRepository(session))


@router.get(
    "/search",
    response_model=PaginatedResponse[CardResponse],
    summary="Search cards across all decks of the current user",
)
async def search_cards(
    q: Annotated[str | None, Query(max_length=200, description="Search query")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
    deck_id: Annotated[UUID | None, Query(description="Restrict to one deck")] = None,
    memorized: Annotated[bool | None, Query(description="Filter by memorized flag")] = None,
    user: User = Depends(get_current_user),  # noqa: B008
    service: CardService = Depends(get_card_service),  # noqa: B008
) -> PaginatedResponse[CardResponse]:
    cards, pagination = await service.search_cards(
        user,
        q,
        page=page,
        limit=limit,
        deck_id=deck_id,
        memorized=memorized,
    )
    return PaginatedResponse(
        message="Search completed successfully",
        data=[CardResponse.model_validate(card) for card in cards],
        pagination=pagination,
    )


@router.get("/{card_id}", response_model=ApiResponse[CardResponse], summary="Get a card")
async def get_card(
    card_id: CardId,
    user: User = Depends(get_current_user),  # noqa: B008
    service: CardService = Depends(get_card_service),  # noqa: B008
) -> ApiResponse[CardResponse]:
    card = await service.get_card(user, card_id)
    return ApiResponse(message="Card retrieved successfully", data=CardResponse.model_validate(card))


@router.put("/{card_id}", response_model=ApiResponse[CardResponse], summary="Update a card")
async def update_card(
    card_id: CardId,
    payload: CardUpdateRequest,
    user: User = Depends(get_current_user),  # noqa: B008
    service: CardService = Depends(get_card_service),  # noqa: B008
) -> ApiResponse[CardResponse]:
    card = await service.update_card(
        user,
        card_id,
        front_text=payload.front_text,
        back_text=payload.back_text,
        memorized=payload.memorized,
    )
    return ApiResponse(message="Card updated successfully", data=CardResponse.model_validate(card))


@router.delete("/{card_id}", response_model=MessageResponse, summary="Delete a card")
async def delete_card(
    card_id: CardId,
    user: User = Depends(get_current_user),  # noqa: B008
    service: CardService = Depends(get_card_service),  # noqa: B008
) -> MessageResponse:
    await service.delete_card(user, card_id)
    return MessageResponse(message="Card deleted successfully")


@router.patch(
    "/{card_id}/toggle-memorized",
    response_model=ApiResponse[CardResponse],
    summary="Flip the memorized flag",
)
async def toggle_memorized(
    card_id: CardId,
    user: User = Depends(get_current_user),  # noqa: B008
    service: CardService = Depends(get_card_service),  # noqa: B008
) -> ApiResponse[CardResponse]:
    card = await service.toggle_memorized(user, card_id)
    return ApiResponse(
        message="Card memorized status updated successfully",
        data=CardResponse.model_validate(card),
    )


__all__ = ["get_card_service", "router"]
