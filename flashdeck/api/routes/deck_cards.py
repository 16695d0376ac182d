"""Card endpoints nested under a deck: creation, listing, study, and stats."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status

from flashdeck.api.dependencies import get_list_params
from flashdeck.api.routes.cards import get_card_service
from flashdeck.core.auth import get_current_user
from flashdeck.models.user import User
from flashdeck.schemas.card import (
    BulkMemorizedRequest,
    BulkMemorizedResult,
    CardCreateRequest,
    CardResponse,
    CardStatsResponse,
)
from flashdeck.schemas.common import ApiResponse, ListParams, PaginatedResponse
from flashdeck.services.card import DEFAULT_STUDY_LIMIT, CardService

router = APIRouter(prefix="/decks/{deck_id}/cards", tags=["cards"])

DeckId = Annotated[UUID, Path(description="Deck identifier")]


@router.post(
    "",
    response_model=ApiResponse[CardResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Add a card to a deck",
)
async def create_card(
    deck_id: DeckId,
    payload: CardCreateRequest,
    user: User = Depends(get_current_user),  # noqa: B008
    service: CardService = Depends(get_card_service),  # noqa: B008
) -> ApiResponse[CardResponse]:
    card = await service.create_card(
        user,
        deck_id,
        front_text=payload.front_text,
        back_text=payload.back_text,
        memorized=payload.memorized,
    )
    return ApiResponse(message="Card created successfully", data=CardResponse.model_validate(card))


@router.get(
    "",
    response_model=PaginatedResponse[CardResponse],
    summary="List cards of a deck",
)
async def list_deck_cards(
    deck_id: DeckId,
    memorized: Annotated[bool | None, Query(description="Filter by memorized flag")] = None,
    params: ListParams = Depends(get_list_params),  # noqa: B008
    user: User = Depends(get_current_user),  # noqa: B008
    service: CardService = Depends(get_card_service),  # noqa: B008
) -> PaginatedResponse[CardResponse]:
    """Sortable by ``front_text``, ``back_text``, ``created_at``, ``updated_at`` or ``memorized``."""
    cards, pagination = await service.list_deck_cards(user, deck_id, params, memorized=memorized)
    return PaginatedResponse(
        message="Cards retrieved successfully",
        data=[CardResponse.model_validate(card) for card in cards],
        pagination=pagination,
    )


@router.get(
    "/study",
    response_model=ApiResponse[list[CardResponse]],
    summary="Cards for a study session",
)
async def get_study_cards(
    deck_id: DeckId,
    limit: Annotated[int, Query(ge=1, le=100)] = DEFAULT_STUDY_LIMIT,
    memorized_only: Annotated[bool, Query()] = False,
    unmemorized_only: Annotated[bool, Query()] = False,
    user: User = Depends(get_current_user),  # noqa: B008
    service: CardService = Depends(get_card_service),  # noqa: B008
) -> ApiResponse[list[CardResponse]]:
    """Unmemorized cards first, then the least recently updated ones."""
    cards = await service.get_study_cards(
        user,
        deck_id,
        limit=limit,
        memorized_only=memorized_only,
        unmemorized_only=unmemorized_only,
    )
    return ApiResponse(
        message="Study cards retrieved successfully",
        data=[CardResponse.model_validate(card) for card in cards],
    )


@router.patch(
    "/bulk-memorized",
    response_model=ApiResponse[BulkMemorizedResult],
    summary="Set the memorized flag on several cards",
)
async def bulk_update_memorized(
    deck_id: DeckId,
    payload: BulkMemorizedRequest,
    user: User = Depends(get_current_user),  # noqa: B008
    service: CardService = Depends(get_card_service),  # noqa: B008
) -> ApiResponse[BulkMemorizedResult]:
    result = await service.bulk_update_memorized(
        user,
        deck_id,
        payload.card_ids,
        payload.memorized,
    )
    return ApiResponse(message="Cards updated successfully", data=result)


@router.get(
    "/stats",
    response_model=ApiResponse[CardStatsResponse],
    summary="Memorization progress of a deck",
)
async def get_card_stats(
    deck_id: DeckId,
    user: User = Depends(get_current_user),  # noqa: B008
    service: CardService = Depends(get_card_service),  # noqa: B008
) -> ApiResponse[CardStatsResponse]:
    stats = await service.get_card_stats(user, deck_id)
    return ApiResponse(message="Card statistics retrieved successfully", data=stats)


__all__ = ["router"]
