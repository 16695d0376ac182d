"""Deck endpoints: CRUD, search, and progress statistics."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from flashdeck.api.dependencies import get_list_params
from flashdeck.core.auth import get_current_user
from flashdeck.core.db import get_session
from flashdeck.models.user import User
from flashdeck.repositories.card import CardRepository
from flashdeck.repositories.deck import DeckRepository
from flashdeck.schemas.common import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    ApiResponse,
    ListParams,
    MessageResponse,
    PaginatedResponse,
)
from flashdeck.schemas.deck import (
    DeckCreateRequest,
    DeckDetail,
    DeckResponse,
    DeckStatsResponse,
    DeckSummary,
    DeckUpdateRequest,
)
from flashdeck.services.deck import DeckService

router = APIRouter(prefix="/decks", tags=["decks"])

DeckId = Annotated[UUID, Path(description="Deck identifier")]


async def get_deck_service(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeckService:
    return DeckService(DeckRepository(session), CardRepository(session))


@router.post(
    "",
    response_model=ApiResponse[DeckResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a deck",
)
async def create_deck(
    payload: DeckCreateRequest,
    user: User = Depends(get_current_user),  # noqa: B008
    service: DeckService = Depends(get_deck_service),  # noqa: B008
) -> ApiResponse[DeckResponse]:
    deck = await service.create_deck(user, name=payload.name, description=payload.description)
    return ApiResponse(
        message="Deck created successfully",
        data=DeckResponse.model_validate(deck),
    )


@router.get(
    "",
    response_model=PaginatedResponse[DeckSummary],
    summary="List decks of the current user",
)
async def list_decks(
    params: ListParams = Depends(get_list_params),  # noqa: B008
    user: User = Depends(get_current_user),  # noqa: B008
    service: DeckService = Depends(get_deck_service),  # noqa: B008
) -> PaginatedResponse[DeckSummary]:
    """Sortable by ``name``, ``created_at``, ``updated_at`` or ``card_count``."""
    decks, pagination = await service.list_decks(user, params)
    return PaginatedResponse(
        message="Decks retrieved successfully",
        data=decks,
        pagination=pagination,
    )


@router.get(
    "/search",
    response_model=PaginatedResponse[DeckSummary],
    summary="Search decks by name or description",
)
async def search_decks(
    q: Annotated[str | None, Query(max_length=200, description="Search query")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
    user: User = Depends(get_current_user),  # noqa: B008
    service: DeckService = Depends(get_deck_service),  # noqa: B008
) -> PaginatedResponse[DeckSummary]:
    decks, pagination = await service.search_decks(user, q, page=page, limit=limit)
    return PaginatedResponse(
        message="Search completed successfully",
        data=decks,
        pagination=pagination,
    )


@router.get("/{deck_id}", response_model=ApiResponse[DeckDetail], summary="Get a deck with cards")
async def get_deck(
    deck_id: DeckId,
    user: User = Depends(get_current_user),  # noqa: B008
    service: DeckService = Depends(get_deck_service),  # noqa: B008
) -> ApiResponse[DeckDetail]:
    detail = await service.get_deck(user, deck_id)
    return ApiResponse(message="Deck retrieved successfully", data=detail)


@router.put("/{deck_id}", response_model=ApiResponse[DeckResponse], summary="Update a deck")
async def update_deck(
    deck_id: DeckId,
    payload: DeckUpdateRequest,
    user: User = Depends(get_current_user),  # noqa: B008
    service: DeckService = Depends(get_deck_service),  # noqa: B008
) -> ApiResponse[DeckResponse]:
    changes = payload.model_dump(include=payload.model_fields_set)
    deck = await service.update_deck(user, deck_id, **changes)
    return ApiResponse(
        message="Deck updated successfully",
        data=DeckResponse.model_validate(deck),
    )


@router.delete("/{deck_id}", response_model=MessageResponse, summary="Delete a deck and its cards")
async def delete_deck(
    deck_id: DeckId,
    user: User = Depends(get_current_user),  # noqa: B008
    service: DeckService = Depends(get_deck_service),  # noqa: B008
) -> MessageResponse:
    await service.delete_deck(user, deck_id)
    return MessageResponse(message="Deck deleted successfully")


@router.get(
    "/{deck_id}/stats",
    response_model=ApiResponse[DeckStatsResponse],
    summary="Deck progress statistics",
)
async def get_deck_stats(
    deck_id: DeckId,
    user: User = Depends(get_current_user),  # noqa: B008
    service: DeckService = Depends(get_deck_service),  # noqa: B008
) -> ApiResponse[DeckStatsResponse]:
    stats = await service.get_deck_stats(user, deck_id)
    return ApiResponse(message="Deck statistics retrieved successfully", data=stats)


__all__ = ["get_deck_service", "router"]
