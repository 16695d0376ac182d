"""Pydantic schemas for request and response payloads."""

from flashdeck.schemas.auth import (
    AuthPayload,
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    UpdateProfileRequest,
    UserResponse,
)
from flashdeck.schemas.card import (
    BulkMemorizedRequest,
    BulkMemorizedResult,
    CardCreateRequest,
    CardResponse,
    CardStatsResponse,
    CardUpdateRequest,
)
from flashdeck.schemas.common import (
    ApiResponse,
    ListParams,
    MessageResponse,
    PaginatedResponse,
    PaginationMeta,
)
from flashdeck.schemas.deck import (
    DeckCardStats,
    DeckCreateRequest,
    DeckDetail,
    DeckResponse,
    DeckStatsResponse,
    DeckSummary,
    DeckUpdateRequest,
)

__all__ = [
    "ApiResponse",
    "AuthPayload",
    "BulkMemorizedRequest",
    "BulkMemorizedResult",
    "CardCreateRequest",
    "CardResponse",
    "CardStatsResponse",
    "CardUpdateRequest",
    "ChangePasswordRequest",
    "DeckCardStats",
    "DeckCreateRequest",
    "DeckDetail",
    "DeckResponse",
    "DeckStatsResponse",
    "DeckSummary",
    "DeckUpdateRequest",
    "ListParams",
    "LoginRequest",
    "MessageResponse",
    "PaginatedResponse",
    "PaginationMeta",
    "RegisterRequest",
    "UpdateProfileRequest",
    "UserResponse",
]
