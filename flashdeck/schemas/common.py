"""Response envelopes and list/pagination primitives shared by every resource."""

from __future__ import annotations

import math
from typing import Annotated, Generic, Literal, TypeVar

from pydantic import BaseModel, Field, StringConstraints

DataT = TypeVar("DataT")

SortOrder = Literal["asc", "desc"]

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

SearchTerm = Annotated[str, StringConstraints(strip_whitespace=True, max_length=200)]


class ApiResponse(BaseModel, Generic[DataT]):
    """Success envelope: ``{"success": true, "message": ..., "data": ...}``."""

    success: bool = True
    message: str = "Success"
    data: DataT | None = None


class PaginationMeta(BaseModel):
    """Offset-based pagination metadata."""

    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> PaginationMeta:
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class PaginatedResponse(BaseModel, Generic[DataT]):
    """Success envelope for list endpoints."""

    success: bool = True
    message: str = "Success"
    data: list[DataT]
    pagination: PaginationMeta


class ListParams(BaseModel):
    """Options recognized by every list operation."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    search: SearchTerm | None = None
    sort_by: str = "created_at"
    sort_order: SortOrder = "desc"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class MessageResponse(BaseModel):
    """Envelope for operations that only acknowledge success."""

    success: bool = True
    message: str
    data: None = None


__all__ = [
    "ApiResponse",
    "DEFAULT_PAGE_SIZE",
    "ListParams",
    "MAX_PAGE_SIZE",
    "MessageResponse",
    "PaginatedResponse",
    "PaginationMeta",
    "SearchTerm",
    "SortOrder",
]
