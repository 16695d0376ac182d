"""Shared FastAPI dependency builders."""

from __future__ import annotations

from typing import Annotated

from fastapi import Query

from flashdeck.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ListParams, SortOrder


def get_list_params(
    page: Annotated[int, Query(ge=1, description="1-based page number.")] = 1,
    limit: Annotated[
        int,
        Query(ge=1, le=MAX_PAGE_SIZE, description="Items per page."),
    ] = DEFAULT_PAGE_SIZE,
    search: Annotated[
        str | None,
        Query(max_length=200, description="Case-insensitive substring filter."),
    ] = None,
    sort_by: Annotated[str, Query(description="Column to sort by.")] = "created_at",
    sort_order: Annotated[SortOrder, Query(description="Sort direction.")] = "desc",
) -> ListParams:
    """Collect the list options shared by every paginated endpoint."""
    term = search.strip() if search else ""
    return ListParams(
        page=page,
        limit=limit,
        search=term or None,
        sort_by=sort_by,
        sort_order=sort_order,
    )


__all__ = ["get_list_params"]
