from __future__ import annotations

import uuid

import pytest
from httpx import AsyncClient


async def _create_deck(
    client: AsyncClient,
    headers: dict[str, str],
    name: str,
    description: str | None = None,
) -> dict[str, object]:
    response = await client.post(
        "/api/decks",
        json={"name": name, "description": description},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()["data"]


@pytest.mark.asyncio
async def test_decks_require_authentication(api_client: AsyncClient) -> None:
    response = await api_client.get("/api/decks")

    assert response.status_code == 401
    assert response.json()["code"] == "AUTH_FAILED"


@pytest.mark.asyncio
async def test_create_and_fetch_deck(api_client: AsyncClient, auth_headers: dict[str, str]) -> None:
    created = await _create_deck(api_client, auth_headers, "Spanish", "Basics")

    response = await api_client.get(f"/api/decks/{created['id']}", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Spanish"
    assert data["description"] == "Basics"
    assert data["card_count"] == 0
    assert data["cards"] == []
    assert data["stats"] == {"total_cards": 0, "memorized_cards": 0, "unmemorized_cards": 0}


@pytest.mark.asyncio
async def test_create_deck_validates_name(
    api_client: AsyncClient,
    auth_headers: dict[str, str],
) -> None:
    response = await api_client.post("/api/decks", json={"name": "   "}, headers=auth_headers)

    assert response.status_code == 400
    assert "name" in response.json()["errors"]


@pytest.mark.asyncio
async def test_list_decks_paginates(api_client: AsyncClient, auth_headers: dict[str, str]) -> None:
    for index in range(12):
        await _create_deck(api_client, auth_headers, f"Deck {index:02d}")

    response = await api_client.get(
        "/api/decks",
        params={"page": 2, "limit": 5, "sort_by": "name", "sort_order": "asc"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    payload = response.json()
    assert [deck["name"] for deck in payload["data"]] == [f"Deck {n:02d}" for n in range(5, 10)]
    assert payload["pagination"] == {"page": 2, "limit": 5, "total": 12, "pages": 3}


@pytest.mark.asyncio
async def test_list_decks_rejects_bad_query(
    api_client: AsyncClient,
    auth_headers: dict[str, str],
) -> None:
    bad_sort = await api_client.get(
        "/api/decks",
        params={"sort_by": "user_id"},
        headers=auth_headers,
    )
    bad_limit = await api_client.get("/api/decks", params={"limit": 0}, headers=auth_headers)

    assert bad_sort.status_code == 400
    assert bad_sort.json()["message"] == "Invalid sort field"
    assert bad_limit.status_code == 400


@pytest.mark.asyncio
async def test_search_decks(api_client: AsyncClient, auth_headers: dict[str, str]) -> None:
    await _create_deck(api_client, auth_headers, "Food", "Kitchen words")
    await _create_deck(api_client, auth_headers, "Travel")

    missing_query = await api_client.get("/api/decks/search", headers=auth_headers)
    found = await api_client.get("/api/decks/search", params={"q": "kitchen"}, headers=auth_headers)

    assert missing_query.status_code == 400
    assert missing_query.json()["message"] == "Search query is required"
    assert [deck["name"] for deck in found.json()["data"]] == ["Food"]


@pytest.mark.asyncio
async def test_update_deck_clears_description(
    api_client: AsyncClient,
    auth_headers: dict[str, str],
) -> None:
    created = await _create_deck(api_client, auth_headers, "Verbs", "Irregular")

    renamed = await api_client.put(
        f"/api/decks/{created['id']}",
        json={"name": "Verbs II"},
        headers=auth_headers,
    )
    cleared = await api_client.put(
        f"/api/decks/{created['id']}",
        json={"description": None},
        headers=auth_headers,
    )

    assert renamed.json()["data"]["description"] == "Irregular"
    assert cleared.json()["data"]["name"] == "Verbs II"
    assert cleared.json()["data"]["description"] is None


@pytest.mark.asyncio
async def test_delete_deck(api_client: AsyncClient, auth_headers: dict[str, str]) -> None:
    created = await _create_deck(api_client, auth_headers, "Temporary")

    deleted = await api_client.delete(f"/api/decks/{created['id']}", headers=auth_headers)
    missing = await api_client.get(f"/api/decks/{created['id']}", headers=auth_headers)

    assert deleted.json() == {"success": True, "message": "Deck deleted successfully", "data": None}
    assert missing.status_code == 404
    assert missing.json()["code"] == "DECK_NOT_FOUND"


@pytest.mark.asyncio
async def test_deck_paths_validate_identifiers(
    api_client: AsyncClient,
    auth_headers: dict[str, str],
) -> None:
    malformed = await api_client.get("/api/decks/not-a-uuid", headers=auth_headers)
    unknown = await api_client.get(f"/api/decks/{uuid.uuid4()}/stats", headers=auth_headers)

    assert malformed.status_code == 400
    assert unknown.status_code == 404
