from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from flashdeck.core.errors import ErrorCode, NotFoundError, ValidationFailedError
from flashdeck.models.card import Card
from flashdeck.models.deck import Deck
from flashdeck.repositories.card import CardRepository
from flashdeck.repositories.deck import DeckRepository
from flashdeck.schemas.common import ListParams
from flashdeck.services.deck import DeckService


def _service(session: AsyncSession) -> DeckService:
    return DeckService(DeckRepository(session), CardRepository(session))


@pytest.mark.asyncio
async def test_create_deck_trims_input(db_session: AsyncSession, make_user) -> None:
    user = await make_user()

    deck = await _service(db_session).create_deck(user, name="  Verbs  ", description="   ")

    assert deck.name == "Verbs"
    assert deck.description is None
    assert deck.card_count == 0
    assert deck.user_id == user.id


@pytest.mark.asyncio
async def test_create_deck_requires_name(db_session: AsyncSession, make_user) -> None:
    user = await make_user()

    with pytest.raises(ValidationFailedError):
        await _service(db_session).create_deck(user, name="   ")


@pytest.mark.asyncio
async def test_foreign_deck_looks_missing(db_session: AsyncSession, make_user, make_deck) -> None:
    owner = await make_user(email="owner@example.com")
    stranger = await make_user(email="stranger@example.com")
    deck = await make_deck(owner)
    service = _service(db_session)

    with pytest.raises(NotFoundError) as exc_info:
        await service.get_deck(stranger, deck.id)
    assert exc_info.value.code == ErrorCode.DECK_NOT_FOUND
    assert exc_info.value.message == "Deck not found"

    with pytest.raises(NotFoundError):
        await service.update_deck(stranger, deck.id, name="Mine now")
    with pytest.raises(NotFoundError):
        await service.delete_deck(stranger, deck.id)
    with pytest.raises(NotFoundError):
        await service.get_deck_stats(stranger, uuid.uuid4())


@pytest.mark.asyncio
async def test_list_decks_paginates_and_reports_stats(
    db_session: AsyncSession,
    make_user,
    make_deck,
    make_card,
) -> None:
    user = await make_user()
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    decks = [
        await make_deck(user, name=f"Deck {index:02d}", created_at=base + timedelta(hours=index))
        for index in range(1, 26)
    ]
    await make_card(decks[-1], memorized=True)
    await make_card(decks[-1])

    params = ListParams(page=2, limit=10, sort_by="created_at", sort_order="asc")
    summaries, pagination = await _service(db_session).list_decks(user, params)

    assert [summary.name for summary in summaries] == [f"Deck {n:02d}" for n in range(11, 21)]
    assert pagination.model_dump() == {"page": 2, "limit": 10, "total": 25, "pages": 3}

    first_page, _ = await _service(db_session).list_decks(
        user,
        ListParams(page=1, limit=1, sort_by="created_at", sort_order="desc"),
    )
    assert first_page[0].name == "Deck 25"
    assert first_page[0].stats.model_dump() == {
        "total_cards": 2,
        "memorized_cards": 1,
        "unmemorized_cards": 1,
    }


@pytest.mark.asyncio
async def test_list_decks_rejects_unknown_sort_field(db_session: AsyncSession, make_user) -> None:
    user = await make_user()

    with pytest.raises(ValidationFailedError) as exc_info:
        await _service(db_session).list_decks(user, ListParams(sort_by="password"))

    assert exc_info.value.message == "Invalid sort field"


@pytest.mark.asyncio
async def test_search_decks_requires_query(db_session: AsyncSession, make_user, make_deck) -> None:
    user = await make_user()
    await make_deck(user, name="Food", description="Kitchen vocabulary")
    service = _service(db_session)

    with pytest.raises(ValidationFailedError) as exc_info:
        await service.search_decks(user, "   ")
    assert exc_info.value.message == "Search query is required"

    results, pagination = await service.search_decks(user, "KITCHEN")
    assert [deck.name for deck in results] == ["Food"]
    assert pagination.total == 1


@pytest.mark.asyncio
async def test_get_deck_includes_cards_newest_first(
    db_session: AsyncSession,
    make_user,
    make_deck,
    make_card,
) -> None:
    user = await make_user()
    deck = await make_deck(user)
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    await make_card(deck, front_text="first", created_at=base)
    await make_card(deck, front_text="second", created_at=base + timedelta(days=1), memorized=True)

    detail = await _service(db_session).get_deck(user, deck.id)

    assert detail.id == deck.id
    assert [card.front_text for card in detail.cards] == ["second", "first"]
    assert detail.stats.memorized_cards == 1
    assert detail.stats.unmemorized_cards == 1


@pytest.mark.asyncio
async def test_update_deck_applies_partial_changes(
    db_session: AsyncSession,
    make_user,
    make_deck,
) -> None:
    user = await make_user()
    deck = await make_deck(user, name="Old", description="Keep me")
    service = _service(db_session)

    renamed = await service.update_deck(user, deck.id, name="New")
    assert renamed.name == "New"
    assert renamed.description == "Keep me"

    cleared = await service.update_deck(user, deck.id, description=None)
    assert cleared.name == "New"
    assert cleared.description is None

    blank_name = await service.update_deck(user, deck.id, name="   ")
    assert blank_name.name == "New"


@pytest.mark.asyncio
async def test_delete_deck_removes_its_cards(
    db_session: AsyncSession,
    make_user,
    make_deck,
    make_card,
) -> None:
    user = await make_user()
    deck = await make_deck(user)
    for index in range(3):
        await make_card(deck, front_text=f"card {index}")
    service = _service(db_session)

    await service.delete_deck(user, deck.id)

    with pytest.raises(NotFoundError):
        await service.get_deck(user, deck.id)
    remaining = await db_session.execute(
        select(func.count()).select_from(Card).where(Card.deck_id == deck.id)
    )
    assert remaining.scalar_one() == 0


@pytest.mark.asyncio
async def test_deck_stats_for_empty_deck(db_session: AsyncSession, make_user, make_deck) -> None:
    user = await make_user()
    deck = await make_deck(user, name="Empty")

    stats = await _service(db_session).get_deck_stats(user, deck.id)

    assert stats.deck_name == "Empty"
    assert stats.total_cards == 0
    assert stats.progress_percentage == 0
    assert stats.recent_cards == 0


@pytest.mark.asyncio
async def test_deck_stats_progress_and_recent_cards(
    db_session: AsyncSession,
    make_user,
    make_deck,
    make_card,
) -> None:
    user = await make_user()
    deck = await make_deck(user)
    old = datetime.now(timezone.utc) - timedelta(days=30)
    await make_card(deck, front_text="old", memorized=True, created_at=old)
    await make_card(deck, front_text="old too", created_at=old)
    await make_card(deck, front_text="older", created_at=old)
    await make_card(deck, front_text="fresh")

    stats = await _service(db_session).get_deck_stats(user, deck.id)

    assert stats.total_cards == 4
    assert stats.memorized_cards == 1
    assert stats.unmemorized_cards == 3
    assert stats.progress_percentage == 25
    assert stats.recent_cards == 1


@pytest.mark.asyncio
async def test_create_deck_survives_dropped_connection(
    db_session: AsyncSession,
    make_user,
    retrying_gateway,
    drop_connection_once,
) -> None:
    user = await make_user()
    await db_session.commit()
    service = DeckService(
        DeckRepository(db_session, retrying_gateway),
        CardRepository(db_session, retrying_gateway),
    )
    drop_connection_once(db_session, "flush")

    deck = await service.create_deck(user, name="Verbs")

    assert not inspect(user).expired_attributes
    assert deck.user_id == user.id
    assert deck.name == "Verbs"
    stored = await db_session.execute(
        select(func.count()).select_from(Deck).where(Deck.user_id == user.id)
    )
    assert stored.scalar_one() == 1
