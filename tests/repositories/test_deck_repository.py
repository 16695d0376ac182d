from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from flashdeck.models.card import Card
from flashdeck.repositories.deck import DeckRepository


@pytest.mark.asyncio
async def test_list_for_user_filters_by_owner_and_search(
    db_session: AsyncSession,
    make_user,
    make_deck,
) -> None:
    user = await make_user()
    other = await make_user(email="other@example.com")
    await make_deck(user, name="Spanish verbs")
    await make_deck(user, name="Kitchen", description="Spanish nouns for cooking")
    await make_deck(user, name="German")
    await make_deck(other, name="Spanish for strangers")

    repo = DeckRepository(db_session)
    decks, total = await repo.list_for_user(user.id, sort_by="name", sort_order="asc")
    matches, match_total = await repo.list_for_user(
        user.id,
        search="spanish",
        sort_by="name",
        sort_order="asc",
    )

    assert total == 3
    assert [deck.name for deck in decks] == ["German", "Kitchen", "Spanish verbs"]
    assert match_total == 2
    assert [deck.name for deck in matches] == ["Kitchen", "Spanish verbs"]


@pytest.mark.asyncio
async def test_search_for_user_orders_by_last_update(
    db_session: AsyncSession,
    make_user,
    make_deck,
) -> None:
    user = await make_user()
    base = datetime(2026, 3, 1, tzinfo=timezone.utc)
    await make_deck(user, name="Travel A", updated_at=base)
    await make_deck(user, name="Travel B", updated_at=base + timedelta(hours=1))

    decks, total = await DeckRepository(db_session).search_for_user(user.id, "travel")

    assert total == 2
    assert [deck.name for deck in decks] == ["Travel B", "Travel A"]


@pytest.mark.asyncio
async def test_delete_removes_cards(
    db_session: AsyncSession,
    make_user,
    make_deck,
    make_card,
) -> None:
    user = await make_user()
    deck = await make_deck(user)
    keep = await make_deck(user, name="Keep")
    await make_card(deck, front_text="uno")
    await make_card(deck, front_text="dos")
    await make_card(keep, front_text="tres")

    repo = DeckRepository(db_session)
    await repo.delete(deck.id)

    assert await repo.get_for_user(deck.id, user.id) is None
    remaining = (await db_session.execute(select(func.count()).select_from(Card))).scalar_one()
    assert remaining == 1


@pytest.mark.asyncio
async def test_card_counters_split_memorized(
    db_session: AsyncSession,
    make_user,
    make_deck,
    make_card,
) -> None:
    user = await make_user()
    deck = await make_deck(user)
    empty = await make_deck(user, name="Empty")
    await make_card(deck, memorized=True)
    await make_card(deck)
    await make_card(deck)

    counters = await DeckRepository(db_session).card_counters([deck.id, empty.id])

    assert counters == {deck.id: (3, 1)}
    assert await DeckRepository(db_session).card_counters([]) == {}


@pytest.mark.asyncio
async def test_set_card_count_updates_loaded_deck(
    db_session: AsyncSession,
    make_user,
    make_deck,
) -> None:
    user = await make_user()
    deck = await make_deck(user)

    await DeckRepository(db_session).set_card_count(deck.id, 7)

    assert deck.card_count == 7
