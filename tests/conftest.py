from __future__ import annotations

import os
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TYPE_CHECKING, Any, Final

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

_TEST_ENV_VARS: Final[dict[str, str]] = {
    "APP_ENV": "test",
    "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
    "SECRET_KEY": "test-secret-key-with-at-least-32-bytes",
    "BCRYPT_ROUNDS": "4",
    "DB_KEEPALIVE_ENABLED": "false",
}

for key, value in _TEST_ENV_VARS.items():
    os.environ.setdefault(key, value)

from flashdeck.models import Base  # noqa: E402

if TYPE_CHECKING:
    from flashdeck.core.db import DatabaseGateway
    from flashdeck.models.card import Card
    from flashdeck.models.deck import Deck
    from flashdeck.models.user import User

    UserFactory = Callable[..., Awaitable[User]]
    DeckFactory = Callable[..., Awaitable[Deck]]
    CardFactory = Callable[..., Awaitable[Card]]


@pytest_asyncio.fixture()
async def db_session() -> AsyncIterator[AsyncSession]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    Session = async_sessionmaker(engine, expire_on_commit=False)

    async with Session() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture()
async def make_user(db_session: AsyncSession) -> UserFactory:
    from flashdeck.core.security import hash_password_sync
    from flashdeck.models.user import User

    async def _make(
        email: str = "learner@example.com",
        password: str = "secret123",
        name: str | None = "Learner",
    ) -> User:
        user = User(email=email, password=hash_password_sync(password, rounds=4), name=name)
        db_session.add(user)
        await db_session.flush()
        return user

    return _make


@pytest_asyncio.fixture()
async def make_deck(db_session: AsyncSession) -> DeckFactory:
    from flashdeck.models.deck import Deck

    async def _make(user: User, name: str = "Spanish basics", **fields: Any) -> Deck:
        deck = Deck(user_id=user.id, name=name, **fields)
        db_session.add(deck)
        await db_session.flush()
        return deck

    return _make


@pytest_asyncio.fixture()
async def make_card(db_session: AsyncSession) -> CardFactory:
    from flashdeck.models.card import Card

    async def _make(
        deck: Deck,
        front_text: str = "hola",
        back_text: str = "hello",
        **fields: Any,
    ) -> Card:
        card = Card(deck_id=deck.id, front_text=front_text, back_text=back_text, **fields)
        db_session.add(card)
        await db_session.flush()
        return card

    return _make


@pytest_asyncio.fixture()
async def api_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """HTTP client for the real application bound to the per-test database."""
    from flashdeck.core.db import get_session
    from flashdeck.main import app

    async def _session_override() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _session_override
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
    finally:
        app.dependency_overrides.pop(get_session, None)


@pytest_asyncio.fixture()
async def auth_headers(api_client: AsyncClient) -> dict[str, str]:
    response = await api_client.post(
        "/api/auth/register",
        json={"email": "learner@example.com", "password": "secret123", "name": "Learner"},
    )
    token = response.json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture(autouse=True)
async def _release_global_engine() -> AsyncIterator[None]:
    """Drop pooled connections of the application engine between event loops."""
    yield
    from flashdeck.core.db import dispose_engine

    await dispose_engine()


@pytest.fixture()
def retrying_gateway(db_session: AsyncSession) -> DatabaseGateway:
    """Gateway over the per-test engine that retries once without sleeping."""
    from flashdeck.core.db import DatabaseGateway

    async def _no_sleep(_: float) -> None:
        return None

    return DatabaseGateway(db_session.bind, max_retries=2, sleep=_no_sleep)


@pytest.fixture()
def drop_connection_once(monkeypatch: pytest.MonkeyPatch) -> Callable[..., None]:
    """Make the next matching call of a session method fail like a dropped connection."""

    def _install(
        session: AsyncSession,
        method: str,
        matches: Callable[..., bool] | None = None,
    ) -> None:
        original = getattr(session, method)
        dropped = False

        async def _flaky(*args: Any, **kwargs: Any) -> Any:
            nonlocal dropped
            if not dropped and (matches is None or matches(*args, **kwargs)):
                dropped = True
                raise ConnectionError("connection reset by peer")
            return await original(*args, **kwargs)

        monkeypatch.setattr(session, method, _flaky)

    return _install
