from __future__ import annotations

import pytest

from flashdeck.core import security
from flashdeck.core.security import (
    dummy_password_hash,
    hash_password,
    hash_password_sync,
    verify_password,
    verify_password_sync,
)


def test_hash_password_produces_bcrypt_hash() -> None:
    password_hash = hash_password_sync("secret123", rounds=4)

    assert password_hash.startswith("$2b$04$")
    assert password_hash != "secret123"
    assert verify_password_sync("secret123", password_hash)
    assert not verify_password_sync("secret124", password_hash)


def test_hash_password_is_salted() -> None:
    assert hash_password_sync("secret123", rounds=4) != hash_password_sync("secret123", rounds=4)


def test_verify_password_rejects_non_bcrypt_hash() -> None:
    assert verify_password_sync("secret123", "plain-text") is False


def test_passwords_longer_than_bcrypt_window_are_truncated() -> None:
    long_password = "a" * 72
    password_hash = hash_password_sync(long_password + "tail", rounds=4)

    assert verify_password_sync(long_password, password_hash)
    assert verify_password_sync(long_password + "other", password_hash)


@pytest.mark.asyncio
async def test_async_helpers_use_configured_cost() -> None:
    password_hash = await hash_password("p@ssw0rd")

    # BCRYPT_ROUNDS=4 in the test environment.
    assert password_hash.startswith("$2b$04$")
    assert await verify_password("p@ssw0rd", password_hash)
    assert not await verify_password("wrong", password_hash)


@pytest.mark.asyncio
async def test_verify_without_stored_hash_still_runs_bcrypt(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    checked: list[str] = []

    def _recording_verify(password: str, password_hash: str) -> bool:
        checked.append(password_hash)
        return verify_password_sync(password, password_hash)

    monkeypatch.setattr(security, "verify_password_sync", _recording_verify)

    assert await verify_password("secret123", None) is False
    assert checked == [dummy_password_hash()]
    assert checked[0].startswith("$2b$04$")


def test_dummy_hash_is_stable_and_matches_nothing() -> None:
    assert dummy_password_hash() == dummy_password_hash()
    assert not verify_password_sync("", dummy_password_hash())
