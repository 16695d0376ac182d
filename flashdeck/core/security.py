"""Password hashing helpers backed by bcrypt."""

from __future__ import annotations

import asyncio
import secrets
from functools import lru_cache

import bcrypt

from flashdeck.core.config import settings

# bcrypt only considers the first 72 bytes of the secret.
BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password_sync(password: str, *, rounds: int | None = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password_sync(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """Hash of a random secret at the configured cost; nothing ever matches it."""
    return hash_password_sync(secrets.token_urlsafe(32))


async def hash_password(password: str) -> str:
    """Hash ``password`` off the event loop; bcrypt is deliberately slow."""
    return await asyncio.to_thread(hash_password_sync, password)


async def verify_password(password: str, password_hash: str | None) -> bool:
    """Check ``password``; a missing hash still costs one full bcrypt comparison."""
    if password_hash is None:
        await asyncio.to_thread(verify_password_sync, password, dummy_password_hash())
        return False
    return await asyncio.to_thread(verify_password_sync, password, password_hash)


__all__ = [
    "dummy_password_hash",
    "hash_password",
    "hash_password_sync",
    "verify_password",
    "verify_password_sync",
]
