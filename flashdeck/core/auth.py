"""
JWT management and the authenticated-user dependency.

This module implements:
1. JWT token creation and verification (PyJWT, HMAC algorithms)
2. Current user dependency for FastAPI routes
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from flashdeck.core.config import settings
from flashdeck.core.db import get_session
from flashdeck.core.errors import ErrorCode, UnauthorizedError
from flashdeck.models.user import User
from flashdeck.repositories.user import UserRepository

logger = logging.getLogger(__name__)

# auto_error=False so a missing header renders through our error envelope.
security = HTTPBearer(auto_error=False)


def create_access_token(
    user: User,
    expires_delta: timedelta | None = None,
) -> tuple[str, datetime]:
    """
    Create a JWT access token for the user.

    Args:
        user: User model instance
        expires_delta: Optional override of the configured lifetime

    Returns:
        Tuple of (token_string, expires_at_datetime)
    """
    now = datetime.now(timezone.utc)
    expires_at = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    payload = {
        "user_id": str(user.id),
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }

    token = jwt.encode(
        payload,
        settings.secret_key.get_secret_value(),
        algorithm=settings.jwt_algorithm,
    )

    logger.info(
        "JWT token created",
        extra={"user_id": str(user.id), "expires_at": expires_at.isoformat()},
    )

    return token, expires_at


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a JWT access token.

    Raises:
        jwt.ExpiredSignatureError: Token has expired
        jwt.InvalidTokenError: Token is invalid
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.secret_key.get_secret_value(),
            algorithms=[settings.jwt_algorithm],
        )
        return payload
    except jwt.ExpiredSignatureError:
        logger.warning("JWT token expired")
        raise
    except jwt.InvalidTokenError:
        logger.warning("JWT token invalid")
        raise


def _user_id_from_token(token: str) -> UUID:
    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError as exc:
        raise UnauthorizedError("Token expired", code=ErrorCode.TOKEN_EXPIRED) from exc
    except jwt.InvalidTokenError as exc:
        raise UnauthorizedError("Invalid token") from exc

    user_id_str = payload.get("user_id")
    if not isinstance(user_id_str, str):
        raise UnauthorizedError("Invalid token")

    try:
        return UUID(user_id_str)
    except ValueError as exc:
        raise UnauthorizedError("Invalid token") from exc


async def resolve_user(token: str, session: AsyncSession) -> User:
    """Return the account a bearer token was issued for."""
    user_id = _user_id_from_token(token)

    user = await UserRepository(session).get(user_id)
    if user is None:
        logger.warning("User not found for token", extra={"user_id": str(user_id)})
        raise UnauthorizedError("User not found")

    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),  # noqa: B008
    session: AsyncSession = Depends(get_session),  # noqa: B008
) -> User:
    """
    FastAPI dependency resolving the authenticated user from the bearer token.

    Raises:
        UnauthorizedError: If the token is missing, invalid, expired, or
            refers to a user that no longer exists.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Access token required")

    return await resolve_user(credentials.credentials, session)


__all__ = [
    "create_access_token",
    "decode_access_token",
    "get_current_user",
    "resolve_user",
    "security",
]
