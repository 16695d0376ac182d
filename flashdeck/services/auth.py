"""Account registration, login, and profile maintenance."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from flashdeck.core.auth import create_access_token
from flashdeck.core.errors import (
    ConflictError,
    ErrorCode,
    UnauthorizedError,
    ValidationFailedError,
)
from flashdeck.core.security import hash_password, verify_password
from flashdeck.models.user import User
from flashdeck.repositories.user import UserRepository

logger = logging.getLogger("flashdeck.services.auth")

INVALID_LOGIN_MESSAGE = "Invalid email or password"


@dataclass(slots=True)
class AuthResult:
    """User plus the freshly issued access token."""

    user: User
    token: str
    expires_at: datetime


class AuthService:
    """Coordinate credential checks, hashing, and token issuance."""

    def __init__(self, user_repo: UserRepository) -> None:
        self.user_repo = user_repo

    async def register(
        self,
        *,
        email: str,
        password: str,
        name: str | None = None,
    ) -> AuthResult:
        if not email or not password:
            raise ValidationFailedError("Email and password are required")

        normalized_email = email.strip().lower()
        existing = await self.user_repo.get_by_email(normalized_email)
        if existing is not None:
            raise ConflictError(ErrorCode.EMAIL_TAKEN, "User already exists with this email")

        password_hash = await hash_password(password)
        try:
            user = await self.user_repo.create(
                email=normalized_email,
                password_hash=password_hash,
                name=name or None,
            )
            await self.user_repo.commit()
        except IntegrityError as exc:
            # Lost a race against a concurrent registration.
            await self.user_repo.session.rollback()
            raise ConflictError(
                ErrorCode.EMAIL_TAKEN,
                "User already exists with this email",
            ) from exc

        token, expires_at = create_access_token(user)
        logger.info("User registered", extra={"user_id": str(user.id)})
        return AuthResult(user=user, token=token, expires_at=expires_at)

    async def login(self, *, email: str, password: str) -> AuthResult:
        if not email or not password:
            raise ValidationFailedError("Email and password are required")

        user = await self.user_repo.get_by_email(email.strip().lower())
        # Unknown accounts cost one bcrypt check as well.
        password_ok = await verify_password(password, user.password if user else None)
        if user is None:
            logger.info("Login rejected: unknown email")
            raise UnauthorizedError(INVALID_LOGIN_MESSAGE, code=ErrorCode.INVALID_CREDENTIALS)

        if not password_ok:
            logger.info("Login rejected: bad password", extra={"user_id": str(user.id)})
            raise UnauthorizedError(INVALID_LOGIN_MESSAGE, code=ErrorCode.INVALID_CREDENTIALS)

        token, expires_at = create_access_token(user)
        logger.info("User logged in", extra={"user_id": str(user.id)})
        return AuthResult(user=user, token=token, expires_at=expires_at)

    async def logout(self, user: User) -> bool:
        """Tokens are stateless; they simply run out at ``exp``."""
        logger.info("User logged out", extra={"user_id": str(user.id)})
        return True

    async def get_profile(self, user: User) -> User:
        return user

    async def change_password(
        self,
        user: User,
        *,
        current_password: str,
        new_password: str,
    ) -> None:
        if not await verify_password(current_password, user.password):
            raise UnauthorizedError("Invalid current password", code=ErrorCode.INVALID_CREDENTIALS)

        password_hash = await hash_password(new_password)
        await self.user_repo.set_password(user, password_hash)
        await self.user_repo.commit()
        logger.info("Password changed", extra={"user_id": str(user.id)})

    async def update_profile(self, user: User, **changes: str | None) -> User:
        """Apply ``name`` and/or ``email``; keys that are absent stay untouched."""
        fields: dict[str, str | None] = {}

        if "name" in changes:
            fields["name"] = changes["name"]

        email = changes.get("email")
        if email is not None:
            normalized_email = email.strip().lower()
            existing = await self.user_repo.get_by_email(normalized_email)
            if existing is not None and existing.id != user.id:
                raise ConflictError(ErrorCode.EMAIL_TAKEN, "Email already exists")
            fields["email"] = normalized_email

        if not fields:
            return user

        try:
            updated = await self.user_repo.update_fields(user, **fields)
            await self.user_repo.commit()
        except IntegrityError as exc:
            await self.user_repo.session.rollback()
            raise ConflictError(ErrorCode.EMAIL_TAKEN, "Email already exists") from exc

        logger.info(
            "Profile updated",
            extra={"user_id": str(updated.id), "fields": sorted(fields)},
        )
        return updated


__all__ = ["AuthResult", "AuthService", "INVALID_LOGIN_MESSAGE"]
