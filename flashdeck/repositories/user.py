"""User repository for CRUD operations."""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select

from flashdeck.models.user import User
from flashdeck.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Encapsulates persistence logic for User entities."""

    async def create(
        self,
        *,
        email: str,
        password_hash: str,
        name: str | None = None,
    ) -> User:
        user = User(email=email.lower(), password=password_hash, name=name)
        return await self.add(user)

    async def get(self, user_id: uuid.UUID) -> User | None:
        return await self._run(lambda: self.session.get(User, user_id))

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email.lower())

        async def _fetch() -> User | None:
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()

        return await self._run(_fetch)

    async def update_fields(self, user: User, **fields: Any) -> User:
        """Persist profile fields (``name``/``email``); unknown keys are rejected."""
        unknown = set(fields) - {"name", "email"}
        if unknown:
            raise ValueError(f"Unsupported user fields: {sorted(unknown)}")
        if isinstance(fields.get("email"), str):
            fields["email"] = fields["email"].lower()
        return await self.apply_update(user, fields)

    async def set_password(self, user: User, password_hash: str) -> None:
        await self.apply_update(user, {"password": password_hash})


__all__ = ["UserRepository"]
