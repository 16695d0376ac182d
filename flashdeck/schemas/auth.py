"""
Pydantic schemas for authentication and profile endpoints.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6

Email = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=255)]
Name = Annotated[str, StringConstraints(strip_whitespace=True, max_length=255)]


def _validate_email(value: str) -> str:
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email format")
    return value.lower()


class RegisterRequest(BaseModel):
    """Request schema for POST /api/auth/register."""

    email: Email
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=128)
    name: Name | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "learner@example.com",
                "password": "secret123",
                "name": "Learner",
            }
        }
    )

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        return _validate_email(value)


class LoginRequest(BaseModel):
    """Request schema for POST /api/auth/login."""

    email: Email
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        return _validate_email(value)


class UpdateProfileRequest(BaseModel):
    """Partial profile update; omitted fields stay untouched."""

    name: Name | None = None
    email: Email | None = None

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _validate_email(value)


class ChangePasswordRequest(BaseModel):
    """Request schema for PUT /api/auth/change-password."""

    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=128)


class UserResponse(BaseModel):
    """Public user representation (never includes the password hash)."""

    id: UUID
    email: str
    name: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthPayload(BaseModel):
    """Data section returned by register and login."""

    user: UserResponse
    token: str = Field(..., description="JWT access token")
    expires_at: datetime = Field(..., description="Token expiration time (UTC)")


__all__ = [
    "AuthPayload",
    "ChangePasswordRequest",
    "LoginRequest",
    "RegisterRequest",
    "UpdateProfileRequest",
    "UserResponse",
]
