"""
Authentication API endpoints.

Email/password registration and login issuing stateless JWT access tokens,
plus profile maintenance for the authenticated user.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from flashdeck.core.auth import get_current_user
from flashdeck.core.db import get_session
from flashdeck.models.user import User
from flashdeck.repositories.user import UserRepository
from flashdeck.schemas.auth import (
    AuthPayload,
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    UpdateProfileRequest,
    UserResponse,
)
from flashdeck.schemas.common import ApiResponse, MessageResponse
from flashdeck.services.auth import AuthResult, AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


async def get_auth_service(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> AuthService:
    return AuthService(UserRepository(session))


def _auth_payload(result: AuthResult) -> AuthPayload:
    return AuthPayload(
        user=UserResponse.model_validate(result.user),
        token=result.token,
        expires_at=result.expires_at,
    )


@router.post(
    "/register",
    response_model=ApiResponse[AuthPayload],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
)
async def register(
    payload: RegisterRequest,
    service: AuthService = Depends(get_auth_service),  # noqa: B008
) -> ApiResponse[AuthPayload]:
    """
    Create an account and return an access token.

    **Errors:**
    - 400 VALIDATION_ERROR: malformed email or short password
    - 409 EMAIL_TAKEN: the email is already registered
    """
    result = await service.register(
        email=payload.email,
        password=payload.password,
        name=payload.name,
    )
    return ApiResponse(message="User registered successfully", data=_auth_payload(result))


@router.post(
    "/login",
    response_model=ApiResponse[AuthPayload],
    summary="Log in with email and password",
)
async def login(
    payload: LoginRequest,
    service: AuthService = Depends(get_auth_service),  # noqa: B008
) -> ApiResponse[AuthPayload]:
    """
    Exchange credentials for an access token.

    Unknown email and wrong password produce the same 401 response.
    """
    result = await service.login(email=payload.email, password=payload.password)
    return ApiResponse(message="Login successful", data=_auth_payload(result))


@router.post("/logout", response_model=MessageResponse, summary="Log out")
async def logout(
    user: User = Depends(get_current_user),  # noqa: B008
    service: AuthService = Depends(get_auth_service),  # noqa: B008
) -> MessageResponse:
    await service.logout(user)
    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=ApiResponse[UserResponse], summary="Current user profile")
async def me(
    user: User = Depends(get_current_user),  # noqa: B008
    service: AuthService = Depends(get_auth_service),  # noqa: B008
) -> ApiResponse[UserResponse]:
    profile = await service.get_profile(user)
    return ApiResponse(
        message="Profile retrieved successfully",
        data=UserResponse.model_validate(profile),
    )


@router.put("/profile", response_model=ApiResponse[UserResponse], summary="Update profile")
async def update_profile(
    payload: UpdateProfileRequest,
    user: User = Depends(get_current_user),  # noqa: B008
    service: AuthService = Depends(get_auth_service),  # noqa: B008
) -> ApiResponse[UserResponse]:
    changes = payload.model_dump(include=payload.model_fields_set)
    updated = await service.update_profile(user, **changes)
    return ApiResponse(
        message="Profile updated successfully",
        data=UserResponse.model_validate(updated),
    )


@router.put("/change-password", response_model=MessageResponse, summary="Change password")
async def change_password(
    payload: ChangePasswordRequest,
    user: User = Depends(get_current_user),  # noqa: B008
    service: AuthService = Depends(get_auth_service),  # noqa: B008
) -> MessageResponse:
    await service.change_password(
        user,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )
    return MessageResponse(message="Password changed successfully")


__all__ = ["get_auth_service", "router"]
