"""
Authentication endpoints: register, the login form, refresh, logout and me.
"""

from __future__ import annotations

from typing import Any

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.database import get_db
from taskhub.core.dependencies import get_access_claims, get_current_user, get_redis
from taskhub.models.user import User
from taskhub.schemas.auth import (
    CurrentUserResponse,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    SessionTokens,
)
from taskhub.schemas.common import MessageResponse
from taskhub.services.auth_service import AuthService

router = APIRouter()


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> AuthService:
    return AuthService(db=db, redis=redis)


@router.post(
    "/register",
    response_model=SessionTokens,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account and sign in",
)
async def register(
    data: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> SessionTokens:
    return await service.register(data)


@router.post("/login", response_model=SessionTokens, summary="Submit the login form")
async def login(
    data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> SessionTokens:
    """
    Sign in with email and password.

    Unknown emails and wrong passwords both come back as a 422 on ``email``.
    Without ``remember`` the refresh token only lasts the session window.
    """
    return await service.login(data)


@router.post("/refresh", response_model=SessionTokens, summary="Rotate the session tokens")
async def refresh(
    data: RefreshTokenRequest,
    service: AuthService = Depends(get_auth_service),
) -> SessionTokens:
    return await service.refresh(data.refresh_token)


@router.post("/logout", response_model=MessageResponse, summary="End the current session")
async def logout(
    data: RefreshTokenRequest,
    claims: dict[str, Any] = Depends(get_access_claims),
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await service.logout(claims, data.refresh_token)
    return MessageResponse(message="Logged out successfully.")


@router.get("/me", response_model=CurrentUserResponse, summary="The signed-in user")
async def me(current_user: User = Depends(get_current_user)) -> CurrentUserResponse:
    return CurrentUserResponse.model_validate(current_user)
