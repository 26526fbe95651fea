"""
Accounts and the token sessions issued to them.

Login failures are reported on the ``email`` field, the same way the form
reports any other invalid input, and never say which credential was wrong.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

import redis.asyncio as aioredis
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.exceptions import field_error, forbidden, unauthorized
from taskhub.core.security import (
    ACCESS,
    REFRESH,
    access_token_lifetime,
    hash_password,
    read_token,
    refresh_key,
    refresh_token_lifetime,
    revoked_key,
    sign_token,
    verify_password,
)
from taskhub.models.user import User
from taskhub.schemas.auth import LoginRequest, RegisterRequest, SessionTokens

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    async def register(self, data: RegisterRequest) -> SessionTokens:
        email = data.email.lower()
        if await self._find_by_email(email) is not None:
            raise field_error("email", "The email has already been taken.")

        user = User(name=data.name, email=email, password_hash=hash_password(data.password))
        self.db.add(user)
        await self.db.flush()
        logger.info("Registered user_id=%s", user.id)

        return await self._start_session(user, remember=True)

    async def login(self, data: LoginRequest) -> SessionTokens:
        user = await self._find_by_email(data.email.lower())
        if (
            user is None
            or user.password_hash is None
            or not verify_password(data.password, user.password_hash)
        ):
            logger.info("Rejected login for %s", data.email)
            raise field_error("email", "These credentials do not match our records.")

        if not user.is_active:
            raise forbidden("This account has been disabled.", code="ACCOUNT_DISABLED")

        return await self._start_session(user, remember=data.remember)

    async def refresh(self, refresh_token: str) -> SessionTokens:
        """Rotate a refresh token. The old one stops working even if the user has gone."""
        claims = self._refresh_claims(refresh_token)

        # delete doubles as the existence check, so a token can't be rotated twice
        if not await self.redis.delete(refresh_key(claims["sub"], claims["jti"])):
            raise unauthorized("TOKEN_REVOKED", "Refresh token has been revoked")

        user = await self.db.scalar(select(User).where(User.id == UUID(claims["sub"])))
        if user is None or not user.is_active:
            raise unauthorized("USER_NOT_FOUND", "User not found or inactive")

        return await self._start_session(user, remember=bool(claims.get("remember", True)))

    async def logout(self, access_claims: dict[str, Any], refresh_token: str) -> None:
        """
        End the session behind ``access_claims``.

        The access token is blacklisted until it would have expired anyway.
        The refresh token is dropped only when it belongs to the same user;
        an already-expired one is ignored.
        """
        remaining = int(access_claims.get("exp", 0) - datetime.now(UTC).timestamp())
        if remaining > 0:
            await self.redis.setex(revoked_key(access_claims.get("jti", "")), remaining, "1")

        try:
            claims = read_token(refresh_token, REFRESH)
        except JWTError:
            return
        if claims.get("sub") == access_claims.get("sub"):
            await self.redis.delete(refresh_key(claims["sub"], claims.get("jti", "")))
        logger.info("Logged out user_id=%s", access_claims.get("sub"))

    async def _find_by_email(self, email: str) -> User | None:
        return await self.db.scalar(select(User).where(User.email == email))

    @staticmethod
    def _refresh_claims(token: str) -> dict[str, Any]:
        try:
            claims = read_token(token, REFRESH)
            UUID(claims.get("sub", ""))
        except (JWTError, ValueError):
            raise unauthorized("INVALID_TOKEN", "Refresh token is invalid or expired")
        return claims

    async def _start_session(self, user: User, remember: bool) -> SessionTokens:
        access = sign_token(user.id, ACCESS, access_token_lifetime())
        refresh = sign_token(user.id, REFRESH, refresh_token_lifetime(remember), remember=remember)

        await self.redis.setex(refresh_key(user.id, refresh.jti), refresh.expires_in, "1")

        return SessionTokens(
            access_token=access.value,
            refresh_token=refresh.value,
            expires_in=access.expires_in,
        )
