"""
FastAPI dependency injection functions.

Provides Redis connections, the current user, and project/membership
resolution for project-scoped routes.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.config import settings
from taskhub.core.database import get_db
from taskhub.core.exceptions import not_found, unauthorized
from taskhub.core.security import ACCESS, read_token, revoked_key
from taskhub.models.project import Project
from taskhub.models.project_member import ProjectMember
from taskhub.models.user import User

# ---------------------------------------------------------------------------
# HTTP Bearer scheme (auto_error=False so we can return custom 401)
# ---------------------------------------------------------------------------

bearer_scheme = HTTPBearer(auto_error=False)

# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------

_redis_pool: aioredis.Redis | None = None

async def get_redis() -> aioredis.Redis:
    """
    Return a shared async Redis client.

    Uses a module-level pool so connections are reused across requests.
    """
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            str(settings.REDIS_URL),
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_pool

# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------

async def get_access_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    redis: aioredis.Redis = Depends(get_redis),
) -> dict[str, Any]:
    """Claims of the request's bearer token, once it is known to be live."""
    if credentials is None:
        raise unauthorized("MISSING_TOKEN", "Authorization header required")

    try:
        claims = read_token(credentials.credentials, ACCESS)
    except JWTError:
        raise unauthorized("INVALID_TOKEN", "Token is invalid or expired")

    if await redis.exists(revoked_key(claims.get("jti", ""))):
        raise unauthorized("TOKEN_REVOKED", "Token has been revoked")
    return claims

async def get_current_user(
    claims: dict[str, Any] = Depends(get_access_claims),
    db: AsyncSession = Depends(get_db),
) -> User:
    try:
        user_id = UUID(claims.get("sub", ""))
    except ValueError:
        raise unauthorized("INVALID_TOKEN", "Token is invalid or expired")

    user = await db.scalar(select(User).where(User.id == user_id))
    if user is None or not user.is_active:
        raise unauthorized("USER_NOT_FOUND", "User not found or inactive")
    return user

# ---------------------------------------------------------------------------
# Project membership
# ---------------------------------------------------------------------------

async def load_membership(
    db: AsyncSession, project_id: UUID, user_id: UUID
) -> ProjectMember | None:
    """The user's membership row for the project in any status, or None."""
    return await db.scalar(
        select(ProjectMember).where(
            ProjectMember.project_id == project_id,
            ProjectMember.user_id == user_id,
        )
    )

async def get_project_access(
    project_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> tuple[Project, ProjectMember | None]:
    """
    Resolve the project from the path and the current user's membership.

    Returns (project, membership). Raises 404 if the project does not exist;
    authorization is left to the endpoint so each one can give its own reason.
    """
    project = await db.scalar(select(Project).where(Project.id == project_id))
    if project is None:
        raise not_found("PROJECT_NOT_FOUND", "Project not found")

    membership = await load_membership(db, project.id, current_user.id)
    return project, membership
