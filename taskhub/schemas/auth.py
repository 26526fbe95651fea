from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator


class RegisterRequest(BaseModel):
    name: str = Field(min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def has_digit(cls, v: str) -> str:
        if not any(c.isdigit() for c in v):
            raise ValueError("The password must contain at least one number.")
        return v


class LoginRequest(BaseModel):
    """The login form: credentials plus the "remember me" checkbox."""

    email: EmailStr
    password: str = Field(min_length=1)
    remember: bool = False


class RefreshTokenRequest(BaseModel):
    """Body for /auth/refresh and /auth/logout."""

    refresh_token: str


class SessionTokens(BaseModel):
    access_token: str
    refresh_token: str
    token_type: Literal["bearer"] = "bearer"
    expires_in: int = Field(description="Seconds until the access token expires")


class CurrentUserResponse(BaseModel):
    id: UUID
    name: str
    email: str
    created_at: datetime

    model_config = {"from_attributes": True}
