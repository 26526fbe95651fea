"""
Passwords and signed session tokens.

A session is an access/refresh JWT pair. The refresh token's jti lives in
Redis under ``refresh:{user_id}:{jti}`` until it is rotated or revoked;
access tokens revoked by logout are listed under ``blacklist:{jti}`` for
whatever lifetime they had left.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any, NamedTuple

import bcrypt
from jose import JWTError, jwt

from taskhub.core.config import settings

ACCESS = "access"
REFRESH = "refresh"


def _password_bytes(password: str) -> bytes:
    # bcrypt ignores everything past 72 bytes
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))


def access_token_lifetime() -> timedelta:
    return timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)


def refresh_token_lifetime(remember: bool) -> timedelta:
    """Remembered logins keep the long refresh window, others the session window."""
    if remember:
        return timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS)
    return timedelta(hours=settings.JWT_SESSION_REFRESH_TOKEN_EXPIRE_HOURS)


class SignedToken(NamedTuple):
    value: str
    jti: str
    expires_in: int


def sign_token(user_id: uuid.UUID | str, kind: str, lifetime: timedelta, **claims: Any) -> SignedToken:
    """Sign a ``kind`` token for the user; extra claims are embedded as-is."""
    issued_at = datetime.now(UTC)
    jti = str(uuid.uuid4())
    payload = {
        **claims,
        "sub": str(user_id),
        "jti": jti,
        "type": kind,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    value = jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return SignedToken(value=value, jti=jti, expires_in=int(lifetime.total_seconds()))


def read_token(token: str, kind: str) -> dict[str, Any]:
    """
    Verify a token and return its claims.

    Raises ``JWTError`` for a bad signature, an expired token, or a token of
    another kind (a refresh token is never accepted as a bearer token).
    """
    claims = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    if claims.get("type") != kind:
        raise JWTError(f"Expected a {kind} token")
    return claims


def refresh_key(user_id: uuid.UUID | str, jti: str) -> str:
    return f"refresh:{user_id}:{jti}"


def revoked_key(jti: str) -> str:
    return f"blacklist:{jti}"
