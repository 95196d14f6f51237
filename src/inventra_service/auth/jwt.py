"""JWT token creation and verification.

Tokens identify a user only. They deliberately carry no organization or role:
roles are looked up from the membership table on every organization request,
so a demotion takes effect immediately.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt

from inventra_service.auth.models import TokenPair
from inventra_service.settings import settings

ACCESS = "access"
REFRESH = "refresh"


def _now_utc() -> datetime:
    return datetime.now(UTC)


def _encode(payload: dict, token_type: str, expires_delta: timedelta) -> str:
    now = _now_utc()
    payload = {**payload, "iat": now, "exp": now + expires_delta, "type": token_type}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: UUID, email: str, expires_delta: timedelta | None = None) -> str:
    """Create a signed JWT access token."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    return _encode({"sub": str(user_id), "email": email}, ACCESS, expires_delta)


def create_refresh_token(user_id: UUID, expires_delta: timedelta | None = None) -> str:
    """Create a signed JWT refresh token."""
    if expires_delta is None:
        expires_delta = timedelta(days=settings.refresh_token_expire_days)
    return _encode({"sub": str(user_id)}, REFRESH, expires_delta)


def issue_tokens(user_id: UUID, email: str) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(user_id, email),
        refresh_token=create_refresh_token(user_id),
    )


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
