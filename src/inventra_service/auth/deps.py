"""FastAPI auth dependencies."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

import jwt
import structlog
from fastapi import Depends, Request

from inventra_service.auth.jwt import ACCESS, decode_token
from inventra_service.auth.models import CurrentUser
from inventra_service.db.deps import AuthRepoDep, SessionDep
from inventra_service.errors import AuthenticationRequired
from inventra_service.policy.tenancy import OrgScope, TenancyGuard

log = structlog.get_logger(__name__)


def user_id_from_token(token: str, expected_type: str = ACCESS) -> tuple[UUID, dict]:
    """Decode ``token`` and return ``(user_id, payload)`` or raise ``AuthenticationRequired``."""
    try:
        payload = decode_token(token)
    except jwt.PyJWTError as exc:
        raise AuthenticationRequired("Invalid or expired token") from exc

    if payload.get("type") != expected_type:
        raise AuthenticationRequired(f"Not an {expected_type} token")

    try:
        return UUID(payload["sub"]), payload
    except (KeyError, ValueError) as exc:
        raise AuthenticationRequired("Malformed token payload") from exc


async def get_current_user(request: Request, repo: AuthRepoDep) -> CurrentUser:
    """
    Resolve the current authenticated user from ``Authorization: Bearer <token>``.

    The user row must still exist; the email is read from it, not the token.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise AuthenticationRequired()

    user_id, _ = user_id_from_token(auth_header.removeprefix("Bearer ").strip())
    user = await repo.get_user(user_id)
    if user is None:
        log.info("token_user_missing", user_id=str(user_id))
        raise AuthenticationRequired("Invalid or expired token")
    return CurrentUser(user_id=user.id, email=user.email)


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


async def get_org_scope(org_id: UUID, user: CurrentUserDep, session: SessionDep) -> OrgScope:
    """Verify the caller's membership in the ``org_id`` path parameter."""
    return await TenancyGuard(session).resolve(user.user_id, org_id)


OrgScopeDep = Annotated[OrgScope, Depends(get_org_scope)]
