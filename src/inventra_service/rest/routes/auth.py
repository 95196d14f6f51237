"""Auth endpoints: register, login, refresh, /me."""

from __future__ import annotations

import re

import structlog
from fastapi import APIRouter
from pydantic import BaseModel, field_validator

from inventra_service.auth.deps import CurrentUserDep, user_id_from_token
from inventra_service.auth.jwt import REFRESH, issue_tokens
from inventra_service.auth.passwords import MIN_PASSWORD_LENGTH, verify_password
from inventra_service.db.deps import AuthRepoDep, SessionDep
from inventra_service.errors import AuthenticationRequired, Conflict
from inventra_service.rest.schemas import OrgSchema
from inventra_service.services.organizations import create_organization, list_my_organizations

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    email: str
    password: str
    display_name: str | None = None
    org_name: str | None = None

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        v = v.strip().lower()
        if not _EMAIL_RE.match(v):
            raise ValueError("Invalid email address")
        return v

    @field_validator("password")
    @classmethod
    def password_min_length(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class MeResponse(BaseModel):
    user_id: str
    email: str
    display_name: str | None = None
    organizations: list[OrgSchema]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(request: RegisterRequest, repo: AuthRepoDep, session: SessionDep) -> TokenResponse:
    """Create a new user, optionally with an organization they own, returning JWT tokens."""
    if await repo.get_user_by_email(request.email):
        raise Conflict("Email already registered")

    user = await repo.create_user(
        email=request.email,
        password=request.password,
        display_name=request.display_name,
    )
    await session.commit()
    log.info("user_registered", user_id=str(user.id))
    if request.org_name:
        await create_organization(session, user.id, request.org_name)

    tokens = issue_tokens(user.id, user.email)
    return TokenResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token)


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest, repo: AuthRepoDep) -> TokenResponse:
    """Verify credentials and return JWT tokens."""
    user = await repo.get_user_by_email(request.email)
    if not user or not verify_password(request.password, user.password_hash):
        log.info("login_failed")
        raise AuthenticationRequired("Invalid email or password")

    tokens = issue_tokens(user.id, user.email)
    return TokenResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(request: RefreshRequest, repo: AuthRepoDep) -> TokenResponse:
    """Exchange a refresh token for a new token pair."""
    user_id, _ = user_id_from_token(request.refresh_token, expected_type=REFRESH)
    user = await repo.get_user(user_id)
    if not user:
        raise AuthenticationRequired("User not found")

    tokens = issue_tokens(user.id, user.email)
    return TokenResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token)


@router.get("/me", response_model=MeResponse)
async def me(current_user: CurrentUserDep, repo: AuthRepoDep, session: SessionDep) -> MeResponse:
    """Return the current user and the organizations they belong to."""
    user = await repo.get_user(current_user.user_id)
    orgs = await list_my_organizations(session, current_user.user_id)
    return MeResponse(
        user_id=str(current_user.user_id),
        email=current_user.email,
        display_name=user.display_name if user else None,
        organizations=[
            OrgSchema.model_validate(org).model_copy(update={"role": role}) for org, role in orgs
        ],
    )
