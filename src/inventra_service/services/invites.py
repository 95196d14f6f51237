"""
Invite state machine.

An invite is ``pending`` until it is accepted or its ``expires_at`` passes.
Acceptance requires the signed-in user's email to match the invited email
case-insensitively, and is idempotent: a user who is already a member simply
consumes the invite.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from inventra_service.db.models import InviteModel, MembershipModel
from inventra_service.db.repositories.auth import AuthRepo
from inventra_service.db.repositories.invites import InvitesRepo
from inventra_service.db.repositories.organization import OrganizationRepo
from inventra_service.domain import InviteState, ResourceKind, Role
from inventra_service.errors import AuthorizationDenied, Conflict, NotFound, ValidationError
from inventra_service.policy.roles import Action, require
from inventra_service.policy.tenancy import OrgScope, TenancyGuard
from inventra_service.services.gate import PlanGate
from inventra_service.settings import settings

log = structlog.get_logger(__name__)

INVITABLE_ROLES = (Role.ADMIN.value, Role.MEMBER.value)


def invite_state(invite: InviteModel, now: datetime | None = None) -> InviteState:
    if invite.accepted_at is not None:
        return InviteState.ACCEPTED
    if invite.expires_at <= (now or datetime.now(UTC)):
        return InviteState.EXPIRED
    return InviteState.PENDING


def new_token() -> str:
    return secrets.token_hex(32)


@dataclass
class InvitePreview:
    organization_id: UUID
    organization_name: str | None
    email: str
    role: str
    state: InviteState
    expires_at: datetime


class InvitesService:
    def __init__(self, session: AsyncSession, scope: OrgScope) -> None:
        self._session = session
        self._scope = scope
        self._repo = InvitesRepo(session, scope)
        self._org = OrganizationRepo(session, scope)
        self._gate = PlanGate(session, scope)

    async def create(self, email: str, role: str = Role.MEMBER.value) -> InviteModel:
        require(Action.INVITE_MEMBER, self._scope)
        email = (email or "").strip().lower()
        if not email or "@" not in email:
            raise ValidationError("A valid email is required")
        if role not in INVITABLE_ROLES:
            raise ValidationError("Role must be 'admin' or 'member'")
        if await self._repo.get_pending_for_email(email) is not None:
            raise Conflict("A pending invite for this email already exists")
        user = await AuthRepo(self._session).get_user_by_email(email)
        if user is not None and await self._org.get_member(user.id) is not None:
            raise Conflict("This user is already a member")
        # Outstanding invites hold seats until they are accepted or expire
        await self._gate.reserve(ResourceKind.MEMBER, pending=await self._repo.count_pending())
        invite = await self._repo.create(
            email=email,
            role=role,
            invited_by=self._scope.user_id,
            token=new_token(),
            expires_at=datetime.now(UTC) + timedelta(days=settings.invite_ttl_days),
        )
        await self._session.commit()
        log.info("invite_created", org_id=str(self._scope.org_id), invite_id=str(invite.id), role=role)
        return invite

    async def list_pending(self) -> list[InviteModel]:
        require(Action.INVITE_MEMBER, self._scope)
        return await self._repo.list_pending()

    async def revoke(self, invite_id: UUID) -> None:
        require(Action.INVITE_MEMBER, self._scope)
        invite = await self._repo.get(invite_id)
        if invite is None:
            raise NotFound("Invite")
        await self._repo.delete(invite)
        await self._session.commit()
        log.info("invite_revoked", org_id=str(self._scope.org_id), invite_id=str(invite_id))


async def preview_invite(session: AsyncSession, token: str) -> InvitePreview:
    repo = AuthRepo(session)
    invite = await repo.get_invite_by_token(token)
    if invite is None:
        raise NotFound("Invite")
    org = await repo.get_org(invite.org_id)
    return InvitePreview(
        organization_id=invite.org_id,
        organization_name=org.name if org else None,
        email=invite.email,
        role=invite.role,
        state=invite_state(invite),
        expires_at=invite.expires_at,
    )


async def accept_invite(session: AsyncSession, user_id: UUID, email: str, token: str) -> MembershipModel:
    """Consume ``token`` for the signed-in user and return their membership."""
    repo = AuthRepo(session)
    invite = await repo.get_invite_by_token(token)
    if invite is None:
        raise NotFound("Invite")
    state = invite_state(invite)
    if state is InviteState.ACCEPTED:
        raise Conflict("Invite has already been used")
    if state is InviteState.EXPIRED:
        raise ValidationError("Invite has expired")
    if invite.email.lower() != (email or "").strip().lower():
        log.info("invite_email_mismatch", invite_id=str(invite.id), user_id=str(user_id))
        raise AuthorizationDenied()

    scope = TenancyGuard.scope_for_invite(invite.org_id, user_id, invite.role)
    invites = InvitesRepo(session, scope)
    org = OrganizationRepo(session, scope)
    existing = await org.get_member(user_id)
    if existing is not None:
        await invites.mark_accepted(invite)
        await session.commit()
        log.info("invite_accepted_existing_member", org_id=str(invite.org_id), user_id=str(user_id))
        return existing

    await PlanGate(session, scope).reserve(ResourceKind.MEMBER)
    member = await org.add_member(user_id, invite.role)
    await invites.mark_accepted(invite)
    await session.commit()
    log.info("invite_accepted", org_id=str(invite.org_id), user_id=str(user_id), role=invite.role)
    return member
