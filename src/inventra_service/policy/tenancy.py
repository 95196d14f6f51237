"""
Tenancy guard.

``OrgScope`` is the verified (organization, user, role) triple every
tenant-owned repository requires. ``TenancyGuard.resolve`` is the one place a
scope is built, from the caller's membership row; a caller without one gets
``AuthorizationDenied`` whether or not the organization exists.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inventra_service.db.models import MembershipModel
from inventra_service.errors import AuthorizationDenied
from inventra_service.policy import roles

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OrgScope:
    org_id: UUID
    user_id: UUID
    role: str

    @property
    def is_admin(self) -> bool:
        return roles.is_admin(self.role)

    @property
    def is_owner(self) -> bool:
        return roles.has_role(self.role, roles.Role.OWNER)


class TenancyGuard:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def role_of(self, user_id: UUID, org_id: UUID) -> str | None:
        result = await self._session.execute(
            select(MembershipModel.role).where(
                MembershipModel.org_id == org_id,
                MembershipModel.user_id == user_id,
            )
        )
        return result.scalars().first()

    async def is_member(self, user_id: UUID, org_id: UUID) -> bool:
        return roles.is_member(await self.role_of(user_id, org_id))

    async def has_role(self, user_id: UUID, org_id: UUID, role: str) -> bool:
        return roles.has_role(await self.role_of(user_id, org_id), role)

    async def is_admin(self, user_id: UUID, org_id: UUID) -> bool:
        return roles.is_admin(await self.role_of(user_id, org_id))

    async def resolve(self, user_id: UUID, org_id: UUID) -> OrgScope:
        """Return the caller's scope in ``org_id`` or raise ``AuthorizationDenied``."""
        role = await self.role_of(user_id, org_id)
        if not roles.is_member(role):
            log.info("tenancy_denied", user_id=str(user_id))
            raise AuthorizationDenied()
        return OrgScope(org_id=org_id, user_id=user_id, role=role)

    @staticmethod
    def scope_for_invite(org_id: UUID, user_id: UUID, role: str) -> OrgScope:
        """Scope granted by a verified, unexpired, email-matched invite.

        Only the invite acceptance flow calls this, after all invite checks
        have passed and before the membership row exists.
        """
        return OrgScope(org_id=org_id, user_id=user_id, role=role)
