"""Membership management inside one organization."""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from inventra_service.db.models import MembershipModel, UserModel
from inventra_service.db.repositories.organization import OrganizationRepo
from inventra_service.domain import Role
from inventra_service.errors import NotFound, ValidationError
from inventra_service.policy.roles import Action, require
from inventra_service.policy.tenancy import OrgScope

log = structlog.get_logger(__name__)


class MembersService:
    def __init__(self, session: AsyncSession, scope: OrgScope) -> None:
        self._session = session
        self._scope = scope
        self._repo = OrganizationRepo(session, scope)

    async def list(self) -> list[tuple[MembershipModel, UserModel]]:
        return await self._repo.list_members()

    async def _target(self, user_id: UUID) -> MembershipModel:
        member = await self._repo.get_member(user_id)
        if member is None:
            raise NotFound("Member")
        return member

    async def change_role(self, user_id: UUID, role: str) -> MembershipModel:
        if role not in (Role.ADMIN.value, Role.MEMBER.value):
            raise ValidationError("Role must be 'admin' or 'member'")
        member = await self._target(user_id)
        require(Action.CHANGE_ROLE, self._scope, member)
        if member.role == role:
            return member
        old_role = member.role
        member = await self._repo.set_role(member, role)
        await self._session.commit()
        log.info(
            "member_role_changed",
            org_id=str(self._scope.org_id),
            user_id=str(user_id),
            old_role=old_role,
            new_role=role,
        )
        return member

    async def remove(self, user_id: UUID) -> None:
        """Remove a member, or leave when ``user_id`` is the caller."""
        member = await self._target(user_id)
        require(Action.REMOVE_MEMBER, self._scope, member)
        await self._repo.remove_member(member)
        await self._session.commit()
        log.info("member_removed", org_id=str(self._scope.org_id), user_id=str(user_id))
