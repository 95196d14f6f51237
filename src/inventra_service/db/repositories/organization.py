"""Repository for an organization's own row, members and subscription."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select

from inventra_service.db.models import (
    AssetModel,
    AuditLogModel,
    InviteModel,
    LicenseModel,
    MembershipModel,
    OrganizationModel,
    RequestModel,
    SubscriptionModel,
    UserModel,
)
from inventra_service.db.repositories.base import ScopedRepo

_ORG_OWNED = (
    AuditLogModel,
    RequestModel,
    AssetModel,
    LicenseModel,
    InviteModel,
    SubscriptionModel,
    MembershipModel,
)


class OrganizationRepo(ScopedRepo):
    model = MembershipModel

    async def get(self) -> OrganizationModel | None:
        return await self._session.get(OrganizationModel, self._scope.org_id)

    async def update(self, **fields: Any) -> OrganizationModel | None:
        org = await self.get()
        if org:
            for key, value in fields.items():
                setattr(org, key, value)
            await self._session.flush()
            await self._session.refresh(org)
        return org

    async def delete(self) -> None:
        """Delete the organization and every row it owns."""
        for model in _ORG_OWNED:
            await self._session.execute(delete(model).where(model.org_id == self._scope.org_id))
        await self._session.execute(
            delete(OrganizationModel).where(OrganizationModel.id == self._scope.org_id)
        )

    # -- members ------------------------------------------------------------

    async def list_members(self) -> list[tuple[MembershipModel, UserModel]]:
        result = await self._session.execute(
            select(MembershipModel, UserModel)
            .join(UserModel, UserModel.id == MembershipModel.user_id)
            .where(MembershipModel.org_id == self._scope.org_id)
            .order_by(MembershipModel.created_at)
        )
        return [(m, u) for m, u in result.all()]

    async def get_member(self, user_id: UUID) -> MembershipModel | None:
        result = await self._session.execute(
            self._select().where(MembershipModel.user_id == user_id)
        )
        return result.scalars().first()

    async def add_member(self, user_id: UUID, role: str = "member") -> MembershipModel:
        return await self._add(user_id=user_id, role=role)

    async def set_role(self, member: MembershipModel, role: str) -> MembershipModel:
        member.role = role
        await self._session.flush()
        await self._session.refresh(member)
        return member

    async def remove_member(self, member: MembershipModel) -> None:
        await self._session.execute(
            delete(MembershipModel).where(
                MembershipModel.org_id == self._scope.org_id,
                MembershipModel.id == member.id,
            )
        )

    async def count_members(self) -> int:
        return await self._count()

    # -- subscription -------------------------------------------------------

    async def get_subscription(self, *, for_update: bool = False) -> SubscriptionModel | None:
        query = select(SubscriptionModel).where(SubscriptionModel.org_id == self._scope.org_id)
        if for_update:
            query = query.with_for_update()
        result = await self._session.execute(query)
        return result.scalars().first()

    async def usage_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for key, model in (
            ("asset", AssetModel),
            ("license", LicenseModel),
            ("member", MembershipModel),
        ):
            result = await self._session.execute(
                select(func.count()).select_from(model).where(model.org_id == self._scope.org_id)
            )
            counts[key] = result.scalar_one()
        return counts
