"""Repository used by the payment webhook.

The webhook acts for the payment provider, not for a signed-in user, so it has
no organization scope. It can only resolve an owner's organization and write
that organization's subscription row.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inventra_service.db.models import MembershipModel, SubscriptionModel


class BillingRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_owned_org(self, user_id: UUID) -> UUID | None:
        """The oldest organization ``user_id`` owns."""
        result = await self._session.execute(
            select(MembershipModel.org_id)
            .where(MembershipModel.user_id == user_id, MembershipModel.role == "owner")
            .order_by(MembershipModel.created_at)
            .limit(1)
        )
        return result.scalars().first()

    async def upsert_subscription(self, org_id: UUID, **fields: Any) -> SubscriptionModel:
        result = await self._session.execute(
            select(SubscriptionModel).where(SubscriptionModel.org_id == org_id).with_for_update()
        )
        sub = result.scalars().first()
        if sub is None:
            sub = SubscriptionModel(org_id=org_id, plan="free", status="active")
            self._session.add(sub)
        for key, value in fields.items():
            setattr(sub, key, value)
        await self._session.flush()
        await self._session.refresh(sub)
        return sub
