"""Repository for an organization's invites."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete

from inventra_service.db.models import InviteModel
from inventra_service.db.repositories.base import ScopedRepo


class InvitesRepo(ScopedRepo):
    model = InviteModel

    async def create(
        self, email: str, role: str, invited_by: UUID, token: str, expires_at: datetime
    ) -> InviteModel:
        return await self._add(
            email=email,
            role=role,
            invited_by=invited_by,
            token=token,
            expires_at=expires_at,
        )

    async def get(self, invite_id: UUID) -> InviteModel | None:
        return await self._get(invite_id)

    async def list_pending(self) -> list[InviteModel]:
        now = datetime.now(UTC)
        result = await self._session.execute(
            self._select()
            .where(InviteModel.accepted_at.is_(None), InviteModel.expires_at > now)
            .order_by(InviteModel.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_pending_for_email(self, email: str) -> InviteModel | None:
        now = datetime.now(UTC)
        result = await self._session.execute(
            self._select().where(
                InviteModel.email == email,
                InviteModel.accepted_at.is_(None),
                InviteModel.expires_at > now,
            )
        )
        return result.scalars().first()

    async def count_pending(self) -> int:
        now = datetime.now(UTC)
        return await self._count(InviteModel.accepted_at.is_(None), InviteModel.expires_at > now)

    async def delete(self, invite: InviteModel) -> None:
        await self._session.execute(
            delete(InviteModel).where(
                InviteModel.org_id == self._scope.org_id,
                InviteModel.id == invite.id,
            )
        )

    async def mark_accepted(self, invite: InviteModel) -> InviteModel:
        invite.accepted_at = datetime.now(UTC)
        await self._session.flush()
        return invite
