"""Repository for the append-only audit log."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import aliased

from inventra_service.db.models import AuditLogModel, UserModel
from inventra_service.db.repositories.base import ScopedRepo


class AuditRepo(ScopedRepo):
    """Insert and read only. There is deliberately no update or delete."""

    model = AuditLogModel

    async def append(
        self,
        resource_type: str,
        resource_id: UUID,
        action: str,
        to_user_id: UUID | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditLogModel:
        return await self._add(
            resource_type=resource_type,
            resource_id=resource_id,
            action=action,
            by_user_id=self._scope.user_id,
            to_user_id=to_user_id,
            details=details,
        )

    async def query(
        self,
        since: datetime | None = None,
        action: str | None = None,
        resource_type: str | None = None,
        resource_id: UUID | None = None,
        limit: int = 500,
    ) -> list[tuple[AuditLogModel, UserModel | None]]:
        """Newest first, joined with the acting user for display."""
        actor = aliased(UserModel)
        query = self._select(AuditLogModel, actor).outerjoin(
            actor, actor.id == AuditLogModel.by_user_id
        )
        if since is not None:
            query = query.where(AuditLogModel.timestamp >= since)
        if action:
            query = query.where(AuditLogModel.action == action)
        if resource_type:
            query = query.where(AuditLogModel.resource_type == resource_type)
        if resource_id:
            query = query.where(AuditLogModel.resource_id == resource_id)
        query = query.order_by(AuditLogModel.timestamp.desc()).limit(limit)
        result = await self._session.execute(query)
        return [(entry, user) for entry, user in result.all()]
