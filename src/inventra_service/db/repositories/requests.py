"""Repository for borrow/return/transfer requests."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from inventra_service.db.models import RequestModel
from inventra_service.db.repositories.base import ScopedRepo


class RequestsRepo(ScopedRepo):
    model = RequestModel

    async def create(self, **fields: Any) -> RequestModel:
        return await self._add(requester_user_id=self._scope.user_id, **fields)

    async def get(self, request_id: UUID) -> RequestModel | None:
        return await self._get(request_id)

    async def list(self, requester_user_id: UUID | None = None, status: str | None = None) -> list[RequestModel]:
        query = self._select()
        if requester_user_id:
            query = query.where(RequestModel.requester_user_id == requester_user_id)
        if status:
            query = query.where(RequestModel.status == status)
        result = await self._session.execute(query.order_by(RequestModel.created_at.desc()))
        return list(result.scalars().all())

    async def set_status(self, request: RequestModel, status: str) -> RequestModel:
        request.status = status
        await self._session.flush()
        await self._session.refresh(request)
        return request
