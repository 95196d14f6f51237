"""Repository for assets."""

from __future__ import annotations

import uuid
from typing import Any
from uuid import UUID

from sqlalchemy import delete, or_

from inventra_service.db.models import AssetModel
from inventra_service.db.repositories.base import ScopedRepo


class AssetsRepo(ScopedRepo):
    model = AssetModel

    async def create(self, **fields: Any) -> AssetModel:
        asset_id = uuid.uuid4()
        return await self._add(id=asset_id, qr_code=f"asset:{asset_id}", **fields)

    async def get(self, asset_id: UUID) -> AssetModel | None:
        return await self._get(asset_id)

    async def list(
        self,
        status: str | None = None,
        category: str | None = None,
        search: str | None = None,
        assignee_user_id: UUID | None = None,
    ) -> list[AssetModel]:
        query = self._select()
        if status:
            query = query.where(AssetModel.status == status)
        if category:
            query = query.where(AssetModel.category == category)
        if assignee_user_id:
            query = query.where(AssetModel.assignee_user_id == assignee_user_id)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                or_(
                    AssetModel.name.ilike(pattern),
                    AssetModel.serial_number.ilike(pattern),
                    AssetModel.location.ilike(pattern),
                )
            )
        result = await self._session.execute(query.order_by(AssetModel.created_at.desc()))
        return list(result.scalars().all())

    async def update(self, asset: AssetModel, **fields: Any) -> AssetModel:
        for key, value in fields.items():
            setattr(asset, key, value)
        await self._session.flush()
        await self._session.refresh(asset)
        return asset

    async def delete(self, asset: AssetModel) -> None:
        await self._session.execute(
            delete(AssetModel).where(
                AssetModel.org_id == self._scope.org_id,
                AssetModel.id == asset.id,
            )
        )
