"""Repository for licenses.

List and get return ``LicenseView`` projections that never carry the full
seat key. ``read_full_key`` is the only query that selects ``seat_key_full``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, or_
from sqlalchemy.orm import defer

from inventra_service.db.models import LicenseModel
from inventra_service.db.repositories.base import ScopedRepo


@dataclass(frozen=True)
class LicenseView:
    id: UUID
    org_id: UUID
    qr_code: str
    product: str
    seat_key_masked: str | None
    status: str
    assignee_user_id: UUID | None
    expires_at: date | None
    notes: str | None
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_model(cls, row: Any) -> LicenseView:
        return cls(**{name: getattr(row, name) for name in _SAFE_FIELDS})


_SAFE_FIELDS = tuple(LicenseView.__dataclass_fields__)
_SAFE_COLUMNS = tuple(getattr(LicenseModel, name) for name in _SAFE_FIELDS)


class LicensesRepo(ScopedRepo):
    model = LicenseModel

    async def create(self, seat_key_full: str | None, **fields: Any) -> LicenseView:
        license_id = uuid.uuid4()
        row = LicenseModel(
            id=license_id,
            org_id=self._scope.org_id,
            qr_code=f"license:{license_id}",
            seat_key_full=seat_key_full,
            **fields,
        )
        self._session.add(row)
        await self._session.flush()
        return LicenseView.from_model(row)

    async def get(self, license_id: UUID) -> LicenseView | None:
        result = await self._session.execute(
            self._select(*_SAFE_COLUMNS).where(LicenseModel.id == license_id)
        )
        row = result.first()
        return LicenseView.from_model(row) if row else None

    async def list(
        self,
        status: str | None = None,
        product: str | None = None,
        search: str | None = None,
        assignee_user_id: UUID | None = None,
    ) -> list[LicenseView]:
        query = self._select(*_SAFE_COLUMNS)
        if status:
            query = query.where(LicenseModel.status == status)
        if product:
            query = query.where(LicenseModel.product == product)
        if assignee_user_id:
            query = query.where(LicenseModel.assignee_user_id == assignee_user_id)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                or_(LicenseModel.notes.ilike(pattern), LicenseModel.seat_key_masked.ilike(pattern))
            )
        result = await self._session.execute(query.order_by(LicenseModel.created_at.desc()))
        return [LicenseView.from_model(row) for row in result.all()]

    async def update(self, license_id: UUID, **fields: Any) -> LicenseView | None:
        result = await self._session.execute(
            self._select()
            .options(defer(LicenseModel.seat_key_full, raiseload=True))
            .where(LicenseModel.id == license_id)
        )
        row = result.scalars().first()
        if row is None:
            return None
        for key, value in fields.items():
            setattr(row, key, value)
        await self._session.flush()
        return LicenseView.from_model(row)

    async def delete(self, license_id: UUID) -> None:
        await self._session.execute(
            delete(LicenseModel).where(
                LicenseModel.org_id == self._scope.org_id,
                LicenseModel.id == license_id,
            )
        )

    async def read_full_key(self, license_id: UUID) -> tuple[bool, str | None]:
        """Return ``(found, seat_key_full)`` for one license in scope."""
        result = await self._session.execute(
            self._select(LicenseModel.seat_key_full).where(LicenseModel.id == license_id)
        )
        row = result.first()
        if row is None:
            return False, None
        return True, row[0]
