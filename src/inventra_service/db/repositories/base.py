"""Base class for organization-scoped repositories."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from inventra_service.policy.tenancy import OrgScope


class ScopedRepo:
    """
    A repository bound to one verified organization scope.

    ``model`` must carry an ``org_id`` column. Every statement built through
    ``_select``/``_count`` is filtered by the scope's organization, and rows
    created through ``_add`` are stamped with it.
    """

    model: Any = None

    def __init__(self, session: AsyncSession, scope: OrgScope) -> None:
        if not isinstance(scope, OrgScope):
            raise TypeError("A verified OrgScope is required")
        self._session = session
        self._scope = scope

    @property
    def scope(self) -> OrgScope:
        return self._scope

    def _select(self, *columns: Any) -> Select:
        query = select(*columns) if columns else select(self.model)
        return query.where(self.model.org_id == self._scope.org_id)

    async def _count(self, *criteria: Any) -> int:
        query = (
            select(func.count())
            .select_from(self.model)
            .where(self.model.org_id == self._scope.org_id, *criteria)
        )
        result = await self._session.execute(query)
        return result.scalar_one()

    async def _get(self, row_id: Any) -> Any:
        result = await self._session.execute(self._select().where(self.model.id == row_id))
        return result.scalars().first()

    async def _add(self, **fields: Any) -> Any:
        row = self.model(org_id=self._scope.org_id, **fields)
        self._session.add(row)
        await self._session.flush()
        await self._session.refresh(row)
        return row

    async def count(self) -> int:
        return await self._count()
