"""Borrow, return and transfer requests raised by members."""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from inventra_service.db.models import RequestModel
from inventra_service.db.repositories.assets import AssetsRepo
from inventra_service.db.repositories.licenses import LicensesRepo
from inventra_service.db.repositories.requests import RequestsRepo
from inventra_service.domain import RequestStatus, RequestType, ResourceType
from inventra_service.errors import NotFound, ValidationError
from inventra_service.policy.roles import Action, require
from inventra_service.policy.tenancy import OrgScope

log = structlog.get_logger(__name__)


class RequestsService:
    def __init__(self, session: AsyncSession, scope: OrgScope) -> None:
        self._session = session
        self._scope = scope
        self._repo = RequestsRepo(session, scope)
        self._assets = AssetsRepo(session, scope)
        self._licenses = LicensesRepo(session, scope)

    async def create(
        self,
        resource_type: str,
        resource_id: UUID,
        type: str,
        notes: str | None = None,
    ) -> RequestModel:
        try:
            resource_type = ResourceType(resource_type)
            request_type = RequestType(type)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        lookup = self._assets if resource_type is ResourceType.ASSET else self._licenses
        if await lookup.get(resource_id) is None:
            raise NotFound(resource_type.value.capitalize())
        request = await self._repo.create(
            resource_type=resource_type.value,
            resource_id=resource_id,
            type=request_type.value,
            status=RequestStatus.OPEN.value,
            notes=notes,
        )
        await self._session.commit()
        log.info("request_created", org_id=str(self._scope.org_id), request_id=str(request.id))
        return request

    async def list(self, status: str | None = None) -> list[RequestModel]:
        """Admins see every request in the organization, members only their own."""
        requester = None if self._scope.is_admin else self._scope.user_id
        return await self._repo.list(requester_user_id=requester, status=status)

    async def set_status(self, request_id: UUID, status: str) -> RequestModel:
        require(Action.MANAGE_REQUESTS, self._scope)
        try:
            status = RequestStatus(status).value
        except ValueError as exc:
            raise ValidationError(f"Invalid status: {status}") from exc
        request = await self._repo.get(request_id)
        if request is None:
            raise NotFound("Request")
        request = await self._repo.set_status(request, status)
        await self._session.commit()
        log.info("request_updated", org_id=str(self._scope.org_id), request_id=str(request_id), status=status)
        return request
