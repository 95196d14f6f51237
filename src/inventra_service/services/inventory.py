"""Check-out rules shared by assets and licenses."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from inventra_service.db.models import DEFAULT_ORG_SETTINGS
from inventra_service.db.repositories.organization import OrganizationRepo
from inventra_service.db.repositories.requests import RequestsRepo
from inventra_service.domain import RequestStatus, RequestType, ResourceType
from inventra_service.errors import AuthorizationDenied, ValidationError
from inventra_service.policy.tenancy import OrgScope


class CheckoutRules:
    def __init__(self, session: AsyncSession, scope: OrgScope) -> None:
        self._scope = scope
        self._org = OrganizationRepo(session, scope)
        self._requests = RequestsRepo(session, scope)

    async def org_settings(self) -> dict:
        org = await self._org.get()
        return {**DEFAULT_ORG_SETTINGS, **((org.settings if org else None) or {})}

    async def ensure_can_check_out(self, resource_type: ResourceType, resource_id: UUID) -> None:
        """Apply the organization's self-assignment and approval settings.

        Admins are exempt. With ``requireApprovalForCheckout`` a member needs an
        approved borrow request for the resource, which is completed here.
        """
        if self._scope.is_admin:
            return
        org_settings = await self.org_settings()
        if not org_settings.get("allowSelfAssignment", True):
            raise AuthorizationDenied()
        if org_settings.get("requireApprovalForCheckout", False):
            approved = [
                r
                for r in await self._requests.list(
                    requester_user_id=self._scope.user_id, status=RequestStatus.APPROVED.value
                )
                if r.resource_id == resource_id
                and r.resource_type == resource_type.value
                and r.type == RequestType.BORROW.value
            ]
            if not approved:
                raise ValidationError("Check-out requires an approved borrow request")
            await self._requests.set_status(approved[0], RequestStatus.COMPLETED.value)

    async def ensure_member(self, user_id: UUID) -> None:
        if await self._org.get_member(user_id) is None:
            raise ValidationError("Assignee is not a member of this organization")
