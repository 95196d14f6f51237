"""Organization creation, settings and usage."""

from __future__ import annotations

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from inventra_service.db.models import DEFAULT_ORG_SETTINGS, OrganizationModel, SubscriptionModel
from inventra_service.db.repositories.auth import AuthRepo, slugify
from inventra_service.db.repositories.organization import OrganizationRepo
from inventra_service.domain import Feature, ResourceKind
from inventra_service.errors import Conflict, NotFound, ValidationError
from inventra_service.policy import plans
from inventra_service.policy.roles import Action, require
from inventra_service.policy.tenancy import OrgScope

log = structlog.get_logger(__name__)

_BOOL_SETTINGS = ("allowSelfAssignment", "requireApprovalForCheckout")


def validate_settings(values: dict[str, Any]) -> dict[str, Any]:
    unknown = set(values) - set(DEFAULT_ORG_SETTINGS)
    if unknown:
        raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")
    for key in _BOOL_SETTINGS:
        if key in values and not isinstance(values[key], bool):
            raise ValidationError(f"{key} must be a boolean")
    return values


async def create_organization(
    session: AsyncSession, user_id: UUID, name: str, slug: str | None = None
) -> OrganizationModel:
    """Create an organization owned by ``user_id`` on the free plan."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Organization name is required")
    repo = AuthRepo(session)
    if slug:
        slug = slugify(slug)
        if await repo.get_org_by_slug(slug) is not None:
            raise Conflict(f"Slug '{slug}' is already taken")
    else:
        slug = await repo.unique_slug(name)
    org = await repo.create_org(name=name, slug=slug, owner_id=user_id)
    await session.commit()
    log.info("organization_created", org_id=str(org.id), user_id=str(user_id))
    return org


async def list_my_organizations(session: AsyncSession, user_id: UUID) -> list[tuple[OrganizationModel, str]]:
    rows = await AuthRepo(session).list_memberships(user_id)
    return [(org, membership.role) for membership, org in rows]


class OrganizationsService:
    def __init__(self, session: AsyncSession, scope: OrgScope) -> None:
        self._session = session
        self._scope = scope
        self._repo = OrganizationRepo(session, scope)

    async def get(self) -> OrganizationModel:
        org = await self._repo.get()
        if org is None:
            raise NotFound("Organization")
        return org

    async def update(self, name: str | None = None, settings: dict[str, Any] | None = None) -> OrganizationModel:
        """Rename (owner only) and/or merge ``settings`` over the current ones (admin)."""
        org = await self.get()
        fields: dict[str, Any] = {}
        if name is not None and name != org.name:
            require(Action.UPDATE_ORG_NAME, self._scope)
            if not name.strip():
                raise ValidationError("Organization name is required")
            fields["name"] = name.strip()
        if settings:
            require(Action.UPDATE_ORG_SETTINGS, self._scope)
            fields["settings"] = {**(org.settings or {}), **validate_settings(settings)}
        if not fields:
            return org
        org = await self._repo.update(**fields)
        await self._session.commit()
        log.info("organization_updated", org_id=str(self._scope.org_id), fields=sorted(fields))
        return org

    async def delete(self) -> None:
        require(Action.DELETE_ORG, self._scope)
        await self._repo.delete()
        await self._session.commit()
        log.info("organization_deleted", org_id=str(self._scope.org_id), user_id=str(self._scope.user_id))

    async def subscription(self) -> SubscriptionModel | None:
        return await self._repo.get_subscription()

    async def usage(self) -> dict[str, Any]:
        sub = await self._repo.get_subscription()
        counts = await self._repo.usage_counts()
        limits = plans.limits_for(sub)
        return {
            "plan": plans.plan_of(sub).value,
            "status": sub.status if sub else plans.DEFAULT_SUBSCRIPTION.status,
            "features": sorted(f.value for f in Feature if plans.has_feature(sub, f)),
            "usage": {
                kind.value: {
                    "count": counts[kind.value],
                    "limit": limits.limit_for(kind),
                    "remaining": plans.remaining(sub, kind, counts[kind.value]),
                    "percentage": plans.usage_percentage(sub, kind, counts[kind.value]),
                    "can_create": plans.can_create(sub, kind, counts[kind.value]),
                }
                for kind in ResourceKind
            },
        }
