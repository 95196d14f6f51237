"""Transactional plan-limit and feature enforcement."""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from inventra_service.db.models import SubscriptionModel
from inventra_service.db.repositories.organization import OrganizationRepo
from inventra_service.domain import Feature, ResourceKind
from inventra_service.errors import FeatureNotAvailable, LimitExceeded
from inventra_service.policy import plans
from inventra_service.policy.tenancy import OrgScope

log = structlog.get_logger(__name__)


class PlanGate:
    """
    Enforces plan ceilings at the point of mutation.

    ``reserve`` locks the organization's subscription row for the rest of the
    transaction, counts live rows and compares. The caller inserts and commits
    in the same transaction, so concurrent creates for one organization are
    serialized on that lock instead of racing past the ceiling.
    """

    def __init__(self, session: AsyncSession, scope: OrgScope) -> None:
        self._org = OrganizationRepo(session, scope)
        self._scope = scope

    async def subscription(self, *, for_update: bool = False) -> SubscriptionModel | None:
        return await self._org.get_subscription(for_update=for_update)

    async def reserve(self, kind: ResourceKind, *, pending: int = 0) -> None:
        """Raise ``LimitExceeded`` unless one more ``kind`` fits the plan.

        ``pending`` adds reservations not yet materialized as rows (for
        members: outstanding invites).
        """
        sub = await self.subscription(for_update=True)
        plan = plans.plan_of(sub)
        limit = plans.limits_for(sub).limit_for(kind)
        if not plans.is_active(sub):
            log.info("limit_blocked_inactive", org_id=str(self._scope.org_id), kind=kind.value)
            raise LimitExceeded(kind.value, plan=plan.value, limit=limit, reason="subscription_inactive")
        if limit is None:
            return
        counts = await self._org.usage_counts()
        current = counts[kind.value] + pending
        if not plans.can_create(sub, kind, current):
            log.info(
                "limit_reached",
                org_id=str(self._scope.org_id),
                kind=kind.value,
                plan=plan.value,
                limit=limit,
            )
            raise LimitExceeded(kind.value, plan=plan.value, limit=limit)

    async def require_feature(self, feature: Feature) -> None:
        sub = await self.subscription()
        if not plans.has_feature(sub, feature):
            raise FeatureNotAvailable(feature.value, plan=plans.plan_of(sub).value)
