"""
Plan-limit gate.

Per-plan ceilings and feature flags, and the pure functions that compare a
subscription and a live usage count against them. ``None`` means unlimited.
The transactional enforcement that calls these lives in ``services.gate``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from inventra_service.domain import Feature, Plan, ResourceKind, SubscriptionStatus


class SubscriptionLike(Protocol):
    plan: str
    status: str


@dataclass(frozen=True)
class PlanLimits:
    max_assets: int | None
    max_licenses: int | None
    max_members: int | None
    features: frozenset[Feature] = field(default_factory=frozenset)

    def limit_for(self, kind: ResourceKind) -> int | None:
        return {
            ResourceKind.ASSET: self.max_assets,
            ResourceKind.LICENSE: self.max_licenses,
            ResourceKind.MEMBER: self.max_members,
        }[ResourceKind(kind)]


@dataclass(frozen=True)
class PlanInfo:
    name: str
    monthly_price: int
    description: str


PLAN_LIMITS: dict[Plan, PlanLimits] = {
    Plan.FREE: PlanLimits(max_assets=10, max_licenses=5, max_members=3),
    Plan.PRO: PlanLimits(
        max_assets=100,
        max_licenses=50,
        max_members=15,
        features=frozenset({Feature.BULK_IMPORT, Feature.AUDIT_LOG}),
    ),
    Plan.ENTERPRISE: PlanLimits(
        max_assets=None,
        max_licenses=None,
        max_members=None,
        features=frozenset(Feature),
    ),
}

PLAN_INFO: dict[Plan, PlanInfo] = {
    Plan.FREE: PlanInfo(name="Free", monthly_price=0, description="Getting started"),
    Plan.PRO: PlanInfo(name="Pro", monthly_price=29, description="Growing teams"),
    Plan.ENTERPRISE: PlanInfo(name="Enterprise", monthly_price=99, description="Large organizations"),
}


@dataclass(frozen=True)
class _FreeActive:
    plan: str = Plan.FREE.value
    status: str = SubscriptionStatus.ACTIVE.value


# An organization without a subscription row is treated as free/active
DEFAULT_SUBSCRIPTION = _FreeActive()


def plan_of(subscription: SubscriptionLike | None) -> Plan:
    sub = subscription or DEFAULT_SUBSCRIPTION
    return Plan(sub.plan)


def limits_for(subscription: SubscriptionLike | None) -> PlanLimits:
    return PLAN_LIMITS[plan_of(subscription)]


def is_active(subscription: SubscriptionLike | None) -> bool:
    sub = subscription or DEFAULT_SUBSCRIPTION
    return sub.status == SubscriptionStatus.ACTIVE.value


def can_create(subscription: SubscriptionLike | None, kind: ResourceKind, current_count: int) -> bool:
    """``status == active`` and ``current_count`` below the plan's ceiling for ``kind``."""
    if not is_active(subscription):
        return False
    limit = limits_for(subscription).limit_for(kind)
    return limit is None or current_count < limit


def has_feature(subscription: SubscriptionLike | None, feature: Feature) -> bool:
    """``status == active`` and the plan enables ``feature``."""
    if not is_active(subscription):
        return False
    return Feature(feature) in limits_for(subscription).features


def remaining(subscription: SubscriptionLike | None, kind: ResourceKind, current_count: int) -> int | None:
    limit = limits_for(subscription).limit_for(kind)
    if limit is None:
        return None
    return max(0, limit - current_count)


def usage_percentage(subscription: SubscriptionLike | None, kind: ResourceKind, current_count: int) -> int:
    limit = limits_for(subscription).limit_for(kind)
    if not limit:
        return 0
    return min(100, round(current_count / limit * 100))


def plan_for_payment(level_name: str | None, price: float | None) -> Plan:
    """Map a payment provider's membership level to a plan, price first."""
    if price and price >= PLAN_INFO[Plan.ENTERPRISE].monthly_price:
        return Plan.ENTERPRISE
    if price and price >= PLAN_INFO[Plan.PRO].monthly_price:
        return Plan.PRO
    name = (level_name or "").lower()
    if "enterprise" in name:
        return Plan.ENTERPRISE
    if "pro" in name:
        return Plan.PRO
    return Plan.FREE
