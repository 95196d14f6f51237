"""
Subscriptions and the payment-provider webhook.

The provider reports membership lifecycle events keyed by the supporter's
email. Events are matched best-effort: email to user, user to the oldest
organization they own. An event that cannot be matched is acknowledged but not
applied, and left for manual reconciliation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from inventra_service.db.repositories.auth import AuthRepo
from inventra_service.db.repositories.billing import BillingRepo
from inventra_service.domain import SubscriptionStatus
from inventra_service.errors import ValidationError
from inventra_service.policy import plans
from inventra_service.policy.tenancy import OrgScope
from inventra_service.services.organizations import OrganizationsService
from inventra_service.settings import settings

log = structlog.get_logger(__name__)

ACTIVATING_EVENTS = frozenset({"membership.started", "membership.renewed", "membership.upgraded"})
ENDING_EVENTS = frozenset({"membership.cancelled", "membership.expired"})
FAILED_EVENTS = frozenset({"membership.payment_failed"})


@dataclass
class WebhookResult:
    applied: bool
    reason: str | None = None
    plan: str | None = None
    status: str | None = None


def _supporter_email(data: dict[str, Any]) -> str | None:
    email = data.get("supporter_email") or data.get("payer_email")
    return email.strip().lower() if isinstance(email, str) and email.strip() else None


def _price(data: dict[str, Any]) -> float | None:
    for key in ("current_price", "membership_level_price", "amount", "price"):
        value = data.get(key)
        if value is None:
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            continue
    return None


async def get_subscription(session: AsyncSession, scope: OrgScope) -> dict[str, Any]:
    """Current plan, status, billing period and usage for any member."""
    service = OrganizationsService(session, scope)
    usage = await service.usage()
    sub = await service.subscription()
    return {
        **usage,
        "current_period_start": sub.current_period_start if sub else None,
        "current_period_end": sub.current_period_end if sub else None,
        "external_subscription_id": sub.external_subscription_id if sub else None,
    }


async def apply_payment_event(session: AsyncSession, event: dict[str, Any]) -> WebhookResult:
    """Apply one provider event to the matching organization's subscription.

    Raises ``ValidationError`` when the event carries no supporter email.
    """
    event_type = event.get("type") or ""
    data = event.get("data") or {}
    email = _supporter_email(data)
    if email is None:
        raise ValidationError("Event has no supporter email")

    if event_type in ACTIVATING_EVENTS:
        now = datetime.now(UTC)
        plan = plans.plan_for_payment(data.get("membership_level_name"), _price(data))
        fields: dict[str, Any] = {
            "plan": plan.value,
            "status": SubscriptionStatus.ACTIVE.value,
            "current_period_start": now,
            "current_period_end": now + timedelta(days=settings.subscription_period_days),
            "external_supporter_email": email,
        }
        subscription_id = data.get("subscription_id") or data.get("id")
        if subscription_id is not None:
            fields["external_subscription_id"] = str(subscription_id)
    elif event_type in ENDING_EVENTS:
        fields = {"status": SubscriptionStatus.CANCELED.value}
    elif event_type in FAILED_EVENTS:
        fields = {"status": SubscriptionStatus.PAST_DUE.value}
    else:
        log.info("payment_event_ignored", event_type=event_type)
        return WebhookResult(applied=False, reason="unhandled_event")

    user = await AuthRepo(session).get_user_by_email(email)
    if user is None:
        log.warning("payment_event_unmatched", event_type=event_type, reason="user_not_found")
        return WebhookResult(applied=False, reason="user_not_found")
    repo = BillingRepo(session)
    org_id = await repo.find_owned_org(user.id)
    if org_id is None:
        log.warning("payment_event_unmatched", event_type=event_type, reason="no_owned_organization")
        return WebhookResult(applied=False, reason="no_owned_organization")

    sub = await repo.upsert_subscription(org_id, **fields)
    await session.commit()
    log.info(
        "payment_event_applied",
        event_type=event_type,
        org_id=str(org_id),
        plan=sub.plan,
        status=sub.status,
    )
    return WebhookResult(applied=True, plan=sub.plan, status=sub.status)
