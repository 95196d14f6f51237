"""Payment webhook and subscription tests."""

from __future__ import annotations

import pytest

from inventra_service.errors import ValidationError
from inventra_service.services.billing import apply_payment_event, get_subscription


def _event(kind: str, email: str = "owner@acme.test", **data) -> dict:
    return {"type": f"membership.{kind}", "data": {"supporter_email": email, **data}}


@pytest.mark.asyncio
async def test_started_event_activates_plan_by_price(session, acme):
    result = await apply_payment_event(
        session, _event("started", "OWNER@acme.test", membership_level_price=29, id=777)
    )
    assert result.applied
    assert result.plan == "pro"

    sub = await get_subscription(session, acme["member_scope"])
    assert sub["plan"] == "pro"
    assert sub["status"] == "active"
    assert sub["external_subscription_id"] == "777"
    assert sub["current_period_end"] > sub["current_period_start"]
    assert sub["usage"]["asset"]["limit"] == 100


@pytest.mark.asyncio
async def test_provider_payload_sets_plan_and_subscription_id(session, acme):
    event = {
        "type": "membership.started",
        "data": {
            "supporter_email": "owner@acme.test",
            "membership_level_id": 4,
            "membership_level_name": "Supporter",
            "current_price": 29,
            "subscription_id": "sub_123",
        },
    }
    result = await apply_payment_event(session, event)
    assert result.applied
    assert result.plan == "pro"

    sub = await get_subscription(session, acme["owner_scope"])
    assert sub["plan"] == "pro"
    assert sub["external_subscription_id"] == "sub_123"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("kind", "status"),
    [("cancelled", "canceled"), ("expired", "canceled"), ("payment_failed", "past_due")],
)
async def test_lifecycle_events_change_status(session, acme, kind, status):
    await apply_payment_event(session, _event("started", membership_level_name="Enterprise"))
    result = await apply_payment_event(session, _event(kind))
    assert result.applied
    sub = await get_subscription(session, acme["owner_scope"])
    assert sub["status"] == status
    assert sub["plan"] == "enterprise"
    assert not sub["usage"]["asset"]["can_create"]


@pytest.mark.asyncio
async def test_unmatched_events_are_acknowledged_not_applied(session, acme):
    unknown_user = await apply_payment_event(session, _event("started", "stranger@x.com", amount=99))
    assert not unknown_user.applied
    assert unknown_user.reason == "user_not_found"

    # Members who own nothing cannot receive a subscription
    not_owner = await apply_payment_event(session, _event("started", "member@acme.test", amount=99))
    assert not not_owner.applied
    assert not_owner.reason == "no_owned_organization"

    sub = await get_subscription(session, acme["owner_scope"])
    assert sub["plan"] == "free"


@pytest.mark.asyncio
async def test_unknown_event_type_is_ignored(session, acme):
    result = await apply_payment_event(session, {"type": "membership.paused", "data": {"payer_email": "owner@acme.test"}})
    assert not result.applied
    assert result.reason == "unhandled_event"


@pytest.mark.asyncio
async def test_missing_email_is_rejected(session):
    with pytest.raises(ValidationError):
        await apply_payment_event(session, {"type": "membership.started", "data": {}})
