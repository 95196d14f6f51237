"""Asset lifecycle and plan-limit enforcement tests."""

from __future__ import annotations

import uuid

import pytest
from _helpers import set_plan

from inventra_service.domain import AuditAction, ResourceType
from inventra_service.errors import AuthorizationDenied, Conflict, LimitExceeded, ValidationError
from inventra_service.services.assets import AssetsService
from inventra_service.services.audit import AuditService
from inventra_service.services.organizations import OrganizationsService


async def _fill(service: AssetsService, n: int) -> None:
    for i in range(n):
        await service.create(name=f"Asset {i}", category="laptop")


@pytest.mark.asyncio
async def test_free_plan_allows_ten_assets_then_blocks(session, acme):
    service = AssetsService(session, acme["admin_scope"])
    await _fill(service, 9)
    # The 10th asset fits exactly
    await service.create(name="Asset 10", category="monitor")

    with pytest.raises(LimitExceeded) as exc_info:
        await service.create(name="Asset 11", category="monitor")
    err = exc_info.value
    assert err.status_code == 402
    assert err.details["limit"] == 10
    assert err.details["plan"] == "free"
    assert err.details["upgrade"] is True
    assert len(await service.list()) == 10


@pytest.mark.asyncio
async def test_enterprise_is_unlimited(session, acme):
    await set_plan(session, acme["org"].id, "enterprise")
    service = AssetsService(session, acme["admin_scope"])
    await _fill(service, 12)
    assert len(await service.list()) == 12


@pytest.mark.asyncio
async def test_past_due_blocks_creation_regardless_of_plan(session, acme):
    await set_plan(session, acme["org"].id, "enterprise", status="past_due")
    with pytest.raises(LimitExceeded) as exc_info:
        await AssetsService(session, acme["admin_scope"]).create(name="Laptop", category="laptop")
    assert exc_info.value.details["reason"] == "subscription_inactive"


@pytest.mark.asyncio
async def test_member_cannot_create(session, acme):
    with pytest.raises(AuthorizationDenied):
        await AssetsService(session, acme["member_scope"]).create(name="Laptop", category="laptop")


@pytest.mark.asyncio
async def test_invalid_category(session, acme):
    with pytest.raises(ValidationError):
        await AssetsService(session, acme["admin_scope"]).create(name="Laptop", category="yacht")


@pytest.mark.asyncio
async def test_check_out_and_in_are_audited(session, acme):
    admin = AssetsService(session, acme["admin_scope"])
    member = AssetsService(session, acme["member_scope"])
    asset = await admin.create(name="Dock", category="dock", serial_number="D-1")

    asset = await member.check_out(asset.id)
    assert asset.status == "assigned"
    assert asset.assignee_user_id == acme["member"].id
    with pytest.raises(Conflict):
        await admin.check_out(asset.id)

    asset = await member.check_in(asset.id)
    assert asset.status == "available"
    assert asset.assignee_user_id is None

    history = await AuditService(session, acme["member_scope"]).history(ResourceType.ASSET, asset.id)
    assert [e.action for e in history] == ["check_in", "check_out", "create"]
    assert history[1].to_user_id == acme["member"].id


@pytest.mark.asyncio
async def test_only_assignee_or_admin_checks_in(session, acme):
    admin = AssetsService(session, acme["admin_scope"])
    asset = await admin.create(name="Monitor", category="monitor")
    await admin.assign(asset.id, acme["owner"].id)

    with pytest.raises(AuthorizationDenied):
        await AssetsService(session, acme["member_scope"]).check_in(asset.id)
    asset = await admin.check_in(asset.id)
    assert asset.status == "available"


@pytest.mark.asyncio
async def test_self_assignment_can_be_disabled(session, acme):
    await OrganizationsService(session, acme["admin_scope"]).update(settings={"allowSelfAssignment": False})
    asset = await AssetsService(session, acme["admin_scope"]).create(name="Mouse", category="peripheral")

    with pytest.raises(AuthorizationDenied):
        await AssetsService(session, acme["member_scope"]).check_out(asset.id)
    # Admins are not bound by the setting
    asset = await AssetsService(session, acme["admin_scope"]).check_out(asset.id)
    assert asset.assignee_user_id == acme["admin"].id


@pytest.mark.asyncio
async def test_retire_and_edit_are_audited_with_changes(session, acme):
    admin = AssetsService(session, acme["admin_scope"])
    asset = await admin.create(name="Old laptop", category="laptop")
    await admin.update(asset.id, name="Very old laptop")
    await admin.update(asset.id, status="retired")

    history = await AuditService(session, acme["admin_scope"]).history(ResourceType.ASSET, asset.id)
    assert history[0].action == AuditAction.RETIRE.value
    assert history[1].action == AuditAction.EDIT.value
    assert history[1].metadata["changes"]["name"] == {"old": "Old laptop", "new": "Very old laptop"}


@pytest.mark.asyncio
async def test_assign_requires_member_target(session, acme):
    admin = AssetsService(session, acme["admin_scope"])
    asset = await admin.create(name="Tablet", category="other")
    with pytest.raises(ValidationError):
        await admin.assign(asset.id, uuid.uuid4())


@pytest.mark.asyncio
async def test_delete_keeps_audit_trail(session, acme):
    admin = AssetsService(session, acme["admin_scope"])
    asset = await admin.create(name="Headset", category="peripheral")
    await admin.delete(asset.id)

    assert await admin.list() == []
    history = await AuditService(session, acme["admin_scope"]).history(ResourceType.ASSET, asset.id)
    assert history[0].action == "delete"


@pytest.mark.asyncio
async def test_status_assigned_must_go_through_check_out_or_assign(session, acme):
    admin = AssetsService(session, acme["admin_scope"])
    asset = await admin.create(name="Badge printer", category="other")

    with pytest.raises(ValidationError):
        await admin.update(asset.id, status="assigned")
    assert asset.status == "available"
    assert asset.assignee_user_id is None

    # The asset stays usable
    out = await AssetsService(session, acme["member_scope"]).check_out(asset.id)
    assert out.assignee_user_id == acme["member"].id
