"""Organization, settings and membership management tests."""

from __future__ import annotations

import pytest
from _helpers import make_org, make_user, set_plan

from inventra_service.errors import AuthorizationDenied, NotFound, ValidationError
from inventra_service.policy.tenancy import TenancyGuard
from inventra_service.services.assets import AssetsService
from inventra_service.services.members import MembersService
from inventra_service.services.organizations import OrganizationsService, list_my_organizations


@pytest.mark.asyncio
async def test_creator_becomes_owner_on_free_plan(session):
    user = await make_user(session, "founder@x.com")
    org = await make_org(session, user, "Tico Labs!")
    assert org.slug == "tico-labs"
    assert await TenancyGuard(session).has_role(user.id, org.id, "owner")

    second = await make_org(session, user, "Tico Labs")
    assert second.slug == "tico-labs-1"
    assert [role for _, role in await list_my_organizations(session, user.id)] == ["owner", "owner"]

    scope = await TenancyGuard(session).resolve(user.id, org.id)
    usage = await OrganizationsService(session, scope).usage()
    assert usage["plan"] == "free"
    assert usage["usage"]["member"]["count"] == 1
    assert usage["usage"]["asset"]["limit"] == 10


@pytest.mark.asyncio
async def test_rename_is_owner_only_settings_admin(session, acme):
    with pytest.raises(AuthorizationDenied):
        await OrganizationsService(session, acme["admin_scope"]).update(name="Hijacked")

    org = await OrganizationsService(session, acme["admin_scope"]).update(
        settings={"defaultAssetLocation": "HQ"}
    )
    assert org.settings["defaultAssetLocation"] == "HQ"
    # Merged over the existing keys
    assert org.settings["allowSelfAssignment"] is True

    with pytest.raises(AuthorizationDenied):
        await OrganizationsService(session, acme["member_scope"]).update(settings={"timezone": "UTC"})
    with pytest.raises(ValidationError):
        await OrganizationsService(session, acme["admin_scope"]).update(settings={"colour": "red"})

    org = await OrganizationsService(session, acme["owner_scope"]).update(name="Acme Corp")
    assert org.name == "Acme Corp"

    asset = await AssetsService(session, acme["admin_scope"]).create(name="Chair", category="other")
    assert asset.location == "HQ"


@pytest.mark.asyncio
async def test_owner_cannot_be_demoted_or_removed(session, acme):
    owner_id = acme["owner"].id
    with pytest.raises(AuthorizationDenied):
        await MembersService(session, acme["admin_scope"]).remove(owner_id)
    with pytest.raises(AuthorizationDenied):
        await MembersService(session, acme["owner_scope"]).remove(owner_id)
    with pytest.raises(ValidationError):
        await MembersService(session, acme["owner_scope"]).change_role(acme["admin"].id, "owner")


@pytest.mark.asyncio
async def test_role_changes_take_effect_immediately(session, acme):
    await MembersService(session, acme["owner_scope"]).change_role(acme["member"].id, "admin")
    assert await TenancyGuard(session).is_admin(acme["member"].id, acme["org"].id)

    with pytest.raises(AuthorizationDenied):
        await MembersService(session, acme["admin_scope"]).change_role(acme["member"].id, "member")


@pytest.mark.asyncio
async def test_member_can_leave_and_admin_can_remove(session, acme):
    await MembersService(session, acme["member_scope"]).remove(acme["member"].id)
    assert not await TenancyGuard(session).is_member(acme["member"].id, acme["org"].id)

    with pytest.raises(NotFound):
        await MembersService(session, acme["admin_scope"]).remove(acme["member"].id)


@pytest.mark.asyncio
async def test_delete_is_owner_only_and_removes_everything(session, acme):
    await AssetsService(session, acme["admin_scope"]).create(name="Chair", category="other")
    with pytest.raises(AuthorizationDenied):
        await OrganizationsService(session, acme["admin_scope"]).delete()

    await OrganizationsService(session, acme["owner_scope"]).delete()
    assert not await TenancyGuard(session).is_member(acme["owner"].id, acme["org"].id)
    assert await list_my_organizations(session, acme["owner"].id) == []


@pytest.mark.asyncio
async def test_usage_lists_only_features_the_gate_allows(session, acme):
    service = OrganizationsService(session, acme["owner_scope"])
    await set_plan(session, acme["org"].id, "pro")
    assert (await service.usage())["features"] == ["audit_log", "bulk_import"]

    await set_plan(session, acme["org"].id, "pro", status="past_due")
    usage = await service.usage()
    assert usage["status"] == "past_due"
    assert usage["features"] == []
