"""Cross-tenant isolation tests."""

from __future__ import annotations

import uuid

import pytest
from _helpers import make_org, make_user, scope_for

from inventra_service.db.repositories.assets import AssetsRepo
from inventra_service.db.repositories.auth import AuthRepo
from inventra_service.db.repositories.organization import OrganizationRepo
from inventra_service.errors import AuthorizationDenied, NotFound
from inventra_service.policy.tenancy import TenancyGuard
from inventra_service.services.assets import AssetsService


@pytest.mark.asyncio
async def test_non_member_is_denied_not_told_missing(session, acme):
    outsider = await make_user(session, "eve@evil.test")
    guard = TenancyGuard(session)

    with pytest.raises(AuthorizationDenied) as existing:
        await guard.resolve(outsider.id, acme["org"].id)
    with pytest.raises(AuthorizationDenied) as missing:
        await guard.resolve(outsider.id, uuid.uuid4())
    assert existing.value.message == missing.value.message == "Access denied"


@pytest.mark.asyncio
async def test_guard_predicates(session, acme):
    guard = TenancyGuard(session)
    org_id = acme["org"].id
    assert await guard.is_member(acme["member"].id, org_id)
    assert not await guard.is_admin(acme["member"].id, org_id)
    assert await guard.is_admin(acme["admin"].id, org_id)
    assert await guard.has_role(acme["owner"].id, org_id, "owner")
    assert await guard.role_of(uuid.uuid4(), org_id) is None


@pytest.mark.asyncio
async def test_repositories_require_a_verified_scope(session):
    with pytest.raises(TypeError):
        AssetsRepo(session, scope=None)


@pytest.mark.asyncio
async def test_other_tenant_rows_are_invisible(session, acme):
    other_owner = await make_user(session, "boss@globex.test")
    globex = await make_org(session, other_owner, "Globex")
    globex_scope = await scope_for(session, other_owner, globex)

    asset = await AssetsService(session, acme["owner_scope"]).create(name="Laptop", category="laptop")

    globex_assets = AssetsService(session, globex_scope)
    assert await globex_assets.list() == []
    with pytest.raises(NotFound):
        await globex_assets.get(asset.id)


@pytest.mark.asyncio
async def test_other_tenant_cannot_edit_or_delete(session, acme):
    other_owner = await make_user(session, "boss@globex.test")
    globex = await make_org(session, other_owner, "Globex")
    globex_assets = AssetsService(session, await scope_for(session, other_owner, globex))

    asset = await AssetsService(session, acme["owner_scope"]).create(name="Laptop", category="laptop")

    with pytest.raises(NotFound):
        await globex_assets.update(asset.id, name="Hijacked")
    with pytest.raises(NotFound):
        await globex_assets.delete(asset.id)

    still_there = await AssetsService(session, acme["member_scope"]).get(asset.id)
    assert still_there.name == "Laptop"


@pytest.mark.asyncio
async def test_memberships_are_added_inside_a_scope(session, acme):
    newcomer = await make_user(session, "new@acme.test")
    repo = OrganizationRepo(session, acme["owner_scope"])
    member = await repo.add_member(newcomer.id, "member")

    assert member.org_id == acme["org"].id
    assert (await repo.get_member(newcomer.id)).role == "member"
    assert not hasattr(AuthRepo, "add_member")
    assert not hasattr(AuthRepo, "get_member")
