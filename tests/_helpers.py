"""Shared test helpers - importable from test modules."""

from __future__ import annotations

from uuid import UUID

from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from inventra_service.db.models import OrganizationModel, UserModel
from inventra_service.db.repositories.auth import AuthRepo
from inventra_service.db.repositories.billing import BillingRepo
from inventra_service.db.repositories.organization import OrganizationRepo
from inventra_service.policy.tenancy import OrgScope, TenancyGuard
from inventra_service.services.organizations import create_organization

SQLITE_URL = "sqlite+aiosqlite://"
PASSWORD = "correct-horse"


async def make_user(session: AsyncSession, email: str, display_name: str | None = None) -> UserModel:
    user = await AuthRepo(session).create_user(email=email, password=PASSWORD, display_name=display_name)
    await session.commit()
    return user


async def make_org(session: AsyncSession, owner: UserModel, name: str = "Acme") -> OrganizationModel:
    return await create_organization(session, owner.id, name)


async def add_member(
    session: AsyncSession, org: OrganizationModel, owner: UserModel, user: UserModel, role: str = "member"
) -> None:
    """Add ``user`` to ``org`` through the owner's verified scope."""
    owner_scope = await TenancyGuard(session).resolve(owner.id, org.id)
    await OrganizationRepo(session, owner_scope).add_member(user.id, role)
    await session.commit()


async def scope_for(session: AsyncSession, user: UserModel, org: OrganizationModel) -> OrgScope:
    return await TenancyGuard(session).resolve(user.id, org.id)


async def set_plan(session: AsyncSession, org_id: UUID, plan: str, status: str = "active") -> None:
    await BillingRepo(session).upsert_subscription(org_id, plan=plan, status=status)
    await session.commit()


def register(tc: TestClient, email: str, org_name: str | None = None, password: str = PASSWORD) -> dict:
    """Register through the API and return bearer auth headers."""
    body = {"email": email, "password": password, "display_name": email.split("@")[0]}
    if org_name:
        body["org_name"] = org_name
    resp = tc.post("/api/v1/auth/register", json=body)
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def first_org_id(tc: TestClient, headers: dict) -> str:
    resp = tc.get("/api/v1/orgs", headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()[0]["id"]
