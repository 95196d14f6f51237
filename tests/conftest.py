"""Shared test fixtures: an in-memory SQLite database and the real app factory."""

from __future__ import annotations

import sys
from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Make _helpers importable from test files
sys.path.insert(0, str(Path(__file__).parent))

from _helpers import SQLITE_URL, add_member, make_org, make_user, scope_for  # noqa: E402

from inventra_service.db.models import Base  # noqa: E402
from inventra_service.rest.app import create_app  # noqa: E402
from inventra_service.settings import settings  # noqa: E402


@pytest_asyncio.fixture
async def session() -> AsyncIterator[AsyncSession]:
    """A session on a fresh in-memory database with the schema created."""
    engine = create_async_engine(
        SQLITE_URL, poolclass=StaticPool, connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as s:
        yield s
    await engine.dispose()


@pytest_asyncio.fixture
async def acme(session: AsyncSession) -> dict:
    """An organization with an owner, an admin and a plain member, plus their scopes."""
    owner = await make_user(session, "owner@acme.test", "Olivia Owner")
    admin = await make_user(session, "admin@acme.test", "Adam Admin")
    member = await make_user(session, "member@acme.test", "Mia Member")
    org = await make_org(session, owner)
    await add_member(session, org, owner, admin, "admin")
    await add_member(session, org, owner, member, "member")
    return {
        "org": org,
        "owner": owner,
        "admin": admin,
        "member": member,
        "owner_scope": await scope_for(session, owner, org),
        "admin_scope": await scope_for(session, admin, org),
        "member_scope": await scope_for(session, member, org),
    }


@pytest.fixture
def client(monkeypatch) -> TestClient:
    """The real application on an in-memory database (schema created at startup)."""
    monkeypatch.setattr(settings, "database_url", SQLITE_URL)
    monkeypatch.setattr(settings, "db_create_all", True)
    monkeypatch.setattr(settings, "webhook_secret", None)
    with TestClient(create_app()) as tc:
        yield tc
