"""FastAPI dependency injection for database sessions and unscoped repositories."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from inventra_service.db.engine import get_session_factory
from inventra_service.db.repositories.auth import AuthRepo


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield an async DB session, auto-closing on exit."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_auth_repo(session: SessionDep) -> AuthRepo:
    return AuthRepo(session)


AuthRepoDep = Annotated[AuthRepo, Depends(get_auth_repo)]
