"""Async SQLAlchemy engine and session factory."""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from inventra_service.db.models import Base
from inventra_service.settings import settings

log = structlog.get_logger(__name__)

_engine = None
_session_factory = None


async def init_db(database_url: str | None = None, create_all: bool | None = None) -> None:
    global _engine, _session_factory
    url = database_url or settings.database_url
    if url.startswith("sqlite"):
        # One shared connection so in-memory databases survive across sessions
        _engine = create_async_engine(
            url,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        _engine = create_async_engine(url, echo=False, pool_size=10)
    _session_factory = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)

    if settings.db_create_all if create_all is None else create_all:
        async with _engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        log.info("db_schema_created", dialect=_engine.dialect.name)


async def close_db() -> None:
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
    _engine = None
    _session_factory = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _session_factory
