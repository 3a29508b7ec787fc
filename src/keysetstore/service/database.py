"""
Database utilities for keysetstore services.

Provides:
- Declarative Base for collection models
- Lazily created engine and session maker, configured from StoreSettings
- Session dependency for FastAPI
- Table and index provisioning for viewsets
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, AsyncGenerator, Iterable

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from ..config import get_settings

if TYPE_CHECKING:
    from ..viewsets.base import ModelViewSet

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all collection models."""
    pass


_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def engine_options(database_url: str) -> dict[str, Any]:
    """
    Extra create_async_engine options for a URL.

    In-memory SQLite lives inside one connection, so every session must share it.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        return {"poolclass": StaticPool}
    return {}


def get_engine() -> AsyncEngine:
    """Get or create the process-wide engine from the current settings."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            settings.database_url,
            echo=settings.sql_echo,
            **engine_options(settings.database_url),
        )
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    global _session_maker
    if _session_maker is None:
        _session_maker = async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)
    return _session_maker


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields one session per request."""
    async with get_session_maker()() as session:
        yield session


async def init_db(viewsets: Iterable[type[ModelViewSet]] = ()) -> None:
    """
    Create tables together with the indexes the viewsets need.

    Indexes are declared on the table metadata first so that create_all
    emits them along with their tables.
    """
    declared = 0
    for viewset in viewsets:
        declared += len(viewset.get_indexes())

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database ready: {len(Base.metadata.tables)} tables, {declared} compound indexes")


async def close_db() -> None:
    """Dispose the engine; the next get_engine() call reads settings again."""
    global _engine, _session_maker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_maker = None
