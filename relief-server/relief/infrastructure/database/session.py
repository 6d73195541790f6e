"""Engine and session lifecycle for the database batch backend.

The engine is created lazily on first use so the file backend never opens
a database connection.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from relief.core.config import DatabaseSettings, get_settings
from relief.infrastructure.database.base import Base

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _engine_options(database: DatabaseSettings, debug: bool) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": database.echo or debug}
    # SQLite uses a static pool and refuses sizing options.
    if not database.url.startswith("sqlite"):
        if database.pool_size is not None:
            options["pool_size"] = database.pool_size
        if database.max_overflow is not None:
            options["max_overflow"] = database.max_overflow
    return options


def get_engine() -> AsyncEngine:
    global _engine, _session_factory
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            settings.database_url,
            **_engine_options(settings.database, settings.debug),
        )
        _session_factory = async_sessionmaker(bind=_engine, expire_on_commit=False)
        logger.info("已创建离线批次数据库引擎")
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    get_engine()
    if _session_factory is None:
        raise RuntimeError("数据库会话工厂未初始化")
    return _session_factory


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Open a session that commits on success and rolls back on error."""
    async with get_session_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        await session.commit()


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create the batch tables when migrations have not been run."""
    # Importing the models registers their tables on Base.metadata.
    from relief.db import models  # noqa: F401

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("已释放离线批次数据库引擎")
    _engine = None
    _session_factory = None
