"""
Database connection and session management.

Provides the async engine and session factory used by the timeline store
and by FastAPI dependencies.
"""

import logging
from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import QueuePool, StaticPool

from lineartv.config import get_config
from lineartv.database.models.base import Base

logger = logging.getLogger(__name__)

# Async engine and session factory
_async_engine: Optional[AsyncEngine] = None
_async_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _get_async_url(url: str) -> str:
    """Convert sync database URL to async variant."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///")
    elif url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://")
    return url


def _get_pool_kwargs(url: str) -> dict:
    """Get pool configuration for the database type."""
    # SQLite with aiosqlite needs StaticPool for single connection reuse
    if "sqlite" in url:
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }

    return {
        "poolclass": QueuePool,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 30,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
    }


def create_engine_for_url(url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for a (sync or async style) database URL.

    Args:
        url: Database URL, e.g. ``sqlite:///./lineartv.db``
        echo: Echo SQL statements

    Returns:
        Configured AsyncEngine
    """
    async_url = _get_async_url(url)
    engine = create_async_engine(
        async_url,
        echo=echo,
        **_get_pool_kwargs(async_url),
    )

    if "sqlite" in async_url:
        @event.listens_for(engine.sync_engine, "connect")
        def on_connect(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_db() -> None:
    """Initialize the database connection and create tables."""
    global _async_engine, _async_session_factory

    config = get_config()

    _async_engine = create_engine_for_url(config.database.url, echo=config.database.echo)
    _async_session_factory = create_session_factory(_async_engine)

    async with _async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info(f"Database initialized: {_async_engine.url.render_as_string(hide_password=True)}")


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Get the global session factory.

    Raises:
        RuntimeError: If init_db() has not been called
    """
    if _async_session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _async_session_factory


async def close_db() -> None:
    """Close database connections."""
    global _async_engine, _async_session_factory

    if _async_engine is not None:
        await _async_engine.dispose()
        _async_engine = None
        _async_session_factory = None
        logger.info("Database connections closed")
