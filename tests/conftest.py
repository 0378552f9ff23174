"""
LinearTV Test Configuration

Shared fixtures and configuration for all tests.
"""

import os
import tempfile
from pathlib import Path
from typing import AsyncGenerator, Awaitable, Callable, Generator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

import lineartv.config as config_module
import lineartv.playout.session as session_module
import lineartv.scheduling.extender as extender_module
import lineartv.storage.locator as locator_module
import lineartv.timeline.store as store_module
from lineartv.api.dependencies import (
    get_extender,
    get_locator,
    get_registry,
    get_store,
)
from lineartv.config import LinearTVConfig
from lineartv.database import Base, Channel, create_engine_for_url, create_session_factory
from lineartv.main import create_app
from lineartv.playout.resolver import PlayoutResolver
from lineartv.playout.session import PlayoutSessionRegistry
from lineartv.scheduling.extender import ScheduleExtender
from lineartv.storage.asset_store import PublicObjectStore
from lineartv.storage.locator import AssetLocator
from lineartv.timeline.store import SQLTimelineStore

from tests.fixtures.factories import PUBLIC_ROOT, InMemoryTimelineStore


# ============ Environment Fixtures ============


@pytest.fixture(autouse=True)
def clean_environment() -> Generator[None, None, None]:
    """Clean LINEARTV_* environment variables for each test."""
    original_env = os.environ.copy()

    for key in list(os.environ.keys()):
        if key.startswith("LINEARTV_"):
            del os.environ[key]

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture(autouse=True)
def default_config() -> Generator[LinearTVConfig, None, None]:
    """Install a default configuration and reset module-level singletons."""
    config = LinearTVConfig()
    config.storage.public_root = PUBLIC_ROOT
    config_module._config = config
    locator_module._locator_instance = None
    session_module._registry = None
    extender_module._extender_instance = None
    store_module._store_instance = None

    yield config

    config_module._config = None
    locator_module._locator_instance = None
    session_module._registry = None
    extender_module._extender_instance = None
    store_module._store_instance = None


# ============ Database Fixtures ============


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a test database engine (in-memory SQLite)."""
    engine = create_engine_for_url("sqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
def sql_store(session_factory: async_sessionmaker[AsyncSession]) -> SQLTimelineStore:
    return SQLTimelineStore(session_factory)


@pytest.fixture
def add_channel(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[int]]:
    """Insert a channel row and return its id."""

    async def _add_channel(name: str = "Test Channel", **kwargs) -> int:
        async with session_factory() as session:
            channel = Channel(name=name, **kwargs)
            session.add(channel)
            await session.commit()
            return channel.id

    return _add_channel


# ============ Core Service Fixtures ============


@pytest.fixture
def memory_store() -> InMemoryTimelineStore:
    store = InMemoryTimelineStore()
    store.add_channel(1)
    return store


@pytest.fixture
def locator() -> AssetLocator:
    return AssetLocator(PublicObjectStore(PUBLIC_ROOT), standby_key="standby.mp4")


@pytest.fixture
def resolver(memory_store: InMemoryTimelineStore, locator: AssetLocator) -> PlayoutResolver:
    return PlayoutResolver(memory_store, locator)


# ============ FastAPI Test Client Fixtures ============


def _build_app(store, locator: AssetLocator) -> FastAPI:
    app = create_app()
    extender = ScheduleExtender(store)
    registry = PlayoutSessionRegistry()

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_locator] = lambda: locator
    app.dependency_overrides[get_extender] = lambda: extender
    app.dependency_overrides[get_registry] = lambda: registry
    app.state.test_registry = registry
    return app


@pytest.fixture
def app(sql_store: SQLTimelineStore, locator: AssetLocator) -> FastAPI:
    """Create a test application backed by the in-memory SQLite store."""
    return _build_app(sql_store, locator)


@pytest.fixture
def memory_app(memory_store: InMemoryTimelineStore, locator: AssetLocator) -> FastAPI:
    """Create a test application backed by the in-memory store."""
    return _build_app(memory_store, locator)


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


# ============ Temporary File Fixtures ============


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_config_file(temp_dir: Path) -> Path:
    """Create a temporary config file."""
    config_file = temp_dir / "config.yaml"
    config_content = """
server:
  host: "127.0.0.1"
  port: 8500
  debug: true

database:
  url: "sqlite:///:memory:"

storage:
  public_root: "https://media.example.com/public/"
  standby_key: "idle/standby.mp4"

scheduling:
  max_inserts: 500

live:
  channels:
    7: "https://live.example.com/embed/7"

logging:
  level: "DEBUG"
"""
    config_file.write_text(config_content)
    return config_file
