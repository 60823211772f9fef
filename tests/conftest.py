"""Pytest configuration and fixtures."""

import asyncio
import os
import shutil
import tempfile
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

ADMIN_KEY = "test-admin-key"
AGENT_KEY = "test-agent-key"

# Create a temporary directory for server data and client state
_test_tmp_dir = tempfile.mkdtemp(prefix="pxd_test_")

# Set config BEFORE importing pxd modules
os.environ["PXD_DATA_PATH"] = str(Path(_test_tmp_dir) / "data")
os.environ["PXD_HOME"] = str(Path(_test_tmp_dir) / "home")
os.environ["PXD_ADMIN_KEY"] = ADMIN_KEY
os.environ["PXD_AGENT_KEY"] = AGENT_KEY
os.environ.pop("PXD_DATABASE_URL", None)
os.environ.pop("PXD_KEY", None)
os.environ.pop("PXD_API_URL", None)

from pxd.client.api import PxdClient
from pxd.client.cache import PxdService
from pxd.client.state import MemoryState
from pxd.db import get_db
from pxd.db.session import create_engine, init_db
from pxd.main import app


# =============================================================================
# Async fixtures (service and API tests)
# =============================================================================


@pytest.fixture
async def db_engine():
    """Create an in-memory test database engine."""
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session() as session:
        yield session


@pytest.fixture
async def client(db_engine):
    """Create an async test client with overridden database dependency."""
    async_session = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async def override_get_db():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-PXD-Key": ADMIN_KEY}


@pytest.fixture
def agent_headers() -> dict[str, str]:
    return {"X-PXD-Key": AGENT_KEY}


# =============================================================================
# Sync fixtures (client, cache, and CLI tests)
# =============================================================================


@pytest.fixture
def server(tmp_path):
    """Run the app in-process on a temp-file database.

    NullPool keeps every connection inside the TestClient's event loop.
    """
    engine = create_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'server.db'}", poolclass=NullPool
    )
    asyncio.run(init_db(engine))

    session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    asyncio.run(engine.dispose())


@pytest.fixture
def admin_client(server) -> PxdClient:
    return PxdClient("http://testserver", ADMIN_KEY, http=server)


@pytest.fixture
def agent_client(server) -> PxdClient:
    return PxdClient("http://testserver", AGENT_KEY, http=server)


@pytest.fixture
def state() -> MemoryState:
    return MemoryState()


@pytest.fixture
def service(admin_client, state) -> PxdService:
    """Cache-aware service talking to the in-process server."""
    return PxdService(admin_client, state)


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("network disabled", request=request)


@pytest.fixture
def offline_client() -> PxdClient:
    """A client whose every request fails to connect."""
    http = httpx.Client(
        transport=httpx.MockTransport(_unreachable),
        base_url="http://offline.invalid",
    )
    return PxdClient("http://offline.invalid", ADMIN_KEY, http=http)


def pytest_sessionfinish(session, exitstatus):
    """Clean up temp directories after test session."""
    if Path(_test_tmp_dir).exists():
        shutil.rmtree(_test_tmp_dir, ignore_errors=True)
