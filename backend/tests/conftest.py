"""
Users API: Test Configuration (conftest.py)
============================================

What:  Shared pytest fixtures for the test suite.
How:   Endpoint tests run the real application against an in-memory SQLite
       database (aiosqlite); service unit tests use a mocked AsyncSession.

Fixture Hierarchy (all function-scoped):
    ├── test_settings:   Settings pointing at SQLite, quiet logging
    ├── db_engine:       Fresh in-memory database per test
    ├── test_app:        Application built around db_engine
    ├── test_client:     HTTPX AsyncClient with the app lifespan entered
    └── mock_db_session: AsyncMock standing in for AsyncSession
"""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"

from users_api.config import Settings  # noqa: E402
from users_api.main import create_app  # noqa: E402

SQLITE_MEMORY_URL = "sqlite+aiosqlite://"


@pytest.fixture
def test_settings():
    return Settings(_env_file=None, database_url=SQLITE_MEMORY_URL, log_level="WARNING")


@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite engine.

    StaticPool keeps a single connection, so every session in the test
    sees the same database.
    """
    engine = create_async_engine(
        SQLITE_MEMORY_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield engine
    await engine.dispose()


@pytest.fixture
def test_app(test_settings, db_engine):
    return create_app(settings=test_settings, engine=db_engine)


@pytest_asyncio.fixture
async def test_client(test_app):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    ASGITransport does not send lifespan events, so the lifespan is entered
    here; that runs schema creation exactly as a server start would.

    Usage:
        async def test_list(test_client):
            response = await test_client.get("/api/users")
            assert response.status_code == 200
    """
    async with test_app.router.lifespan_context(test_app):
        transport = ASGITransport(app=test_app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get_user(mock_db_session):
            mock_db_session.execute.return_value.scalar_one_or_none.return_value = user
            result = await user_service.get_user(mock_db_session, 1)
    """
    session = AsyncMock()
    session.execute = AsyncMock(return_value=MagicMock())
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    return session


@pytest.fixture
def make_user_row():
    """Factory for stand-ins of User ORM instances."""
    def _make(user_id=1, name="Ada", email="ada@example.com"):
        row = MagicMock()
        row.id = user_id
        row.name = name
        row.email = email
        return row
    return _make
