"""
Users API: Database Engine, Sessions and Schema Initialization
===============================================================

What:  Async SQLAlchemy engine factory, session dependency, schema initializer.
How:   The application lifespan (main.py) creates one engine per process,
       runs ensure_schema() once, and stores the engine and its session
       factory on `app.state`. Route handlers receive a session through the
       get_db_session() dependency, which reads the factory from the app
       the request belongs to. Nothing here is a module-level global, so tests
       can hand the application a substitute engine.

Connection Pooling:
    The AsyncEngine *is* the connection pool. Each request borrows one
    connection for the lifetime of its session and returns it on close.
    Pool sizing is left at SQLAlchemy's defaults.
"""

import logging
import ssl
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from users_api.config import Settings
from users_api.exceptions import StartupError

logger = logging.getLogger(__name__)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models register on this metadata; ensure_schema() creates every
    table it knows about.
    """
    pass


# ── Engine Configuration ──────────────────────────────────────────────────
def relaxed_ssl_context() -> ssl.SSLContext:
    """
    TLS context that encrypts traffic but does not verify the server certificate.

    Hosted PostgreSQL providers (Render, Heroku) serve self-signed
    certificates behind DATABASE_URL.
    """
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


def create_db_engine(settings: Settings) -> AsyncEngine:
    """
    Build the async engine (connection pool) from settings.

    DATABASE_URL deployments get an encrypted connection with relaxed
    certificate checking; individual DB_* settings connect in plain text.
    """
    connect_args = {}
    dsn = settings.database_dsn
    if settings.uses_connection_string and dsn.drivername.startswith("postgresql"):
        connect_args["ssl"] = relaxed_ssl_context()

    return create_async_engine(
        dsn,
        pool_pre_ping=settings.db_pool_pre_ping,
        # Echo SQL only when debugging
        echo=settings.log_level == "DEBUG",
        connect_args=connect_args,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to one engine.

    expire_on_commit=False keeps returned ORM objects readable after commit.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# ── Schema Initializer ────────────────────────────────────────────────────
async def ensure_schema(engine: AsyncEngine) -> None:
    """
    Create the `users` table if it does not exist yet.

    What:    CREATE TABLE IF NOT EXISTS users (id serial primary key, name text, email text)
    How:     MetaData.create_all() checks for each table before creating it,
             so running this on every start leaves existing tables and rows alone.
    When:    Once per process, during application startup.

    Raises:
        StartupError: storage unreachable or the DDL failed.
    """
    # Register models on Base.metadata
    from users_api.models import user  # noqa: F401

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        logger.error("Schema initialization failed: %s", str(e))
        raise StartupError(
            message="Could not initialize the database schema",
            context={"error_type": type(e).__name__},
        ) from e

    logger.info("Table users ready")


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Takes the session factory the lifespan stored on app.state
        2. Yields a session to the route handler
        3. On error: rolls back whatever the statement left open
        4. Always: closes the session (returns the connection to the pool)

    Commits are issued by the service right after each write statement.
    """
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine(engine: AsyncEngine) -> None:
    """Close every pooled connection. Called during application shutdown."""
    await engine.dispose()
