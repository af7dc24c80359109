"""Database connection management.

Provides async database connection using SQLAlchemy (asyncpg for PostgreSQL,
aiosqlite for local development and tests).

## Configuration

Database connection is configured via environment variables:
- DATABASE_URL: Full connection string
- DATABASE_POOL_SIZE: Connection pool size (default: 5)
- DATABASE_MAX_OVERFLOW: Max overflow connections (default: 10)
- DATABASE_CREATE_TABLES: Create missing tables on startup (default: true)

## Usage

```python
from spotify_search.database import get_db, init_db

# Initialize on startup
await init_db()

# Use in request handlers
async with get_db() as session:
    user = await session.get(SpotifyUser, user_id)
```
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from spotify_search.config import get_settings
from spotify_search.database.models import Base

logger = logging.getLogger(__name__)

# Global engine and session factory
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


async def init_db() -> None:
    """Initialize the database connection.

    Creates the async engine and session factory. Should be called
    once on application startup.
    """
    global _engine, _session_factory

    settings = get_settings()

    logger.info("Initializing database connection")

    engine_options: dict[str, Any] = {"echo": settings.database_echo}
    if not settings.is_sqlite:
        # SQLite uses its own pool classes that reject sizing options
        engine_options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
        )

    _engine = create_async_engine(settings.database_url, **engine_options)

    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    logger.info("Database connection initialized")


async def close_db() -> None:
    """Close the database connection.

    Should be called on application shutdown.
    """
    global _engine, _session_factory

    if _engine:
        logger.info("Closing database connection")
        await _engine.dispose()
        _engine = None
        _session_factory = None


async def create_tables() -> None:
    """Create all database tables that do not exist yet."""
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables created")


@asynccontextmanager
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session.

    Use as an async context manager:
    ```python
    async with get_db() as session:
        # Use session
        await session.commit()
    ```

    Transactions are not automatically committed - call commit() explicitly.
    """
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    session = _session_factory()
    try:
        yield session
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    async with get_db() as session:
        yield session
