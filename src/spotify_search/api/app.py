"""FastAPI application factory.

Creates and configures the FastAPI application with all routes and middleware.

## Usage

```python
from spotify_search.api import create_app

app = create_app()
```

Or from the command line: `spotify-search serve`.

## Configuration

The app is configured via environment variables. See `spotify_search.config`
for available settings.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spotify_search.auth.logged_in import LoggedInUsers, get_logged_in_users
from spotify_search.config import get_settings
from spotify_search.database.connection import close_db, create_tables, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Connects to the database (creating missing tables if configured) on
    startup and disposes of the connection pool on shutdown.
    """
    settings = get_settings()

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    await init_db()
    if settings.database_create_tables:
        await create_tables()

    yield

    logger.info("Shutting down")
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Spotify login and catalog search",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    from spotify_search.api.routes import search, users

    app.include_router(users.router, prefix="/users", tags=["Users"])
    app.include_router(search.router, prefix="/spotify", tags=["Search"])

    @app.get("/health", tags=["Health"])
    async def health_check(
        users_cache: LoggedInUsers = Depends(get_logged_in_users),
    ):
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": settings.app_version,
            "logged_in_users": len(users_cache),
        }

    return app
