"""FastAPI application and routes.

## API Structure

- /users - Spotify login, user info and logout
- /spotify - Catalog search
- /health - Health check

## Authentication

Protected routes take the user id (`?id=`) handed out at login, or fall back
to the session cookie, and require that user to be in the logged-in users
cache.
"""

from spotify_search.api.app import create_app

__all__ = ["create_app"]
