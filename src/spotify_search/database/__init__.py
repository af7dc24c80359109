"""Database module for the Spotify search backend.

This module provides:
- SQLAlchemy async database connection
- The Spotify user model and lookup-or-create on login
- Encryption for Spotify tokens carried in session cookies
"""

from spotify_search.database.connection import (
    close_db,
    create_tables,
    get_db,
    get_db_session,
    init_db,
)
from spotify_search.database.models import Base, SpotifyUser
from spotify_search.database.users import find_or_create_user, get_user

__all__ = [
    # Connection
    "get_db",
    "get_db_session",
    "init_db",
    "close_db",
    "create_tables",
    # Models
    "Base",
    "SpotifyUser",
    # Users
    "find_or_create_user",
    "get_user",
]
