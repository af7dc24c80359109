"""Authentication module for the Spotify search backend.

Provides Spotify OAuth sign-in, session cookies and the logged-in users
cache that gates the protected routes.

## OAuth Flow

1. User opens /users/spotify
2. Redirect to the Spotify consent screen
3. Spotify redirects back with an authorization code
4. Exchange the code for access and refresh tokens
5. Find or create the user in the database
6. Cache the user with its access data, set the session cookie
7. Redirect to /profile#id=<user id>

## Scopes

- user-read-email: To identify the user
- user-read-private: For display name and images
"""

from spotify_search.auth.dependencies import get_session_data, require_logged_in_user
from spotify_search.auth.logged_in import (
    AccessData,
    CachedUser,
    LoggedInUser,
    LoggedInUsers,
    get_logged_in_users,
)
from spotify_search.auth.session import (
    SessionData,
    create_session_token,
    verify_session_token,
)
from spotify_search.auth.spotify import (
    SpotifyOAuth,
    SpotifyProfile,
    SpotifyTokens,
    get_spotify_oauth,
)

__all__ = [
    "SpotifyOAuth",
    "SpotifyProfile",
    "SpotifyTokens",
    "get_spotify_oauth",
    "create_session_token",
    "verify_session_token",
    "SessionData",
    "AccessData",
    "CachedUser",
    "LoggedInUser",
    "LoggedInUsers",
    "get_logged_in_users",
    "get_session_data",
    "require_logged_in_user",
]
