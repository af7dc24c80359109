"""Pytest fixtures for the Spotify search backend tests.

This module provides test fixtures that ensure:
1. No external API calls are made (Spotify accounts or Web API)
2. Databases are throwaway SQLite files
3. Isolated test environment with controlled configuration
"""

import os
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import pytest

# Set test environment BEFORE importing application modules
os.environ.setdefault("SECRET_KEY", "test-secret-key-at-least-32-characters-long")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SPOTIFY_CLIENT_ID", "test-client-id")
os.environ.setdefault("SPOTIFY_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

from fastapi.testclient import TestClient

from spotify_search.auth.logged_in import (
    AccessData,
    CachedUser,
    LoggedInUser,
    get_logged_in_users,
)
from spotify_search.auth.spotify import SpotifyProfile, SpotifyTokens, get_spotify_oauth
from spotify_search.config import get_settings
from spotify_search.spotify.client import get_spotify_client


# =============================================================================
# Test Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_global_state():
    """Reset cached settings, clients and the logged-in users cache."""
    from spotify_search.api.routes import users as user_routes

    get_settings.cache_clear()
    get_spotify_oauth.cache_clear()
    get_logged_in_users().clear()
    user_routes._oauth_states.clear()
    yield
    get_settings.cache_clear()
    get_spotify_oauth.cache_clear()
    get_logged_in_users().clear()
    user_routes._oauth_states.clear()


@pytest.fixture
def database_url(tmp_path, monkeypatch) -> str:
    """Point the application at a fresh SQLite file."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    get_settings.cache_clear()
    return url


@pytest.fixture
async def db(database_url):
    """An initialized database with tables, yielding a session."""
    from spotify_search.database.connection import (
        close_db,
        create_tables,
        get_db,
        init_db,
    )

    await init_db()
    await create_tables()
    async with get_db() as session:
        yield session
    await close_db()


# =============================================================================
# Spotify Fakes
# =============================================================================


class FakeSpotifyOAuth:
    """Stands in for SpotifyOAuth without talking to Spotify."""

    is_configured = True

    def __init__(self, profile: SpotifyProfile | None = None):
        self.profile = profile or SpotifyProfile(
            id="spotify-user-1",
            display_name="Test User",
            email="test@example.com",
            image_url="https://i.scdn.co/image/user.jpg",
        )
        self.exchanged_codes: list[str] = []
        self.profile_error: Exception | None = None

    def get_authorization_url(self, state: str) -> str:
        return f"https://accounts.spotify.com/authorize?client_id=test&state={state}"

    async def exchange_code(self, code: str) -> SpotifyTokens:
        self.exchanged_codes.append(code)
        if code == "bad-code":
            raise ValueError("Token exchange failed: invalid_grant")
        return SpotifyTokens(
            access_token="test-access-token",
            refresh_token="test-refresh-token",
            token_type="Bearer",
            expires_in=3600,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=3600),
            scope="user-read-email user-read-private",
        )

    async def get_user_profile(self, access_token: str) -> SpotifyProfile:
        if self.profile_error is not None:
            raise self.profile_error
        return self.profile


class FakeSpotifyClient:
    """Stands in for SpotifyClient, returning a canned search response."""

    def __init__(self, response: dict | None = None, error: Exception | None = None):
        self.response = response or {}
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def search(self, query, access_token, types=None, limit=None):
        self.calls.append((query, access_token))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def fake_oauth() -> FakeSpotifyOAuth:
    return FakeSpotifyOAuth()


@pytest.fixture
def fake_spotify(search_response_json) -> FakeSpotifyClient:
    return FakeSpotifyClient(response=search_response_json)


@pytest.fixture
def app(database_url, fake_oauth, fake_spotify):
    """Application wired to the fakes and a throwaway database."""
    from spotify_search.api import create_app

    application = create_app()
    application.dependency_overrides[get_spotify_oauth] = lambda: fake_oauth
    application.dependency_overrides[get_spotify_client] = lambda: fake_spotify
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(client):
    """Run the OAuth flow against the fakes and return the user id."""

    def _login(code: str = "good-code") -> str:
        response = client.get("/users/spotify", follow_redirects=False)
        state = parse_qs(urlparse(response.headers["location"]).query)["state"][0]

        response = client.get(
            "/users/spotify/redirect",
            params={"code": code, "state": state},
            follow_redirects=False,
        )
        location = response.headers["location"]
        assert "#id=" in location, location
        return location.split("#id=", 1)[1]

    return _login


@pytest.fixture
def logged_in_user() -> LoggedInUser:
    """A cached login, not backed by a database row."""
    return LoggedInUser(
        user=CachedUser(
            id="5f0c7c1e-2b7a-4c55-9a51-1f4b2d6c8e90",
            name="Test User",
            spotify_id="spotify-user-1",
            email="test@example.com",
            thumb_url="https://i.scdn.co/image/user.jpg",
        ),
        access=AccessData(
            access_token="test-access-token",
            refresh_token="test-refresh-token",
            expires_in=3600,
            expires=datetime.now(timezone.utc) + timedelta(hours=1),
        ),
    )


# =============================================================================
# Spotify JSON Fixtures
# =============================================================================


@pytest.fixture
def album_json() -> dict:
    """Simplified album object as returned inside search results."""
    return {
        "album_type": "album",
        "id": "4m2880jivSbbyEGAKfITCa",
        "name": "Random Access Memories",
        "artists": [
            {"id": "4tZwfgrHOc3mvqYlEYSvVi", "name": "Daft Punk", "type": "artist"},
        ],
        "external_urls": {"spotify": "https://open.spotify.com/album/4m2880jivSbbyEGAKfITCa"},
        "images": [
            {"url": "https://i.scdn.co/image/ram-640.jpg", "height": 640, "width": 640},
            {"url": "https://i.scdn.co/image/ram-300.jpg", "height": 300, "width": 300},
        ],
        "release_date": "2013-05-20",
        "release_date_precision": "day",
        "total_tracks": 13,
        "type": "album",
    }


@pytest.fixture
def artist_json() -> dict:
    return {
        "id": "4tZwfgrHOc3mvqYlEYSvVi",
        "name": "Daft Punk",
        "external_urls": {"spotify": "https://open.spotify.com/artist/4tZwfgrHOc3mvqYlEYSvVi"},
        "images": [{"url": "https://i.scdn.co/image/daft-640.jpg", "height": 640, "width": 640}],
        "genres": ["electro", "filter house", "french house"],
        "popularity": 80,
        "type": "artist",
    }


@pytest.fixture
def track_json(album_json) -> dict:
    return {
        "id": "69kOkLUCkxIZYexIgSG8rq",
        "name": "Get Lucky (feat. Pharrell Williams and Nile Rodgers)",
        "artists": [
            {"id": "4tZwfgrHOc3mvqYlEYSvVi", "name": "Daft Punk"},
            {"id": "2RdwBSPQiwcmiDo9kixcl8", "name": "Pharrell Williams"},
            {"id": "3yDIp0kaq9EFKe07X1X2rz", "name": "Nile Rodgers"},
        ],
        "external_urls": {"spotify": "https://open.spotify.com/track/69kOkLUCkxIZYexIgSG8rq"},
        "album": album_json,
        "disc_number": 1,
        "track_number": 8,
        "duration_ms": 369626,
        "explicit": False,
        "type": "track",
    }


@pytest.fixture
def playlist_json() -> dict:
    return {
        "id": "37i9dQZF1DZ06evO3FJyYF",
        "name": "This Is Daft Punk",
        "owner": {"id": "spotify", "display_name": "Spotify"},
        "external_urls": {"spotify": "https://open.spotify.com/playlist/37i9dQZF1DZ06evO3FJyYF"},
        "images": [{"url": "https://i.scdn.co/image/this-is.jpg", "height": None, "width": None}],
        "tracks": {"href": "https://api.spotify.com/v1/playlists/37i9/tracks", "total": 50},
        "type": "playlist",
    }


@pytest.fixture
def search_response_json(album_json, artist_json, track_json, playlist_json) -> dict:
    """A search response with one item per category.

    Spotify returns null entries in playlist results, so one is included.
    """
    return {
        "albums": {"href": "...", "items": [album_json], "limit": 10, "total": 1},
        "artists": {"href": "...", "items": [artist_json], "limit": 10, "total": 1},
        "tracks": {"href": "...", "items": [track_json], "limit": 10, "total": 1},
        "playlists": {"href": "...", "items": [playlist_json, None], "limit": 10, "total": 2},
    }
