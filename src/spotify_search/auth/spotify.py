"""Spotify OAuth authentication.

Implements the OAuth 2.0 authorization code flow for Spotify sign-in. The
protocol itself (authorization URL, token exchange) is handled by
authlib's httpx client; this module only binds it to Spotify's endpoints and
our settings.

## Required Setup

1. Create an app in the Spotify developer dashboard
2. Add the redirect URI (default: http://localhost:8081/users/spotify/redirect)
3. Set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET environment variables

## OAuth Endpoints

- Authorization: https://accounts.spotify.com/authorize
- Token: https://accounts.spotify.com/api/token
- Current user profile: https://api.spotify.com/v1/me

## Scopes Used

- user-read-email: Get the user's email address
- user-read-private: Get the user's display name and images
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

import httpx
from authlib.integrations.base_client import OAuthError
from authlib.integrations.httpx_client import AsyncOAuth2Client

from spotify_search.config import get_settings

logger = logging.getLogger(__name__)

SPOTIFY_AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"


@dataclass
class SpotifyProfile:
    """User information from Spotify."""

    id: str
    display_name: str | None
    email: str | None
    image_url: str | None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "SpotifyProfile":
        images = data.get("images") or []
        return cls(
            id=data["id"],
            display_name=data.get("display_name"),
            email=data.get("email"),
            image_url=images[0].get("url") if images else None,
        )


@dataclass
class SpotifyTokens:
    """OAuth tokens from Spotify."""

    access_token: str
    refresh_token: str | None
    token_type: str
    expires_in: int | None
    expires_at: datetime | None
    scope: str

    @classmethod
    def from_token_response(
        cls,
        token: dict[str, Any],
        refresh_token: str | None = None,
    ) -> "SpotifyTokens":
        expires_in = token.get("expires_in")
        expires_at = None
        if expires_in is not None:
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(expires_in))

        return cls(
            access_token=token["access_token"],
            refresh_token=token.get("refresh_token") or refresh_token,
            token_type=token.get("token_type", "Bearer"),
            expires_in=int(expires_in) if expires_in is not None else None,
            expires_at=expires_at,
            scope=token.get("scope", ""),
        )


class SpotifyOAuth:
    """Spotify OAuth 2.0 client.

    Example:
        ```python
        oauth = SpotifyOAuth()

        # Redirect the user here
        auth_url = oauth.get_authorization_url(state="random-state")

        # Handle callback
        tokens = await oauth.exchange_code(code)
        profile = await oauth.get_user_profile(tokens.access_token)
        ```
    """

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        redirect_uri: str | None = None,
        scopes: list[str] | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
    ):
        settings = get_settings()

        self.client_id = client_id or settings.spotify_client_id
        self.client_secret = client_secret or settings.spotify_client_secret
        self.redirect_uri = redirect_uri or settings.spotify_redirect_uri
        self.scopes = scopes or settings.spotify_scopes
        self.api_url = api_url or settings.spotify_api_url
        self.timeout = timeout or settings.http_timeout_seconds

        if not self.is_configured:
            logger.warning(
                "Spotify OAuth not configured. Set SPOTIFY_CLIENT_ID and "
                "SPOTIFY_CLIENT_SECRET environment variables."
            )

    @property
    def is_configured(self) -> bool:
        """Check if Spotify OAuth is properly configured."""
        return bool(self.client_id and self.client_secret)

    def _client(self) -> AsyncOAuth2Client:
        if not self.is_configured:
            raise RuntimeError("Spotify OAuth not configured")

        return AsyncOAuth2Client(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope=" ".join(self.scopes),
            redirect_uri=self.redirect_uri,
            timeout=self.timeout,
        )

    def get_authorization_url(self, state: str) -> str:
        """Generate the Spotify authorization URL.

        Args:
            state: Random state parameter for CSRF protection

        Returns:
            URL to redirect the user to
        """
        url, _ = self._client().create_authorization_url(
            SPOTIFY_AUTHORIZE_URL, state=state
        )
        return url

    async def exchange_code(self, code: str) -> SpotifyTokens:
        """Exchange an authorization code for tokens.

        Raises:
            ValueError: If the token exchange fails
        """
        try:
            async with self._client() as client:
                token = await client.fetch_token(SPOTIFY_TOKEN_URL, code=code)
        except (OAuthError, httpx.HTTPError) as e:
            logger.error(f"Token exchange failed: {e}")
            raise ValueError(f"Token exchange failed: {e}") from e

        return SpotifyTokens.from_token_response(token)

    async def get_user_profile(self, access_token: str) -> SpotifyProfile:
        """Get the current user's profile from Spotify.

        Raises:
            ValueError: If the request fails
        """
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(
                    f"{self.api_url}/me",
                    headers={"Authorization": f"Bearer {access_token}"},
                )
            except httpx.HTTPError as e:
                logger.error(f"Profile request failed: {e}")
                raise ValueError(f"Profile request failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"Profile request failed: {response.text}")
            raise ValueError(f"Profile request failed: {response.status_code}")

        try:
            return SpotifyProfile.from_api(response.json())
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Unexpected profile response: {response.text}")
            raise ValueError(f"Unexpected profile response: {e!r}") from e


@lru_cache
def get_spotify_oauth() -> SpotifyOAuth:
    """Get cached Spotify OAuth client instance."""
    return SpotifyOAuth()
