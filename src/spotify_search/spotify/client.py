"""Spotify Web API client.

## Search Endpoint

- URL: https://api.spotify.com/v1/search
- Auth: `Authorization: Bearer <user access token>`
- Query parameters:

| Parameter | Description |
|-----------|-------------|
| q | Search term |
| type | Comma-separated: album,artist,playlist,track,show,episode,audiobook |
| limit | Results per type, 1-50 (default 20) |

## Response Format

```json
{
  "albums": {"href": "...", "items": [...], "limit": 10, "total": 812},
  "artists": {"items": [...]},
  "tracks": {"items": [...]},
  "playlists": {"items": [...]}
}
```

## Errors

Errors come back as `{"error": {"status": 401, "message": "The access token
expired"}}`. 429 responses carry a `Retry-After` header in seconds.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from spotify_search.config import get_settings

logger = logging.getLogger(__name__)


class SpotifyAPIError(Exception):
    """Base exception for Spotify Web API errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_body = response_body


class RateLimitError(SpotifyAPIError):
    """Raised when the Spotify rate limit is exceeded."""

    def __init__(
        self,
        message: str = "API rate limit exceeded",
        retry_after: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message, status_code=429, response_body=response_body)
        self.retry_after = retry_after


class AuthenticationError(SpotifyAPIError):
    """Raised when Spotify rejects the access token."""


def _error_message(response: httpx.Response) -> str:
    """Pull `error.message` out of a Spotify error body."""
    try:
        body = response.json()
    except ValueError:
        body = None
    error = body.get("error") if isinstance(body, dict) else None

    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    if isinstance(error, str):
        return error
    return response.reason_phrase or "Unknown error"


def _retry_after(response: httpx.Response) -> int | None:
    """Seconds from a `Retry-After` header, or None if absent or not a number."""
    value = response.headers.get("Retry-After")
    try:
        return int(value) if value else None
    except ValueError:
        return None


class SpotifyClient:
    """Async client for the parts of the Spotify Web API we proxy.

    Example:
        ```python
        async with SpotifyClient() as client:
            data = await client.search("daft punk", access_token)
        ```
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        settings = get_settings()

        self.base_url = (base_url or settings.spotify_api_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> SpotifyClient:
        self._get_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        reraise=True,
    )
    async def _get(
        self,
        path: str,
        access_token: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """GET a Web API resource with retry on network errors.

        Raises:
            AuthenticationError: On 401
            RateLimitError: On 429
            SpotifyAPIError: On any other error status
        """
        response = await self._get_client().get(
            f"{self.base_url}{path}",
            params=params,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
        )

        if response.status_code == 429:
            raise RateLimitError(
                _error_message(response),
                retry_after=_retry_after(response),
                response_body=response.text,
            )

        if response.status_code == 401:
            raise AuthenticationError(
                _error_message(response),
                status_code=401,
                response_body=response.text,
            )

        if response.status_code >= 400:
            raise SpotifyAPIError(
                _error_message(response),
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SpotifyAPIError(
                f"Failed to parse response: {e}",
                status_code=response.status_code,
                response_body=response.text,
            ) from e

        if not isinstance(data, dict):
            raise SpotifyAPIError(
                "Unexpected response body",
                status_code=response.status_code,
                response_body=response.text,
            )
        return data

    async def search(
        self,
        query: str,
        access_token: str,
        types: list[str] | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """Search the Spotify catalog.

        Args:
            query: Search term
            access_token: The user's access token
            types: Result categories (default from settings)
            limit: Results per category (default from settings)

        Returns:
            The raw search response
        """
        settings = get_settings()
        params = {
            "q": query,
            "type": ",".join(types or settings.search_types),
            "limit": limit or settings.search_page_size,
        }
        logger.debug(f"Spotify search: {params}")
        return await self._get("/search", access_token, params=params)


async def get_spotify_client():
    """FastAPI dependency yielding a client closed after the request."""
    async with SpotifyClient() as client:
        yield client
