"""Catalog search on behalf of a logged-in user.

The search term is sent to the Spotify search endpoint with the user's
access token, and each result category is reshaped into flat records.
Failures are never raised to the caller: they come back as messages in
`errors`, next to the echoed search term.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, Field

from spotify_search.auth.logged_in import LoggedInUser
from spotify_search.spotify.client import SpotifyAPIError, SpotifyClient
from spotify_search.spotify.models import Album, Artist, Playlist, Track

logger = logging.getLogger(__name__)

EMPTY_TERM_MESSAGE = "Enter a search term."

T = TypeVar("T")


class ErrorMessage(BaseModel):
    msg: str


class SpotifyResults(BaseModel):
    albums: list[Album] = Field(default_factory=list)
    artists: list[Artist] = Field(default_factory=list)
    tracks: list[Track] = Field(default_factory=list)
    playlists: list[Playlist] = Field(default_factory=list)


class SearchResults(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    search_term: str | None = None
    spotify_response: SpotifyResults | None = Field(
        default=None, alias="spotifyResponse"
    )


class SearchOutcome(BaseModel):
    """Result of a search, serialized as `{errors, searchResults}`."""

    model_config = ConfigDict(populate_by_name=True)

    errors: list[ErrorMessage] = Field(default_factory=list)
    search_results: SearchResults = Field(alias="searchResults")

    @property
    def ok(self) -> bool:
        return not self.errors

    @classmethod
    def failure(cls, search_term: str | None, message: str) -> "SearchOutcome":
        return cls(
            errors=[ErrorMessage(msg=message)],
            search_results=SearchResults(search_term=search_term),
        )


def _shape(
    response: dict[str, Any],
    category: str,
    factory: Callable[[dict[str, Any]], T],
) -> list[T]:
    """Build records for one result category, skipping null items."""
    items = (response.get(category) or {}).get("items") or []
    return [factory(item) for item in items if item]


def shape_search_response(response: dict[str, Any]) -> SpotifyResults:
    """Reshape a raw search response into flat records."""
    results = SpotifyResults(
        albums=_shape(response, "albums", Album.from_api),
        artists=_shape(response, "artists", Artist.from_api),
        tracks=_shape(response, "tracks", Track.from_api),
        playlists=_shape(response, "playlists", Playlist.from_api),
    )
    logger.debug(
        f"Shaped {len(results.albums)} albums, {len(results.artists)} artists, "
        f"{len(results.tracks)} tracks, {len(results.playlists)} playlists"
    )
    return results


async def search_spotify(
    search_term: str | None,
    logged_in: LoggedInUser,
    client: SpotifyClient,
) -> SearchOutcome:
    """Search Spotify for albums, artists, tracks and playlists.

    Args:
        search_term: What the user typed
        logged_in: The caller, whose access token is used
        client: Spotify Web API client

    Returns:
        SearchOutcome with either the shaped results or an error message
    """
    if not search_term or not search_term.strip():
        return SearchOutcome.failure(search_term, EMPTY_TERM_MESSAGE)

    try:
        response = await client.search(search_term, logged_in.access.access_token)
    except SpotifyAPIError as e:
        logger.warning(f"Search failed for user {logged_in.id}: {e.status_code} {e}")
        if e.status_code is None:
            return SearchOutcome.failure(search_term, f"Error: {e}")
        return SearchOutcome.failure(search_term, f"Error: {e.status_code} {e}")
    except httpx.HTTPError as e:
        logger.warning(f"Search request failed for user {logged_in.id}: {e}")
        return SearchOutcome.failure(search_term, f"Error: {e}")

    return SearchOutcome(
        errors=[],
        search_results=SearchResults(
            search_term=search_term,
            spotify_response=shape_search_response(response),
        ),
    )
