"""Spotify Web API access and response shaping."""

from spotify_search.spotify.client import (
    AuthenticationError,
    RateLimitError,
    SpotifyAPIError,
    SpotifyClient,
    get_spotify_client,
)
from spotify_search.spotify.models import Album, Artist, Playlist, Track, format_duration
from spotify_search.spotify.search import SearchOutcome, search_spotify, shape_search_response

__all__ = [
    "SpotifyClient",
    "SpotifyAPIError",
    "RateLimitError",
    "AuthenticationError",
    "get_spotify_client",
    "Album",
    "Artist",
    "Track",
    "Playlist",
    "format_duration",
    "SearchOutcome",
    "search_spotify",
    "shape_search_response",
]
