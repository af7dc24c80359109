"""Flattened records built from Spotify Web API objects.

Each record copies a handful of fields out of the (deeply nested) Spotify
JSON. Image fields take the first, largest image and are None when Spotify
returns no images, which it does for many artists and some playlists.

## Field mapping

| Record | Field | Spotify source |
|--------|-------|----------------|
| all | spotify_url | external_urls.spotify |
| all | image_url | images[0].url (tracks: album.images[0].url) |
| Album | artists | artists[].name |
| Album | tracks | total_tracks |
| Artist | genres | genres |
| Track | release_date | album.release_date |
| Track | duration | duration_ms, as HH:MM:SS.mmm |
| Playlist | owner | owner.display_name |
| Playlist | tracks | tracks.total |
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


def format_duration(ms: int | float | str) -> str:
    """Format a duration in milliseconds as HH:MM:SS.mmm.

    Hours are not wrapped, so very long durations show more than two hour
    digits.

    Example:
        >>> format_duration(7354320)
        '02:02:34.320'
    """
    total_ms = int(float(ms))
    msecs = total_ms % 1000
    total_secs = total_ms // 1000
    secs = total_secs % 60
    total_mins = total_secs // 60
    mins = total_mins % 60
    hours = total_mins // 60
    return f"{hours:02d}:{mins:02d}:{secs:02d}.{msecs:03d}"


def _first_image_url(images: list[dict[str, Any]] | None) -> str | None:
    if not images:
        return None
    return images[0].get("url")


def _spotify_url(data: dict[str, Any]) -> str | None:
    return (data.get("external_urls") or {}).get("spotify")


def _artist_names(artists: list[dict[str, Any]] | None) -> list[str]:
    return [artist["name"] for artist in artists or [] if artist]


class Album(BaseModel):
    """An album search result."""

    id: str
    name: str
    artists: list[str] = Field(default_factory=list)
    spotify_url: str | None = None
    image_url: str | None = None
    release_date: str | None = None
    tracks: int | None = Field(default=None, description="Total number of tracks")

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Album":
        return cls(
            id=data["id"],
            name=data["name"],
            artists=_artist_names(data.get("artists")),
            spotify_url=_spotify_url(data),
            image_url=_first_image_url(data.get("images")),
            release_date=data.get("release_date"),
            tracks=data.get("total_tracks"),
        )


class Artist(BaseModel):
    """An artist search result."""

    id: str
    name: str
    spotify_url: str | None = None
    image_url: str | None = None
    genres: list[str] = Field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Artist":
        return cls(
            id=data["id"],
            name=data["name"],
            spotify_url=_spotify_url(data),
            image_url=_first_image_url(data.get("images")),
            genres=data.get("genres") or [],
        )


class Track(BaseModel):
    """A track search result, with its album nested."""

    id: str
    name: str
    artists: list[str] = Field(default_factory=list)
    spotify_url: str | None = None
    image_url: str | None = None
    release_date: str | None = None
    disc_number: int | None = None
    track_number: int | None = None
    duration: str | None = Field(default=None, description="HH:MM:SS.mmm")
    album: Album | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Track":
        album_data = data.get("album") or {}
        duration_ms = data.get("duration_ms")
        return cls(
            id=data["id"],
            name=data["name"],
            artists=_artist_names(data.get("artists")),
            spotify_url=_spotify_url(data),
            image_url=_first_image_url(album_data.get("images")),
            release_date=album_data.get("release_date"),
            disc_number=data.get("disc_number"),
            track_number=data.get("track_number"),
            duration=format_duration(duration_ms) if duration_ms is not None else None,
            album=Album.from_api(album_data) if album_data else None,
        )


class Playlist(BaseModel):
    """A playlist search result."""

    id: str
    name: str
    owner: str | None = Field(default=None, description="Owner display name")
    spotify_url: str | None = None
    image_url: str | None = None
    tracks: int | None = Field(default=None, description="Total number of tracks")

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Playlist":
        return cls(
            id=data["id"],
            name=data["name"],
            owner=(data.get("owner") or {}).get("display_name"),
            spotify_url=_spotify_url(data),
            image_url=_first_image_url(data.get("images")),
            tracks=(data.get("tracks") or {}).get("total"),
        )
