"""Spotify search routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form

from spotify_search.auth.dependencies import require_logged_in_user
from spotify_search.auth.logged_in import LoggedInUser
from spotify_search.spotify.client import SpotifyClient, get_spotify_client
from spotify_search.spotify.search import SearchOutcome, search_spotify

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/search",
    response_model=SearchOutcome,
    response_model_exclude_none=True,
)
async def search(
    search_term: str = Form(default=""),
    logged_in: LoggedInUser = Depends(require_logged_in_user),
    client: SpotifyClient = Depends(get_spotify_client),
) -> SearchOutcome:
    """Search Spotify for albums, artists, tracks and playlists.

    The search term is sent form-encoded. Errors (including an empty search
    term) are reported in `errors` with a 200 status.
    """
    logger.info(f"Search id={logged_in.id}, search={search_term!r}")
    return await search_spotify(search_term, logged_in, client)
