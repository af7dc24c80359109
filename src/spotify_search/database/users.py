"""Lookup-or-create of users on Spotify login."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from spotify_search.database.models import SpotifyUser

if TYPE_CHECKING:
    from spotify_search.auth.spotify import SpotifyProfile

logger = logging.getLogger(__name__)


async def _get_by_spotify_id(db: AsyncSession, spotify_id: str) -> SpotifyUser | None:
    result = await db.execute(
        select(SpotifyUser).where(SpotifyUser.spotify_id == spotify_id)
    )
    return result.scalar_one_or_none()


async def find_or_create_user(
    db: AsyncSession,
    profile: "SpotifyProfile",
) -> tuple[SpotifyUser, bool]:
    """Find the user for a Spotify profile, creating it on first login.

    Existing users are returned unchanged.

    Returns:
        The user and whether it was created
    """
    user = await _get_by_spotify_id(db, profile.id)

    if user is not None:
        logger.info(f"Existing Spotify user: {user.spotify_id}")
        return user, False

    user = SpotifyUser(
        # Spotify accounts may have no display name
        name=profile.display_name or profile.id,
        spotify_id=profile.id,
        email=profile.email,
        thumb_url=profile.image_url,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Another login for the same account created it first
        await db.rollback()
        existing = await _get_by_spotify_id(db, profile.id)
        if existing is None:
            raise
        logger.info(f"Spotify user created concurrently: {existing.spotify_id}")
        return existing, False

    logger.info(f"New Spotify user: {user.spotify_id}")
    return user, True


async def get_user(db: AsyncSession, user_id: uuid.UUID | str) -> SpotifyUser | None:
    """Get a user by our id, or None if it does not exist."""
    if isinstance(user_id, str):
        try:
            user_id = uuid.UUID(user_id)
        except ValueError:
            return None
    return await db.get(SpotifyUser, user_id)
