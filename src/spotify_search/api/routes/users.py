"""User authentication routes.

Handles the Spotify OAuth login flow and the logged-in user's session.

## OAuth Flow

1. GET /users/spotify - Redirect to the Spotify consent screen
2. GET /users/spotify/redirect - Handle OAuth callback
3. GET /users/info?id=... - Get the logged-in user's info
4. GET /users/logout?id=... - Forget the login and clear the session

After a successful login the browser is sent to `/profile#id=<user id>`;
the front end passes that id back on every protected request.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from spotify_search.auth.dependencies import require_logged_in_user
from spotify_search.auth.logged_in import (
    AccessData,
    CachedUser,
    LoggedInUser,
    LoggedInUsers,
    get_logged_in_users,
)
from spotify_search.auth.session import create_session_token
from spotify_search.auth.spotify import SpotifyOAuth, get_spotify_oauth
from spotify_search.config import get_settings
from spotify_search.database.connection import get_db_session
from spotify_search.database.users import find_or_create_user

logger = logging.getLogger(__name__)

router = APIRouter()

STATE_MAX_AGE_SECONDS = 600


class UserInfoResponse(BaseModel):
    """Logged-in user information."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    provider: str
    spotify_id: str = Field(alias="spotifyID")
    email: str | None = None
    expires: datetime | None = None
    image_url: str | None = Field(default=None, alias="imageURL")


# Pending OAuth state tokens, process-local like the logged-in users cache
_oauth_states: dict[str, datetime] = {}


def _generate_state() -> str:
    """Generate a random state token for OAuth."""
    state = secrets.token_urlsafe(32)
    _oauth_states[state] = datetime.now(timezone.utc)
    return state


def _verify_state(state: str | None) -> bool:
    """Verify and consume a state token."""
    if not state or state not in _oauth_states:
        return False

    created = _oauth_states.pop(state)
    age = (datetime.now(timezone.utc) - created).total_seconds()
    return age < STATE_MAX_AGE_SECONDS


def _failure_redirect() -> RedirectResponse:
    return RedirectResponse(
        url=get_settings().login_failure_redirect,
        status_code=status.HTTP_302_FOUND,
    )


@router.get("/spotify")
async def login(
    oauth: SpotifyOAuth = Depends(get_spotify_oauth),
) -> RedirectResponse:
    """Initiate Spotify login.

    Redirects the user to Spotify's consent screen. After consent, Spotify
    redirects back to /users/spotify/redirect.
    """
    if not oauth.is_configured:
        raise HTTPException(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            detail="Spotify OAuth not configured",
        )

    state = _generate_state()
    return RedirectResponse(
        url=oauth.get_authorization_url(state=state),
        status_code=status.HTTP_302_FOUND,
    )


@router.get("/spotify/redirect")
async def spotify_callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    oauth: SpotifyOAuth = Depends(get_spotify_oauth),
    db: AsyncSession = Depends(get_db_session),
    users: LoggedInUsers = Depends(get_logged_in_users),
) -> RedirectResponse:
    """Handle the Spotify OAuth callback.

    Exchanges the authorization code for tokens, finds or creates the user,
    caches the login and sets the session cookie.
    """
    settings = get_settings()

    if not _verify_state(state):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired state token",
        )

    if error or not code:
        logger.info(f"Spotify login declined: {error or 'no authorization code'}")
        return _failure_redirect()

    try:
        tokens = await oauth.exchange_code(code)
        profile = await oauth.get_user_profile(tokens.access_token)
    except ValueError as e:
        logger.error(f"Spotify login failed: {e}")
        return _failure_redirect()

    user, created = await find_or_create_user(db, profile)

    access = AccessData.from_tokens(tokens)
    entry = LoggedInUser(user=CachedUser.from_model(user), access=access)
    users.add(entry)

    logger.info(
        f"User {entry.id} ({user.spotify_id}) logged in"
        f"{' for the first time' if created else ''}, token expires {access.expires}"
    )
    logger.debug(f"Logged in users: {users.ids()}")

    redirect = RedirectResponse(
        url=f"{settings.profile_redirect_path}#id={entry.id}",
        status_code=status.HTTP_302_FOUND,
    )
    redirect.set_cookie(
        key=settings.session_cookie_name,
        value=create_session_token(user.id, access=access),
        max_age=settings.session_max_age_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return redirect


@router.get(
    "/info",
    response_model=UserInfoResponse,
    response_model_exclude_none=True,
)
async def user_info(
    logged_in: LoggedInUser = Depends(require_logged_in_user),
) -> UserInfoResponse:
    """Get info about the logged-in user."""
    logger.info(f"Get user info, id={logged_in.id}")
    return UserInfoResponse(
        name=logged_in.user.name,
        provider=logged_in.access.provider,
        spotify_id=logged_in.user.spotify_id,
        email=logged_in.user.email,
        expires=logged_in.access.expires,
        image_url=logged_in.user.thumb_url,
    )


@router.get("/logout")
async def logout(
    logged_in: LoggedInUser = Depends(require_logged_in_user),
    users: LoggedInUsers = Depends(get_logged_in_users),
) -> RedirectResponse:
    """Log out the user.

    Removes the login from the cache and clears the session cookie.
    """
    settings = get_settings()

    users.log_out(logged_in.id)
    logger.info(f"User {logged_in.id} logged out")

    redirect = RedirectResponse(
        url=settings.logout_redirect,
        status_code=status.HTTP_302_FOUND,
    )
    redirect.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return redirect
