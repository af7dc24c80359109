"""FastAPI dependencies for authentication.

Protected routes depend on `require_logged_in_user`, which resolves the
caller's user id and looks it up in the logged-in users cache.

## Usage

```python
from fastapi import Depends
from spotify_search.auth import LoggedInUser, require_logged_in_user

@router.get("/users/info")
async def user_info(logged_in: LoggedInUser = Depends(require_logged_in_user)):
    return {"name": logged_in.user.name}
```
"""

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Query, Request, status

from spotify_search.auth.logged_in import (
    CachedUser,
    LoggedInUser,
    LoggedInUsers,
    get_logged_in_users,
)
from spotify_search.auth.session import SessionData, verify_session_token
from spotify_search.config import get_settings
from spotify_search.database.connection import get_db
from spotify_search.database.users import get_user

logger = logging.getLogger(__name__)


async def get_session_data(request: Request) -> SessionData | None:
    """Extract and verify session data from the session cookie.

    Returns None if no session or invalid session.
    """
    token = request.cookies.get(get_settings().session_cookie_name)
    if not token:
        return None

    return verify_session_token(token)


async def _restore_from_session(
    session: SessionData,
    users: LoggedInUsers,
) -> LoggedInUser | None:
    """Rebuild a cache entry from the session cookie and the stored user."""
    if session.access is None:
        return None

    logged_out_at = users.logged_out_at(session.user_id)
    if logged_out_at is not None and session.created_at <= logged_out_at:
        logger.info(f"Ignoring session issued before logout for user {session.user_id}")
        return None

    async with get_db() as db:
        user = await get_user(db, session.user_id)

    if user is None:
        logger.warning(f"Session for non-existent user: {session.user_id}")
        return None

    entry = LoggedInUser(user=CachedUser.from_model(user), access=session.access)
    users.add(entry)
    logger.info(f"Restored login for user {entry.id} from session")
    return entry


async def require_logged_in_user(
    user_id: str | None = Query(default=None, alias="id"),
    session: SessionData | None = Depends(get_session_data),
    users: LoggedInUsers = Depends(get_logged_in_users),
) -> LoggedInUser:
    """Get the logged-in user for this request.

    The user id comes from the `id` query parameter, or from the session
    cookie when the parameter is absent. Raises 401 when the user is not
    logged in.
    """
    if user_id is None and session is not None:
        user_id = str(session.user_id)

    entry = users.get(user_id)
    if entry is not None:
        return entry

    if user_id is not None and session is not None and str(session.user_id) == user_id:
        entry = await _restore_from_session(session, users)
        if entry is not None:
            return entry

    logger.info(f"Rejected request for user not logged in: id={user_id}")
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not logged in",
    )
