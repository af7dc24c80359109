"""Session management using signed JWT tokens.

Sessions are stored as signed JWT tokens in HTTP-only cookies. The token
serializes what is needed to put a user back into the logged-in users cache:
the user id and the Spotify access data, with the tokens themselves
encrypted.

## Token Structure

```json
{
  "sub": "user-uuid",
  "iat": 1234567890,
  "exp": 1235172690,
  "type": "session",
  "access": {
    "provider": "spotify",
    "access_token": "<fernet>",
    "refresh_token": "<fernet>",
    "expires_in": 3600,
    "expires": 1234571490
  }
}
```
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from spotify_search.auth.logged_in import AccessData
from spotify_search.config import get_settings
from spotify_search.database.encryption import decrypt_token, encrypt_token

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_TYPE = "session"


@dataclass
class SessionData:
    """Data stored in the session token."""

    user_id: uuid.UUID
    created_at: datetime
    expires_at: datetime
    access: AccessData | None = None

    @property
    def is_expired(self) -> bool:
        return datetime.now(timezone.utc) > self.expires_at


def _dump_access(access: AccessData) -> dict[str, Any]:
    return {
        "provider": access.provider,
        "access_token": encrypt_token(access.access_token),
        "refresh_token": encrypt_token(access.refresh_token),
        "expires_in": access.expires_in,
        "expires": int(access.expires.timestamp()) if access.expires else None,
    }


def _load_access(data: dict[str, Any]) -> AccessData:
    expires = data.get("expires")
    return AccessData(
        provider=data.get("provider", "spotify"),
        access_token=decrypt_token(data["access_token"]),
        refresh_token=decrypt_token(data.get("refresh_token")) or None,
        expires_in=data.get("expires_in"),
        expires=datetime.fromtimestamp(expires, tz=timezone.utc) if expires else None,
    )


def create_session_token(
    user_id: uuid.UUID | str,
    access: AccessData | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed session token for a user.

    Args:
        user_id: The user's UUID
        access: Spotify access data to carry in the session
        expires_delta: Custom expiration time (or use default from settings)

    Returns:
        Signed JWT token string
    """
    settings = get_settings()

    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(seconds=settings.session_max_age_seconds)

    payload: dict[str, Any] = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "type": TOKEN_TYPE,
    }
    if access is not None:
        payload["access"] = _dump_access(access)

    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def verify_session_token(token: str) -> SessionData | None:
    """Verify and decode a session token.

    Returns:
        SessionData if valid, None if invalid or expired
    """
    settings = get_settings()

    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.debug(f"Session token verification failed: {e}")
        return None

    if payload.get("type") != TOKEN_TYPE:
        logger.debug("Invalid token type")
        return None

    try:
        user_id = uuid.UUID(payload["sub"])
        created_at = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        access = _load_access(payload["access"]) if payload.get("access") else None
    except (KeyError, TypeError, ValueError) as e:
        logger.debug(f"Invalid token payload: {e}")
        return None

    session = SessionData(
        user_id=user_id,
        created_at=created_at,
        expires_at=expires_at,
        access=access,
    )

    if session.is_expired:
        logger.debug("Session token expired")
        return None

    return session
