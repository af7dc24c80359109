"""Process-local cache of logged-in users.

After the OAuth callback the user record and the Spotify access data are
stored here, keyed by our user id. Protected routes look the caller up in
this map before doing anything else.

The cache is a plain dict: unbounded, never evicted, not shared between
worker processes and lost on restart. Token expiry is recorded but never
enforced.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from spotify_search.auth.spotify import SpotifyTokens
    from spotify_search.database.models import SpotifyUser

logger = logging.getLogger(__name__)

PROVIDER = "spotify"


@dataclass
class AccessData:
    """Spotify access for one login."""

    access_token: str
    refresh_token: str | None
    expires_in: int | None
    expires: datetime | None
    provider: str = PROVIDER

    @classmethod
    def from_tokens(cls, tokens: "SpotifyTokens") -> "AccessData":
        expires = tokens.expires_at
        if expires is None and tokens.expires_in is not None:
            expires = datetime.now(timezone.utc) + timedelta(seconds=tokens.expires_in)
        return cls(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_in=tokens.expires_in,
            expires=expires,
        )

    @property
    def is_expired(self) -> bool:
        if self.expires is None:
            return False
        return datetime.now(timezone.utc) >= self.expires


@dataclass
class CachedUser:
    """Snapshot of a `SpotifyUser` row, detached from any DB session."""

    id: str
    name: str
    spotify_id: str
    email: str | None = None
    thumb_url: str | None = None
    date: datetime | None = None

    @classmethod
    def from_model(cls, user: "SpotifyUser") -> "CachedUser":
        return cls(
            id=str(user.id),
            name=user.name,
            spotify_id=user.spotify_id,
            email=user.email,
            thumb_url=user.thumb_url,
            date=user.date,
        )


@dataclass
class LoggedInUser:
    user: CachedUser
    access: AccessData
    logged_in_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def id(self) -> str:
        return self.user.id


class LoggedInUsers:
    """Map from user id to `LoggedInUser`.

    Example:
        ```python
        users = LoggedInUsers()
        users.add(LoggedInUser(user=cached, access=access))
        entry = users.get(cached.id)
        users.remove(cached.id)
        ```
    """

    def __init__(self) -> None:
        self._users: dict[str, LoggedInUser] = {}
        # Last logout per user; sessions issued before it are not restored
        self._logged_out: dict[str, datetime] = {}

    @staticmethod
    def _key(user_id: str | uuid.UUID) -> str:
        return str(user_id)

    def add(self, entry: LoggedInUser) -> None:
        """Insert the entry, replacing any previous login of the same user."""
        self._users[self._key(entry.id)] = entry
        self._logged_out.pop(self._key(entry.id), None)
        logger.debug(f"Cached login for user {entry.id} ({len(self._users)} logged in)")

    def get(self, user_id: str | uuid.UUID | None) -> LoggedInUser | None:
        if user_id is None:
            return None
        return self._users.get(self._key(user_id))

    def remove(self, user_id: str | uuid.UUID | None) -> LoggedInUser | None:
        """Forget a user. Unknown ids are ignored."""
        if user_id is None:
            return None
        entry = self._users.pop(self._key(user_id), None)
        if entry is not None:
            logger.debug(f"Removed user {entry.id} ({len(self._users)} logged in)")
        return entry

    def log_out(self, user_id: str | uuid.UUID) -> LoggedInUser | None:
        """Forget a user and remember when they logged out."""
        self._logged_out[self._key(user_id)] = datetime.now(timezone.utc)
        return self.remove(user_id)

    def logged_out_at(self, user_id: str | uuid.UUID) -> datetime | None:
        return self._logged_out.get(self._key(user_id))

    def ids(self) -> list[str]:
        return list(self._users)

    def clear(self) -> None:
        self._users.clear()
        self._logged_out.clear()

    def __contains__(self, user_id: object) -> bool:
        if not isinstance(user_id, (str, uuid.UUID)):
            return False
        return self._key(user_id) in self._users

    def __len__(self) -> int:
        return len(self._users)

    def __iter__(self) -> Iterator[LoggedInUser]:
        return iter(list(self._users.values()))


@lru_cache
def get_logged_in_users() -> LoggedInUsers:
    """Get the process-wide logged-in users cache."""
    return LoggedInUsers()
