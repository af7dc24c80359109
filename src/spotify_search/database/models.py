"""Database models for the Spotify search backend.

## Schema Overview

```
spotify_users
```

Only the identity returned by Spotify is stored. Access and refresh tokens are
never written to the database; they live in the logged-in users cache and,
encrypted, in the session cookie.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""


class SpotifyUser(Base):
    """User account model.

    Users are created on their first Spotify login. The spotify_id is the
    identifier from Spotify, while we maintain our own UUID, which is also
    the key of the logged-in users cache.
    """

    __tablename__ = "spotify_users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    spotify_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    thumb_url: Mapped[str | None] = mapped_column(String(512))

    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<SpotifyUser {self.spotify_id}>"
