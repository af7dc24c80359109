"""Encryption of Spotify tokens carried outside the process.

The access and refresh tokens are placed in the session cookie so a logged-in
user can be restored after the in-memory cache lost them. JWTs are signed,
not encrypted, so the tokens are sealed with Fernet first.

The Fernet key is derived from SECRET_KEY and ENCRYPTION_SALT with
PBKDF2-HMAC-SHA256 (480,000 iterations, 32 byte key). Changing either setting
invalidates every outstanding session cookie.
"""

from __future__ import annotations

import base64
import logging

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from spotify_search.config import get_settings

logger = logging.getLogger(__name__)

KDF_ITERATIONS = 480_000

_fernet: Fernet | None = None


def _get_fernet() -> Fernet:
    global _fernet

    if _fernet is None:
        settings = get_settings()
        _fernet = _create_fernet(settings.secret_key, settings.encryption_salt)

    return _fernet


def _create_fernet(secret_key: str, salt: str) -> Fernet:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt.encode("utf-8"),
        iterations=KDF_ITERATIONS,
    )
    key = base64.urlsafe_b64encode(kdf.derive(secret_key.encode("utf-8")))
    return Fernet(key)


def encrypt_token(plaintext: str | None) -> str:
    """Seal a token. Empty or missing tokens encrypt to an empty string."""
    if not plaintext:
        return ""

    return _get_fernet().encrypt(plaintext.encode("utf-8")).decode("utf-8")


def decrypt_token(ciphertext: str | None) -> str:
    """Open a token sealed by `encrypt_token`.

    Raises:
        ValueError: If the ciphertext was tampered with or sealed under
            another key.
    """
    if not ciphertext:
        return ""

    try:
        return _get_fernet().decrypt(ciphertext.encode("utf-8")).decode("utf-8")
    except InvalidToken as e:
        logger.warning("Failed to decrypt token: invalid token or key")
        raise ValueError("Failed to decrypt token") from e


def reset_cipher() -> None:
    """Drop the cached cipher so the next call re-reads the settings."""
    global _fernet
    _fernet = None
