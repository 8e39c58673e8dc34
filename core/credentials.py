"""
Password hashing for registered reporters.

PBKDF2-HMAC-SHA256 from the standard library; stored as salt$hash.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Final, Optional


PBKDF2_ITERATIONS: Final[int] = 100_000


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """
    Hash a password using PBKDF2-HMAC-SHA256.

    Returns: salt$hash (both hex-encoded)
    """
    if salt is None:
        salt = secrets.token_hex(16)

    hash_bytes = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        PBKDF2_ITERATIONS,
    )
    return f"{salt}${hash_bytes.hex()}"


def verify_password(password: str, stored_hash: str) -> bool:
    """Verify a password against a stored hash."""
    try:
        salt, _ = stored_hash.split("$", 1)
        return hmac.compare_digest(hash_password(password, salt), stored_hash)
    except (ValueError, AttributeError):
        return False
