"""Password hashing with bcrypt."""

from functools import lru_cache

import bcrypt

from backend.core import config


def hash_password(password: str) -> str:
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS),
    ).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Check a plaintext password against a stored bcrypt digest.

    A missing or malformed digest is a mismatch, not an error.
    """
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        return False


@lru_cache(maxsize=1)
def dummy_hash() -> str:
    """Digest checked when there is no real one, so misses cost as much as hits."""
    return hash_password("not-a-real-password")
