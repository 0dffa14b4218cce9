from datetime import datetime, timedelta, timezone

import jwt

from backend.core import config

IDENTITY_CLAIMS = ("id", "email", "role", "name", "image")
REFRESHABLE_CLAIMS = ("email", "role", "name", "image")


def create_access_token(claims: dict, expires_minutes: int | None = None) -> str:
    expire_minutes = expires_minutes or config.JWT_EXPIRES_MINUTES
    now = datetime.now(timezone.utc)
    payload = {key: claims.get(key) for key in IDENTITY_CLAIMS}
    payload.update({"sub": claims["id"], "iat": now, "exp": now + timedelta(minutes=expire_minutes)})
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        options={"require": ["exp", "sub"]},
    )


def refresh_access_token(token: str, updated_fields: dict) -> str:
    """Reissue ``token`` with ``updated_fields`` merged in and a fresh expiry.

    Raises ``jwt.PyJWTError`` when the current token does not verify.
    Fields other than the refreshable claims are ignored.
    """
    claims = decode_access_token(token)
    for key in REFRESHABLE_CLAIMS:
        if key in updated_fields:
            claims[key] = updated_fields[key]
    return create_access_token(claims)
