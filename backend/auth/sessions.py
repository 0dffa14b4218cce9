"""Credential checks and stateless session tokens."""

import logging
from dataclasses import asdict, dataclass

import jwt
from sqlalchemy import func
from sqlalchemy.orm import Session as DbSession

from backend.auth import jwt_handler
from backend.auth.passwords import dummy_hash, verify_password
from backend.core.errors import AuthenticationError
from backend.models.user import User, UserRole

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password."


@dataclass(frozen=True)
class Identity:
    id: str
    email: str
    role: str
    name: str | None = None
    image: str | None = None

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        role = user.role.value if isinstance(user.role, UserRole) else str(user.role)
        return cls(id=user.id, email=user.email, role=role, name=user.name, image=user.image)


@dataclass(frozen=True)
class Session:
    id: str | None = None
    email: str | None = None
    role: str | None = None
    name: str | None = None
    image: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.id is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == UserRole.ADMIN.value


ANONYMOUS = Session()


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def authenticate(db: DbSession, email: str | None, password: str | None) -> Identity:
    normalized = normalize_email(email)
    user = None
    if normalized:
        user = db.query(User).filter(func.lower(User.email) == normalized).first()

    digest = user.hashed_password if user is not None else None
    if not digest:
        verify_password(password or "", dummy_hash())
        logger.info("Rejected sign-in for %s", normalized or "<blank>")
        raise AuthenticationError(INVALID_CREDENTIALS)

    if not verify_password(password or "", digest):
        logger.info("Rejected sign-in for %s", normalized)
        raise AuthenticationError(INVALID_CREDENTIALS)

    return Identity.from_user(user)


def issue_token(identity: Identity) -> str:
    return jwt_handler.create_access_token(asdict(identity))


def refresh_token(token: str | None, updated_fields: dict) -> str:
    if not token:
        raise AuthenticationError("Not authenticated. Sign in to continue.")
    try:
        return jwt_handler.refresh_access_token(token, updated_fields)
    except jwt.PyJWTError as exc:
        raise AuthenticationError("Session expired. Sign in again.") from exc


def resolve_session(token: str | None) -> Session:
    if not token:
        return ANONYMOUS
    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.PyJWTError:
        return ANONYMOUS

    if not payload.get("id") or not payload.get("role"):
        return ANONYMOUS

    return Session(
        id=payload["id"],
        email=payload.get("email"),
        role=payload["role"],
        name=payload.get("name"),
        image=payload.get("image"),
    )
