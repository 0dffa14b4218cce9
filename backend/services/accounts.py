import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.passwords import hash_password
from backend.auth.sessions import normalize_email
from backend.core import config
from backend.core.errors import ConflictError, NotFoundError, UnexpectedError, ValidationError
from backend.models.user import User, UserRole

logger = logging.getLogger(__name__)


def register_user(db: Session, email: str | None, name: str | None, password: str | None) -> User:
    normalized_email = normalize_email(email)
    display_name = (name or "").strip()
    if not normalized_email or not display_name or not password:
        raise ValidationError("Missing email, name, or password.")

    if db.query(User).filter(func.lower(User.email) == normalized_email).first() is not None:
        raise ConflictError("A user with this email already exists.", fields=["email"])

    is_admin = bool(config.ADMIN_EMAIL) and normalized_email == config.ADMIN_EMAIL
    user = User(
        email=normalized_email,
        name=display_name,
        hashed_password=hash_password(password),
        role=UserRole.ADMIN if is_admin else UserRole.USER,
    )
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("A user with this email already exists.", fields=["email"]) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to register user")
        raise UnexpectedError("Failed to register the user on the server.") from exc

    logger.info("Registered user %s with role %s", user.id, user.role.value)
    return user


def get_user(db: Session, user_id: str) -> User:
    try:
        user = db.get(User, user_id)
    except SQLAlchemyError as exc:
        logger.exception("Failed to fetch user %s", user_id)
        raise UnexpectedError("Failed to fetch the user on the server.") from exc
    if user is None:
        raise NotFoundError("User not found.")
    return user


def update_profile(db: Session, user_id: str, changes: dict) -> User:
    """Apply ``name``/``image`` changes; other keys are ignored."""
    user = get_user(db, user_id)
    for key in ("name", "image"):
        if key in changes:
            setattr(user, key, changes[key])
    try:
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to update profile for user %s", user_id)
        raise UnexpectedError("Failed to update the profile on the server.") from exc
    return user
