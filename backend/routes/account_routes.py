from urllib.parse import urlparse

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session as DbSession

from backend.auth import sessions
from backend.auth.dependencies import get_session_token, require_user
from backend.auth.sessions import Identity, Session
from backend.database import get_db
from backend.routes.auth_routes import set_session_cookie, user_response
from backend.services import accounts

router = APIRouter(tags=['account'])

MAX_NAME_LENGTH = 255
MAX_IMAGE_URL_LENGTH = 2048


class UpdateProfileRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=MAX_NAME_LENGTH)
    image: str | None = Field(default=None, max_length=MAX_IMAGE_URL_LENGTH)

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name cannot be empty.')
        return normalized

    @field_validator('image')
    @classmethod
    def validate_image(cls, value: str | None) -> str | None:
        if value is None:
            return None
        parsed = urlparse(value.strip())
        if parsed.scheme not in {'http', 'https'} or not parsed.netloc:
            raise ValueError('Invalid image URL.')
        return value.strip()


@router.put('/settings')
def update_settings(
    data: UpdateProfileRequest,
    response: Response,
    session: Session = Depends(require_user),
    token: str | None = Depends(get_session_token),
    db: DbSession = Depends(get_db),
):
    changes = data.model_dump(exclude_none=True)
    if not changes:
        return {'message': 'No data provided for update.'}

    user = accounts.update_profile(db, session.id, changes)
    identity = Identity.from_user(user)
    refreshed = sessions.refresh_token(token, {
        'name': identity.name,
        'image': identity.image,
        'role': identity.role,
    })
    set_session_cookie(response, refreshed)

    return {
        'message': 'Profile updated.',
        'user': user_response(identity),
        'access_token': refreshed,
    }
