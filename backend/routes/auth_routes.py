from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel
from sqlalchemy.orm import Session as DbSession

from backend.auth import sessions
from backend.auth.dependencies import get_current_session, get_session_token, require_user
from backend.auth.sessions import Identity, Session
from backend.core import config
from backend.database import get_db
from backend.services import accounts

router = APIRouter(tags=["auth"])


class RegisterRequest(BaseModel):
    email: str | None = None
    name: str | None = None
    password: str | None = None


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class UserResponse(BaseModel):
    id: str
    email: str
    name: str | None = None
    image: str | None = None
    role: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


def user_response(identity: Identity) -> UserResponse:
    return UserResponse(
        id=identity.id,
        email=identity.email,
        name=identity.name,
        image=identity.image,
        role=identity.role,
    )


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=token,
        max_age=config.JWT_EXPIRES_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=config.SESSION_COOKIE_SECURE,
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: DbSession = Depends(get_db)):
    user = accounts.register_user(db, data.email, data.name, data.password)
    return user_response(Identity.from_user(user))


@router.post("/login", response_model=TokenResponse)
def login(data: LoginRequest, response: Response, db: DbSession = Depends(get_db)):
    identity = sessions.authenticate(db, data.email, data.password)
    token = sessions.issue_token(identity)
    set_session_cookie(response, token)
    return TokenResponse(access_token=token, user=user_response(identity))


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(config.SESSION_COOKIE_NAME)
    return {"message": "Signed out."}


@router.get("/session")
def current_session(session: Session = Depends(get_current_session)):
    if not session.is_authenticated:
        return {"authenticated": False}
    return {
        "authenticated": True,
        "user": {
            "id": session.id,
            "email": session.email,
            "name": session.name,
            "image": session.image,
            "role": session.role,
        },
    }


@router.post("/session/refresh", response_model=TokenResponse)
def refresh_session(
    response: Response,
    session: Session = Depends(require_user),
    token: str | None = Depends(get_session_token),
    db: DbSession = Depends(get_db),
):
    # Claims come from the stored user, never from the client.
    identity = Identity.from_user(accounts.get_user(db, session.id))
    refreshed = sessions.refresh_token(token, {
        "email": identity.email,
        "role": identity.role,
        "name": identity.name,
        "image": identity.image,
    })
    set_session_cookie(response, refreshed)
    return TokenResponse(access_token=refreshed, user=user_response(identity))


@router.get("/signin")
def signin(callback_url: str | None = Query(default=None, alias="callbackUrl")):
    return {"message": "Sign in required.", "callbackUrl": callback_url or config.HOME_PATH}
