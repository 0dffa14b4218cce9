from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from backend.auth.sessions import Session, resolve_session
from backend.core import config
from backend.core.errors import AuthenticationError, AuthorizationError

security = HTTPBearer(auto_error=False)


def extract_token(request: Request, credentials: HTTPAuthorizationCredentials | None = None) -> str | None:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    authorization = request.headers.get("authorization", "")
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() == "bearer" and value:
        return value.strip()
    return request.cookies.get(config.SESSION_COOKIE_NAME)


def get_current_session(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Session:
    return resolve_session(extract_token(request, credentials))


def get_session_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str | None:
    return extract_token(request, credentials)


def require_user(session: Session = Depends(get_current_session)) -> Session:
    if not session.is_authenticated:
        raise AuthenticationError("Not authenticated. Sign in to continue.")
    return session


def require_admin(session: Session = Depends(require_user)) -> Session:
    if not session.is_admin:
        raise AuthorizationError("Access denied. Administrators only.")
    return session
