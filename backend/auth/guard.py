"""Per-request access decisions for the admin area."""

import enum
from urllib.parse import urlencode

from backend.auth.sessions import Session
from backend.core import config


class GuardDecision(str, enum.Enum):
    ALLOW = "allow"
    REDIRECT_TO_SIGN_IN = "redirect_to_sign_in"
    REDIRECT_TO_HOME = "redirect_to_home"


def is_protected(path: str, prefixes: list[str]) -> bool:
    for prefix in prefixes:
        prefix = prefix.rstrip("/")
        if path == prefix or path.startswith(prefix + "/"):
            return True
    return False


def evaluate(path: str, session: Session, prefixes: list[str] | None = None) -> GuardDecision:
    if prefixes is None:
        prefixes = config.PROTECTED_PATH_PREFIXES

    if not is_protected(path, prefixes):
        return GuardDecision.ALLOW
    if not session.is_authenticated:
        return GuardDecision.REDIRECT_TO_SIGN_IN
    if not session.is_admin:
        return GuardDecision.REDIRECT_TO_HOME
    return GuardDecision.ALLOW


def sign_in_url(return_to: str) -> str:
    return f"{config.SIGN_IN_PATH}?{urlencode({'callbackUrl': return_to})}"


def redirect_location(decision: GuardDecision, path: str, query: str = "") -> str | None:
    if decision is GuardDecision.REDIRECT_TO_SIGN_IN:
        return sign_in_url(f"{path}?{query}" if query else path)
    if decision is GuardDecision.REDIRECT_TO_HOME:
        return config.HOME_PATH
    return None
