from datetime import datetime, timedelta, timezone

import jwt
import pytest

from backend.auth import jwt_handler
from backend.auth.sessions import (
    ANONYMOUS,
    INVALID_CREDENTIALS,
    Identity,
    authenticate,
    issue_token,
    refresh_token,
    resolve_session,
)
from backend.core import config
from backend.core.errors import AuthenticationError
from backend.models.user import UserRole


def test_authenticate_returns_identity_for_valid_credentials(make_user, db) -> None:
    user = make_user(email='a@b.com', password='right', role=UserRole.ADMIN)

    identity = authenticate(db, ' A@B.com ', 'right')

    assert identity == Identity(id=user.id, email='a@b.com', role='ADMIN', name='Reader', image=None)


def test_authenticate_failures_are_indistinguishable(make_user, db) -> None:
    make_user(email='a@b.com', password='right')
    make_user(email='nodigest@b.com', password=None)

    failures = []
    for email, password in [
        ('a@b.com', 'wrong'),
        ('nosuch@b.com', 'whatever'),
        ('nodigest@b.com', 'whatever'),
        ('', ''),
    ]:
        with pytest.raises(AuthenticationError) as exception_info:
            authenticate(db, email, password)
        failures.append((type(exception_info.value), exception_info.value.message))

    assert set(failures) == {(AuthenticationError, INVALID_CREDENTIALS)}


def test_issue_token_embeds_identity_claims() -> None:
    token = issue_token(Identity(id='u-1', email='a@b.com', role='USER', name='Ann'))

    claims = jwt_handler.decode_access_token(token)

    assert claims['sub'] == 'u-1'
    assert claims['id'] == 'u-1'
    assert claims['email'] == 'a@b.com'
    assert claims['role'] == 'USER'
    assert claims['name'] == 'Ann'
    assert 'exp' in claims


def test_resolve_session_exposes_identity() -> None:
    token = issue_token(Identity(id='u-1', email='a@b.com', role='ADMIN', image='https://img.test/a.png'))

    session = resolve_session(token)

    assert session.is_authenticated
    assert session.is_admin
    assert session.image == 'https://img.test/a.png'


@pytest.mark.parametrize('token', [None, '', 'garbage', 'a.b.c'])
def test_resolve_session_is_anonymous_for_missing_or_malformed_token(token) -> None:
    assert resolve_session(token) is ANONYMOUS


def test_resolve_session_is_anonymous_for_tampered_token() -> None:
    forged = jwt.encode(
        {'sub': 'u-1', 'id': 'u-1', 'role': 'ADMIN', 'exp': datetime.now(timezone.utc) + timedelta(minutes=5)},
        'some-other-secret-that-is-long-enough',
        algorithm=config.JWT_ALGORITHM,
    )

    assert resolve_session(forged) is ANONYMOUS


def test_resolve_session_is_anonymous_for_expired_token() -> None:
    expired = jwt.encode(
        {'sub': 'u-1', 'id': 'u-1', 'role': 'ADMIN', 'exp': datetime.now(timezone.utc) - timedelta(minutes=5)},
        config.JWT_SECRET_KEY,
        algorithm=config.JWT_ALGORITHM,
    )

    assert resolve_session(expired) is ANONYMOUS


def test_refresh_token_re_embeds_updated_role_without_password() -> None:
    token = issue_token(Identity(id='u-1', email='a@b.com', role='USER', name='Ann'))

    refreshed = refresh_token(token, {'role': 'ADMIN', 'id': 'someone-else', 'unknown': 'x'})
    session = resolve_session(refreshed)

    assert session.role == 'ADMIN'
    assert session.id == 'u-1'
    assert session.name == 'Ann'
    assert 'unknown' not in jwt_handler.decode_access_token(refreshed)


def test_refresh_token_rejects_invalid_token() -> None:
    with pytest.raises(AuthenticationError):
        refresh_token('garbage', {'role': 'ADMIN'})

    with pytest.raises(AuthenticationError):
        refresh_token(None, {'role': 'ADMIN'})


def test_authenticate_matches_stored_mixed_case_email(make_user, db) -> None:
    user = make_user(email='Mixed.Case@Example.com', password='right')

    assert authenticate(db, 'mixed.case@example.com', 'right').id == user.id
    assert authenticate(db, 'Mixed.Case@Example.com', 'right').id == user.id
