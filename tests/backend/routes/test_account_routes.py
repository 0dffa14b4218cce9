import pytest

from backend.auth.sessions import resolve_session


def test_update_settings_requires_session(client) -> None:
    response = client.put('/api/account/settings', json={'name': 'New'})

    assert response.status_code == 401


def test_update_settings_updates_profile_and_token(client, user_token, auth_header) -> None:
    response = client.put(
        '/api/account/settings',
        json={'name': ' New Name ', 'image': 'https://images.example.com/me.png'},
        headers=auth_header(user_token),
    )

    assert response.status_code == 200
    body = response.json()
    assert body['user']['name'] == 'New Name'
    assert body['user']['image'] == 'https://images.example.com/me.png'

    session = resolve_session(body['access_token'])
    assert session.name == 'New Name'
    assert session.image == 'https://images.example.com/me.png'
    assert session.role == 'USER'


@pytest.mark.parametrize('payload', [{'name': ''}, {'name': '   '}, {'image': 'not a url'}, {'image': 'ftp://x/y'}])
def test_update_settings_rejects_invalid_values(client, user_token, auth_header, payload: dict) -> None:
    response = client.put('/api/account/settings', json=payload, headers=auth_header(user_token))

    assert response.status_code == 400
    assert 'error' in response.json()


def test_update_settings_without_changes(client, user_token, auth_header) -> None:
    response = client.put('/api/account/settings', json={}, headers=auth_header(user_token))

    assert response.status_code == 200
    assert response.json() == {'message': 'No data provided for update.'}


def test_update_settings_with_only_nulls_changes_nothing(client, user_token, auth_header) -> None:
    response = client.put(
        '/api/account/settings',
        json={'name': None, 'image': None},
        headers=auth_header(user_token),
    )
    session = client.get('/auth/session', headers=auth_header(user_token)).json()

    assert response.status_code == 200
    assert response.json() == {'message': 'No data provided for update.'}
    assert session['user']['name'] == 'Reader'
