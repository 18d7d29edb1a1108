from unittest.mock import patch

import requests
from google.api_core.exceptions import RetryError

from conftest import USER_ID, FakeDocument, cookies_set, http_response

GOOGLE_USER = {
    'id': USER_ID,
    'email': 'user@example.com',
    'name': 'Vintage Fan',
    'picture': 'https://lh3.googleusercontent.com/avatar',
}


def _google_ok(refresh_token='refresh-1'):
    token_data = {'access_token': 'access-1', 'scope': 'openid'}
    if refresh_token:
        token_data['refresh_token'] = refresh_token
    post = patch('requests.post', return_value=http_response(json_data=token_data))
    get = patch('requests.get', return_value=http_response(json_data=GOOGLE_USER))
    return post, get


def test_google_login_redirects_to_consent_page(client):
    response = client.get('/api/auth/google')

    assert response.status_code == 302
    assert response.headers['Location'].startswith('https://accounts.google.com/o/oauth2/v2/auth?')


def test_callback_with_provider_error(client):
    response = client.get('/api/auth/google/callback?error=access_denied')

    assert response.status_code == 200
    assert b'GOOGLE_AUTH_ERROR' in response.data
    assert b'access_denied' in response.data
    assert 'google_user_id' not in cookies_set(response)


def test_callback_without_code(client):
    response = client.get('/api/auth/google/callback')

    assert b'Authorization code not found' in response.data


def test_callback_sets_cookies_and_saves_user(client, fake_db):
    post, get = _google_ok()
    with post, get:
        response = client.get('/api/auth/google/callback?code=auth-code')

    assert response.status_code == 200
    assert b'GOOGLE_AUTH_SUCCESS' in response.data
    assert cookies_set(response) == {
        'google_user_id': USER_ID,
        'google_access_token': 'access-1',
        'google_refresh_token': 'refresh-1',
    }
    for header in response.headers.getlist('Set-Cookie'):
        assert 'HttpOnly' in header
        assert 'SameSite=Lax' in header

    user = fake_db.get('users', USER_ID)
    assert user['email'] == 'user@example.com'
    assert user['googleUserId'] == USER_ID
    assert 'createdAt' in user
    assert 'lastLoginAt' in user


def test_callback_keeps_created_at_on_relogin(client, fake_db):
    fake_db.add('users', USER_ID, {'createdAt': 'first-login', 'name': 'Old Name'})

    post, get = _google_ok(refresh_token=None)
    with post, get:
        response = client.get('/api/auth/google/callback?code=auth-code')

    user = fake_db.get('users', USER_ID)
    assert user['createdAt'] == 'first-login'
    assert user['name'] == 'Vintage Fan'
    assert 'google_refresh_token' not in cookies_set(response)


def test_callback_survives_user_store_failure(client, fake_db):
    fake_db.failing_reads.add('users')
    fake_db.failing_writes.add('users')

    post, get = _google_ok()
    with post, get:
        response = client.get('/api/auth/google/callback?code=auth-code')

    assert b'GOOGLE_AUTH_SUCCESS' in response.data
    assert cookies_set(response)['google_user_id'] == USER_ID


def test_callback_survives_user_store_timeout(client):
    timeout = RetryError('Timeout of 5.0s exceeded', None)

    post, get = _google_ok()
    with post, get, patch.object(FakeDocument, 'get', side_effect=timeout):
        response = client.get('/api/auth/google/callback?code=auth-code')

    assert response.status_code == 200
    assert b'GOOGLE_AUTH_SUCCESS' in response.data
    assert cookies_set(response)['google_access_token'] == 'access-1'


def test_callback_token_exchange_failure(client):
    error_response = http_response(400, json_data={
        'error': 'invalid_grant', 'error_description': 'Malformed auth code.'
    })
    with patch('requests.post', return_value=error_response):
        response = client.get('/api/auth/google/callback?code=bad')

    assert b'GOOGLE_AUTH_ERROR' in response.data
    assert b'Malformed auth code.' in response.data


def test_callback_userinfo_network_error(client):
    with patch('requests.post', return_value=http_response(json_data={'access_token': 'a'})), \
            patch('requests.get', side_effect=requests.ConnectionError('connection reset')):
        response = client.get('/api/auth/google/callback?code=auth-code')

    assert b'connection reset' in response.data


def test_legacy_callback_redirects(client):
    response = client.get('/auth/google/callback?code=abc&state=1')

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/api/auth/google/callback?code=abc&state=1')


def test_logout_clears_cookies(logged_in):
    response = logged_in.post('/api/auth/logout')

    assert response.status_code == 200
    assert response.get_json() == {'success': True}
    assert set(cookies_set(response)) == {
        'google_user_id', 'google_access_token', 'google_refresh_token'
    }
    assert all(value == '' for value in cookies_set(response).values())


def test_me_requires_login(client):
    assert client.get('/api/auth/me').status_code == 401
    assert client.get('/api/me').status_code == 401


def test_me_user_not_found(logged_in):
    response = logged_in.get('/api/auth/me')

    assert response.status_code == 404
    assert response.get_json()['error'] == 'User not found'


def test_me_returns_profile(logged_in, fake_db):
    fake_db.add('users', USER_ID, dict(GOOGLE_USER, googleUserId=USER_ID))

    auth_me = logged_in.get('/api/auth/me').get_json()
    assert auth_me['id'] == USER_ID
    assert auth_me['email'] == 'user@example.com'

    me = logged_in.get('/api/me').get_json()
    assert me == {
        'googleUserId': USER_ID,
        'name': 'Vintage Fan',
        'email': 'user@example.com',
        'picture': 'https://lh3.googleusercontent.com/avatar',
    }
