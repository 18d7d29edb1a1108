from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest
import requests

from conftest import http_response
from vintagevision.functions import google_oauth
from vintagevision.utils.exceptions import TokenRefreshException


def test_authorization_url_requests_offline_consent():
    url = urlparse(google_oauth.build_authorization_url())
    params = parse_qs(url.query)

    assert url.netloc == 'accounts.google.com'
    assert params['response_type'] == ['code']
    assert params['access_type'] == ['offline']
    assert params['prompt'] == ['consent']
    scopes = params['scope'][0].split(' ')
    assert 'https://www.googleapis.com/auth/photospicker.mediaitems.readonly' in scopes
    assert 'openid' in scopes


def test_exchange_code_posts_authorization_code_grant():
    with patch('requests.post', return_value=http_response(json_data={
        'access_token': 'access-1', 'refresh_token': 'refresh-1'
    })) as post:
        token_data = google_oauth.exchange_code('auth-code')

    assert token_data['access_token'] == 'access-1'
    assert post.call_args.kwargs['data']['grant_type'] == 'authorization_code'
    assert post.call_args.kwargs['data']['code'] == 'auth-code'


def test_refresh_access_token_returns_new_token():
    with patch('requests.post', return_value=http_response(json_data={'access_token': 'access-2'})) as post:
        assert google_oauth.refresh_access_token('refresh-1') == 'access-2'

    data = post.call_args.kwargs['data']
    assert data['grant_type'] == 'refresh_token'
    assert data['refresh_token'] == 'refresh-1'


def test_refresh_access_token_without_refresh_token():
    with patch('requests.post') as post:
        with pytest.raises(TokenRefreshException):
            google_oauth.refresh_access_token(None)
    post.assert_not_called()


def test_refresh_access_token_rejected():
    with patch('requests.post', return_value=http_response(400, json_data={'error': 'invalid_grant'})):
        with pytest.raises(TokenRefreshException) as exc_info:
            google_oauth.refresh_access_token('revoked')

    assert exc_info.value.status_code == 401
    assert 'Please login again' in exc_info.value.err_msg


def test_describe_oauth_error_prefers_error_description():
    error = requests.HTTPError(response=http_response(400, json_data={
        'error': 'invalid_grant', 'error_description': 'Bad Request'
    }))
    assert google_oauth.describe_oauth_error(error) == 'Bad Request'

    error = requests.HTTPError(response=http_response(400, json_data={'error': 'invalid_grant'}))
    assert google_oauth.describe_oauth_error(error) == 'invalid_grant'

    assert google_oauth.describe_oauth_error(requests.ConnectionError('boom')) == 'boom'
