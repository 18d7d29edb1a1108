import logging
from urllib.parse import urlencode
import requests
from config import googleapi
from vintagevision.utils.exceptions import TokenRefreshException

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = 'https://accounts.google.com/o/oauth2/v2/auth'
GOOGLE_TOKEN_URL = 'https://oauth2.googleapis.com/token'
GOOGLE_USERINFO_URL = 'https://www.googleapis.com/oauth2/v2/userinfo'

# Photos Picker + 사용자 정보 권한
GOOGLE_SCOPE = ' '.join([
    'https://www.googleapis.com/auth/photospicker.mediaitems.readonly',
    'https://www.googleapis.com/auth/photoslibrary.readonly',
    'https://www.googleapis.com/auth/userinfo.email',
    'https://www.googleapis.com/auth/userinfo.profile',
    'openid',
])

def build_authorization_url():
    # refresh_token 을 항상 받기 위해 offline + consent
    params = {
        'client_id': googleapi.GOOGLE_CLIENT_ID,
        'redirect_uri': googleapi.GOOGLE_REDIRECT_URI,
        'response_type': 'code',
        'access_type': 'offline',
        'prompt': 'consent',
        'scope': GOOGLE_SCOPE,
    }
    return f'{GOOGLE_AUTH_URL}?{urlencode(params)}'

def exchange_code(code):
    '''인가 코드를 access/refresh 토큰으로 교환

    Returns:
        dict: access_token, refresh_token(최초 동의시에만), scope, expires_in ...
    '''
    response = requests.post(GOOGLE_TOKEN_URL, data={
        'code': code,
        'client_id': googleapi.GOOGLE_CLIENT_ID,
        'client_secret': googleapi.GOOGLE_CLIENT_SECRET,
        'redirect_uri': googleapi.GOOGLE_REDIRECT_URI,
        'grant_type': 'authorization_code',
    }, timeout=googleapi.HTTP_TIMEOUT)
    response.raise_for_status()
    token_data = response.json()
    logger.info("token received, access_token=%s refresh_token=%s scope=%s",
                'yes' if token_data.get('access_token') else 'no',
                'yes' if token_data.get('refresh_token') else 'no',
                token_data.get('scope'))
    return token_data

def get_google_user_info(access_token):
    headers = {
        'Authorization': f'Bearer {access_token}'
    }
    response = requests.get(GOOGLE_USERINFO_URL, headers=headers, timeout=googleapi.HTTP_TIMEOUT)
    response.raise_for_status()
    return response.json()

def refresh_access_token(refresh_token):
    if not refresh_token:
        raise TokenRefreshException()

    try:
        response = requests.post(GOOGLE_TOKEN_URL, data={
            'client_id': googleapi.GOOGLE_CLIENT_ID,
            'client_secret': googleapi.GOOGLE_CLIENT_SECRET,
            'refresh_token': refresh_token,
            'grant_type': 'refresh_token',
        }, timeout=googleapi.HTTP_TIMEOUT)
        response.raise_for_status()
        access_token = response.json()['access_token']
    except (requests.RequestException, KeyError, ValueError) as e:
        status = getattr(getattr(e, 'response', None), 'status_code', None)
        logger.error("token refresh failed: %s (status=%s)", e, status)
        raise TokenRefreshException() from e

    logger.info("token refreshed successfully")
    return access_token

def describe_oauth_error(error):
    '''토큰 교환 실패시 사용자에게 보여줄 메시지'''
    response = getattr(error, 'response', None)
    if response is not None:
        try:
            data = response.json()
        except ValueError:
            data = {}
        if isinstance(data, dict):
            message = data.get('error_description') or data.get('error')
            if isinstance(message, dict):
                message = message.get('message')
            if message:
                return message
    return str(error) or 'Unknown error'
