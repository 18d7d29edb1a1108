import logging
import requests
from flask import current_app, g, request
from vintagevision.functions.google_oauth import refresh_access_token
from vintagevision.utils.exceptions import NotAuthenticatedException

logger = logging.getLogger(__name__)

USER_ID_COOKIE = 'google_user_id'
ACCESS_TOKEN_COOKIE = 'google_access_token'
REFRESH_TOKEN_COOKIE = 'google_refresh_token'

class GoogleSession:
    '''쿠키에 담긴 구글 로그인 정보'''
    def __init__(self, user_id, access_token, refresh_token=None):
        self.user_id = user_id
        self.access_token = access_token
        self.refresh_token = refresh_token

    @classmethod
    def from_request(cls, require_token=True):
        user_id = request.cookies.get(USER_ID_COOKIE)
        access_token = request.cookies.get(ACCESS_TOKEN_COOKIE)
        if not user_id or (require_token and not access_token):
            raise NotAuthenticatedException()
        return cls(user_id, access_token, request.cookies.get(REFRESH_TOKEN_COOKIE))

def _cookie_options():
    return {
        'httponly': True,
        'secure': current_app.config['COOKIE_SECURE'],
        'samesite': 'Lax',
        'path': '/',
    }

def set_auth_cookies(response, user_id, access_token, refresh_token=None):
    max_age = current_app.config['COOKIE_MAX_AGE']
    response.set_cookie(USER_ID_COOKIE, user_id, max_age=max_age, **_cookie_options())
    response.set_cookie(ACCESS_TOKEN_COOKIE, access_token, max_age=max_age, **_cookie_options())
    if refresh_token:
        response.set_cookie(REFRESH_TOKEN_COOKIE, refresh_token, max_age=max_age, **_cookie_options())
    return response

def clear_auth_cookies(response):
    for name in (USER_ID_COOKIE, ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(name, **_cookie_options())
    return response

def store_refreshed_token(response):
    '''after_request: 요청 중에 갱신된 access token 을 쿠키에 반영'''
    access_token = g.pop('refreshed_access_token', None)
    if access_token:
        response.set_cookie(ACCESS_TOKEN_COOKIE, access_token,
                            max_age=current_app.config['COOKIE_MAX_AGE'], **_cookie_options())
    return response

def http_status(error):
    response = getattr(error, 'response', None)
    return response.status_code if response is not None else None

def refresh_session(session):
    '''refresh token 으로 access token 갱신, 응답 쿠키에도 반영되도록 g 에 보관'''
    session.access_token = refresh_access_token(session.refresh_token)
    g.refreshed_access_token = session.access_token
    return session.access_token

def call_with_refresh(session, call, retry_statuses=(401,)):
    '''call(access_token) 실행, 토큰 만료 응답이면 한 번만 갱신 후 재시도

    refresh token 이 없거나 다른 오류면 원래 예외를 그대로 올린다.
    '''
    try:
        return call(session.access_token)
    except requests.HTTPError as e:
        status = http_status(e)
        if status not in retry_statuses or not session.refresh_token:
            logger.warning("google api call failed (status=%s, has_refresh_token=%s)",
                           status, bool(session.refresh_token))
            raise
        logger.info("access token rejected with %s, refreshing...", status)

    return call(refresh_session(session))
