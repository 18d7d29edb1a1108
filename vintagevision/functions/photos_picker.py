import logging
import re
from urllib.parse import quote
import requests
from config import googleapi

logger = logging.getLogger(__name__)

PICKER_API = 'https://photospicker.googleapis.com/v1'
PHOTOS_LIBRARY_API = 'https://photoslibrary.googleapis.com/v1'

# 한 번에 가져올 수 있는 최대 개수
PAGE_SIZE = 100

SIZE_SUFFIX_PATTERN = re.compile(r'(=w\d+-h\d+.*)$')
DEFAULT_SIZE_SUFFIX = '=w400-h400'

# 사용자가 아직 사진을 고르지 않았을 때 오는 메시지
PENDING_MESSAGES = ('not picked media items', 'Please redirect the user')

def _auth_headers(access_token):
    return {'Authorization': f'Bearer {access_token}'}

def create_session(access_token):
    '''Picker 세션 생성

    Returns:
        (session_id, picker_uri, raw_response)
    '''
    response = requests.post(f'{PICKER_API}/sessions', json={},
                             headers=_auth_headers(access_token), timeout=googleapi.HTTP_TIMEOUT)
    response.raise_for_status()
    data = response.json()

    # 필드 이름이 문서/버전마다 다름
    session_id = data.get('id') or data.get('sessionId') or data.get('session_id')
    picker_uri = data.get('pickerUri') or data.get('picker_uri') or data.get('picker_url')
    return session_id, picker_uri, data

def get_session(access_token, session_id):
    response = requests.get(f'{PICKER_API}/sessions/{quote(session_id, safe="")}',
                            headers=_auth_headers(access_token), timeout=googleapi.HTTP_TIMEOUT)
    response.raise_for_status()
    data = response.json()
    polling = data.get('pollingConfig') or {}
    return {
        'sessionId': data.get('id', session_id),
        'mediaItemsSet': bool(data.get('mediaItemsSet')),
        'pollInterval': polling.get('pollInterval'),
        'timeoutIn': polling.get('timeoutIn'),
        'expireTime': data.get('expireTime'),
    }

def list_media_items(access_token, session_id):
    response = requests.get(f'{PICKER_API}/mediaItems',
                            headers=_auth_headers(access_token),
                            params={'sessionId': session_id, 'pageSize': PAGE_SIZE},
                            timeout=googleapi.HTTP_TIMEOUT)
    response.raise_for_status()
    return response.json().get('mediaItems') or []

def simplify_media_item(item):
    media_file = item.get('mediaFile') or {}
    metadata = media_file.get('mediaMetadata') or {}
    return {
        'id': item.get('id') or media_file.get('id'),
        'baseUrl': media_file.get('baseUrl'),
        'mimeType': media_file.get('mimeType'),
        'filename': media_file.get('filename'),
        'type': item.get('type'),
        'width': metadata.get('width'),
        'height': metadata.get('height'),
        'creationTime': metadata.get('creationTime'),
    }

def upstream_error(error):
    '''HTTPError 에서 (status, google error status, message) 추출'''
    response = error.response
    status = response.status_code if response is not None else None
    try:
        data = response.json() if response is not None else {}
    except ValueError:
        data = {}
    error_data = data.get('error', data) if isinstance(data, dict) else {}
    if not isinstance(error_data, dict):
        error_data = {'message': str(error_data)}
    return status, error_data.get('status'), error_data.get('message') or str(error)

def classify_items_error(error):
    '''mediaItems 조회 실패 분류: 'PENDING', 'EXPIRED' 또는 None'''
    status, api_status, message = upstream_error(error)
    if status == 400:
        if api_status == 'FAILED_PRECONDITION' or any(m in (message or '') for m in PENDING_MESSAGES):
            return 'PENDING'
    if status == 404:
        return 'EXPIRED'
    return None

def fetch_image(url, access_token=None):
    '''이미지 다운로드

    Returns:
        (bytes, content_type)
    '''
    headers = _auth_headers(access_token) if access_token else {}
    response = requests.get(url, headers=headers, timeout=googleapi.HTTP_TIMEOUT)
    response.raise_for_status()
    return response.content, response.headers.get('Content-Type') or 'image/jpeg'

def get_fresh_base_url(access_token, photo_id):
    # baseUrl 은 약 60분 후 만료되므로 Library API 로 새로 받음
    response = requests.get(f'{PHOTOS_LIBRARY_API}/mediaItems/{quote(photo_id, safe="")}',
                            headers=_auth_headers(access_token), timeout=googleapi.HTTP_TIMEOUT)
    response.raise_for_status()
    base_url = response.json().get('baseUrl')
    if not base_url:
        raise ValueError('No baseUrl returned from mediaItems.get')
    return base_url

def with_size_suffix(base_url, original_url):
    '''원래 URL 의 크기 파라미터(=w800-h800 ...)를 새 baseUrl 에 붙임'''
    match = SIZE_SUFFIX_PATTERN.search(original_url)
    return base_url + (match.group(1) if match else DEFAULT_SIZE_SUFFIX)

def is_google_hosted(url):
    return 'googleusercontent.com' in url or 'google.com' in url
