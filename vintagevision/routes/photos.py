#
# <photos.py>
#
# Google Photos Picker 와 관련된 API 엔드포인트를 관리합니다.
#
# 주요 기능:
# - Picker 세션 생성 / 상태 조회
# - 사용자가 고른 사진 목록 받아오기 (userPhotos 에 저장)
# - 구글 포토 이미지 프록시 (CORS, 만료된 baseUrl 처리)
# - 아직 분석하지 않은 사진 목록
# - 사진 삭제
#

import logging
import requests
from flask import Blueprint, request, jsonify, make_response
from google.api_core.exceptions import GoogleAPICallError
from vintagevision.functions.photo_store import *
from vintagevision.functions.photos_picker import *
from vintagevision.utils.database import get_db
from vintagevision.utils.decorators import *
from vintagevision.utils.exceptions import *
from vintagevision.utils.tokens import GoogleSession, call_with_refresh, http_status, refresh_session

logger = logging.getLogger(__name__)

# 사진 블루프린트 작성
photos_routes = Blueprint('photos', __name__, url_prefix='/api/photos')

def _raise_upstream(error, msg):
    status, _, message = upstream_error(error)
    raise UpstreamException(msg, status=status, details=message)

# Picker 세션 생성
@photos_routes.route('/picker/start', methods=['POST'])
@error_handler()
def start_picker():
    session = GoogleSession.from_request()
    logger.info("user %s creating picker session", session.user_id)

    try:
        session_id, picker_uri, data = call_with_refresh(session, create_session)
    except requests.HTTPError as e:
        _raise_upstream(e, 'Failed to create picker session')

    if not session_id or not picker_uri:
        logger.error("invalid picker response: %s", data)
        return jsonify({
            'success': False,
            'error': 'Invalid response from Google Photos Picker API',
            'details': 'Missing sessionId or pickerUri',
            'receivedData': data
        }), 500

    logger.info("picker session created: %s", session_id)
    return jsonify({
        'sessionId': session_id,
        'pickerUri': picker_uri
    }), 200

# Picker 세션 상태 (사용자가 선택을 끝냈는지)
@photos_routes.route('/picker/status', methods=['GET'])
@error_handler()
def picker_status():
    validate_args_params('sessionId')
    session_id = request.args.get('sessionId')
    session = GoogleSession.from_request()

    try:
        status = call_with_refresh(session, lambda token: get_session(token, session_id))
    except requests.HTTPError as e:
        if http_status(e) == 404:
            return jsonify({
                'success': False,
                'error': 'Session not found or expired',
                'status': 'EXPIRED'
            }), 404
        _raise_upstream(e, 'Failed to get picker session')

    return jsonify(status), 200

# 사용자가 고른 사진 목록
@photos_routes.route('/picker/items', methods=['GET'])
@error_handler()
def picker_items():
    validate_args_params('sessionId')
    session_id = request.args.get('sessionId')
    session = GoogleSession.from_request()
    logger.info("user %s polling session %s", session.user_id, session_id)

    try:
        media_items = call_with_refresh(session, lambda token: list_media_items(token, session_id))
    except requests.HTTPError as e:
        kind = classify_items_error(e)
        if kind == 'PENDING':
            logger.info("session %s still pending", session_id)
            return jsonify({'status': 'PENDING'}), 202
        if kind == 'EXPIRED':
            logger.warning("session %s not found or expired", session_id)
            return jsonify({
                'success': False,
                'error': 'Session not found or expired',
                'status': 'EXPIRED'
            }), 404
        _raise_upstream(e, 'Failed to list picked media items')

    items = [simplify_media_item(item) for item in media_items]
    logger.info("received %d media items", len(items))

    if items:
        try:
            save_picked_photos(get_db(), session.user_id, session_id, items)
        except GoogleAPICallError as e:
            # 저장 실패해도 목록은 반환
            logger.error("firestore save error for user %s, session %s (%d photos): %s",
                         session.user_id, session_id, len(items), e)
    else:
        logger.warning("no photos to save for user %s, session %s", session.user_id, session_id)

    return jsonify({
        'status': 'DONE',
        'items': items
    }), 200

def _proxy_fetch(session, url, photo_id):
    '''현재 토큰 -> 토큰 갱신 -> baseUrl 재발급 순서로 이미지 다운로드 시도

    모두 실패하면 처음 받은 오류를 올린다.
    '''
    try:
        return fetch_image(url, session.access_token)
    except requests.HTTPError as e:
        first_error = e
    status = http_status(first_error)

    if status in (401, 403) and session.refresh_token:
        logger.info("image request rejected with %s, refreshing token...", status)
        try:
            return fetch_image(url, refresh_session(session))
        except (requests.RequestException, TokenRefreshException) as e:
            logger.error("token refresh failed while proxying image: %s", e)

    if status in (403, 404) and photo_id:
        logger.info("baseUrl denied with %s, fetching fresh baseUrl for photoId=%s", status, photo_id)
        try:
            fresh_url = with_size_suffix(get_fresh_base_url(session.access_token, photo_id), url)
            return fetch_image(fresh_url, session.access_token)
        except (requests.RequestException, ValueError) as e:
            logger.error("failed to refresh baseUrl via Photos Library API: %s", e)

    raise first_error

# 구글 포토 이미지 프록시
@photos_routes.route('/proxy', methods=['GET'])
@error_handler()
def proxy_image():
    validate_args_params('url')
    url = request.args.get('url')
    photo_id = request.args.get('photoId')
    session = GoogleSession.from_request()
    logger.info("proxying image %s... (photoId=%s)", url[:100], photo_id or 'n/a')

    try:
        content, content_type = _proxy_fetch(session, url, photo_id)
    except requests.HTTPError as e:
        status = http_status(e)
        logger.error("proxy error: %s (status=%s)", e, status)
        if status in (401, 403):
            raise UpstreamException('Failed to access image', status=status,
                                    details='Authentication failed. Please try refreshing the page.')
        raise UpstreamException('Failed to proxy image', status=status, details=str(e))
    except requests.RequestException as e:
        logger.error("proxy error: %s", e)
        raise UpstreamException('Failed to proxy image', details=str(e))

    response = make_response(content)
    response.headers['Content-Type'] = content_type
    response.headers['Cache-Control'] = 'public, max-age=3600'
    return response

# 아직 분석하지 않은 사진 목록
@photos_routes.route('/pending', methods=['GET'])
@error_handler()
@require_google_user()
def pending_photos(user_id):
    try:
        items = list_pending_photos(get_db(), user_id)
    except GoogleAPICallError as e:
        logger.error("failed to load pending photos for user %s: %s", user_id, e)
        raise UpstreamException('Failed to load pending photos', status=500, details=str(e))
    return jsonify({'items': items}), 200

# 사진 삭제
@photos_routes.route('/<photo_doc_id>', methods=['DELETE'])
@error_handler()
@require_google_user()
def remove_photo(photo_doc_id, user_id):
    delete_photo(get_db(), user_id, photo_doc_id)
    return jsonify({
        'success': True,
        'message': 'Photo deleted successfully'
    }), 200
