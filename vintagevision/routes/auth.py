#
# <auth.py>
#
# 구글 로그인과 관련된 API 엔드포인트를 관리합니다.
#
# 주요 기능:
# - 구글 로그인 페이지로 리다이렉트
# - 로그인 콜백 처리 (토큰 교환, 사용자 저장, 쿠키 발급)
# - 로그아웃
# - 현재 로그인한 사용자 정보
#

import logging
import requests
from firebase_admin import firestore
from flask import Blueprint, request, jsonify, redirect, render_template, make_response
from google.api_core.exceptions import GoogleAPIError
from vintagevision.functions.google_oauth import *
from vintagevision.utils.database import get_db
from vintagevision.utils.decorators import *
from vintagevision.utils.tokens import set_auth_cookies, clear_auth_cookies

logger = logging.getLogger(__name__)

# 인증 블루프린트 작성
auth_routes = Blueprint('auth', __name__)

# 사용자 문서 저장 타임아웃 (초)
USER_SAVE_TIMEOUT = 5

def _popup(message, success=False):
    return render_template('oauth_popup.html', message=message, success=success)

def _popup_error(error):
    return _popup({'type': 'GOOGLE_AUTH_ERROR', 'error': error})

def save_user(db, google_user):
    '''users/{googleUserId} 문서 저장 (실패해도 로그인은 계속)'''
    google_user_id = google_user['id']
    try:
        user_ref = db.collection('users').document(google_user_id)
        user_data = {
            'googleUserId': google_user_id,
            'email': google_user.get('email'),
            'name': google_user.get('name'),
            'picture': google_user.get('picture'),
            'lastLoginAt': firestore.SERVER_TIMESTAMP,
        }
        if not user_ref.get(timeout=USER_SAVE_TIMEOUT).exists:
            user_data['createdAt'] = firestore.SERVER_TIMESTAMP
        user_ref.set(user_data, merge=True, timeout=USER_SAVE_TIMEOUT)
        logger.info("user saved to firestore: %s", google_user_id)
    except GoogleAPIError as e:
        logger.error("firestore user save error (non-critical): %s", e)

@auth_routes.route('/api/auth/google', methods=['GET'])
def google_login():
    return redirect(build_authorization_url())

@auth_routes.route('/api/auth/google/callback', methods=['GET'])
def google_callback():
    error = request.args.get('error')
    code = request.args.get('code')

    if error:
        return _popup_error(error)
    if not code:
        return _popup_error('Authorization code not found')

    try:
        token_data = exchange_code(code)
        access_token = token_data['access_token']
        google_user = get_google_user_info(access_token)
    except (requests.RequestException, KeyError) as e:
        logger.error("google login error: %s", e)
        return _popup_error(describe_oauth_error(e))

    google_user_id = google_user['id']
    save_user(get_db(), google_user)

    response = make_response(_popup({
        'type': 'GOOGLE_AUTH_SUCCESS',
        'code': code,
        'user': {
            'id': google_user_id,
            'email': google_user.get('email'),
            'name': google_user.get('name'),
            'picture': google_user.get('picture') or '',
            'authProvider': 'google',
        },
    }, success=True))
    return set_auth_cookies(response, google_user_id, access_token, token_data.get('refresh_token'))

# GOOGLE_REDIRECT_URI 가 예전 경로로 설정된 경우
@auth_routes.route('/auth/google/callback', methods=['GET'])
def legacy_google_callback():
    query = request.query_string.decode('utf-8')
    return redirect(f'/api/auth/google/callback?{query}')

@auth_routes.route('/api/auth/logout', methods=['POST'])
def logout():
    response = make_response(jsonify({'success': True}), 200)
    return clear_auth_cookies(response)

def _load_user(user_id):
    snapshot = get_db().collection('users').document(user_id).get()
    if not snapshot.exists:
        return None
    return snapshot.to_dict()

@auth_routes.route('/api/auth/me', methods=['GET'])
@require_google_user()
def auth_me(user_id):
    user_data = _load_user(user_id)
    if user_data is None:
        return jsonify({'success': False, 'error': 'User not found'}), 404

    return jsonify({
        'id': user_id,
        'email': user_data.get('email'),
        'name': user_data.get('name'),
        'picture': user_data.get('picture'),
        'lastLoginAt': user_data.get('lastLoginAt'),
        'createdAt': user_data.get('createdAt'),
    }), 200

@auth_routes.route('/api/me', methods=['GET'])
@require_google_user()
def me(user_id):
    user_data = _load_user(user_id)
    if user_data is None:
        return jsonify({'success': False, 'error': 'User not found'}), 404

    return jsonify({
        'googleUserId': user_id,
        'name': user_data.get('name'),
        'email': user_data.get('email'),
        'picture': user_data.get('picture'),
    }), 200
