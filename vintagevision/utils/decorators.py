import logging
from functools import wraps
from flask import request, jsonify
from vintagevision.utils.exceptions import AppException
from vintagevision.utils.tokens import USER_ID_COOKIE

logger = logging.getLogger(__name__)

def require_google_user() -> object:
    def decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            user_id = request.cookies.get(USER_ID_COOKIE)
            if not user_id:
                return jsonify({
                    'success': False,
                    'error': 'Not authenticated'
                }), 401

            # user_id 를 kwargs 에 추가
            kwargs['user_id'] = user_id
            return f(*args, **kwargs)
        return wrapped
    return decorator

def error_handler() -> object:
    def decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            # handle different types of errors and return messages accordingly with status code
            except AppException as e:
                logger.warning("%s %s -> %s %s", request.method, request.path, e.status_code, e.err_msg)
                body = {
                    'success': False,
                    'error': e.err_msg,
                }
                if e.details is not None:
                    body['details'] = e.details
                return jsonify(body), e.status_code
        return wrapped
    return decorator
