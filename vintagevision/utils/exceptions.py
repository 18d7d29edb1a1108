from abc import ABC, abstractmethod
from flask import request

# VintageVision Exception abstract class
class AppException(ABC, Exception):
    @property
    @abstractmethod
    def status_code(self):
        pass

    @property
    @abstractmethod
    def err_msg(self):
        pass

    # 응답에 같이 실어 보낼 추가 정보
    @property
    def details(self):
        return None

    def __str__(self):
        return self.err_msg

class MissingParamException(AppException):
    def __init__(self, missing_params, conjunction='and'):
        self.missing_params = missing_params
        self.conjunction = conjunction

    @property
    def status_code(self):
        return 400

    @property
    def err_msg(self):
        names = f' {self.conjunction} '.join(self.missing_params)
        if len(self.missing_params) > 1 and self.conjunction == 'and':
            return f'{names} are required'
        return f'{names} is required'

class NotAuthenticatedException(AppException):
    def __init__(self, msg='Not authenticated'):
        self.msg = msg

    @property
    def status_code(self):
        return 401

    @property
    def err_msg(self):
        return self.msg

class TokenRefreshException(AppException):
    @property
    def status_code(self):
        return 401

    @property
    def err_msg(self):
        return 'Failed to refresh access token. Please login again.'

class ForbiddenException(AppException):
    def __init__(self, msg='Access denied'):
        self.msg = msg

    @property
    def status_code(self):
        return 403

    @property
    def err_msg(self):
        return self.msg

class NotFoundException(AppException):
    def __init__(self, msg='Not found'):
        self.msg = msg

    @property
    def status_code(self):
        return 404

    @property
    def err_msg(self):
        return self.msg

class UpstreamException(AppException):
    '''Google API 호출 실패를 그대로 클라이언트에 전달'''
    def __init__(self, msg, status=None, details=None):
        self.msg = msg
        self.status = status
        self._details = details

    @property
    def status_code(self):
        return self.status or 502

    @property
    def err_msg(self):
        return self.msg

    @property
    def details(self):
        return self._details

def validate_args_params(*params):
    missing_params = [param for param in params if not request.args.get(param)]
    if missing_params:
        raise MissingParamException(missing_params)

def validate_json_params(*params, name_all=False):
    '''name_all 이면 하나만 빠져도 모든 필수 항목을 메시지에 담는다'''
    body = request.get_json(silent=True) or {}
    missing_params = [param for param in params if not body.get(param)]
    if missing_params:
        raise MissingParamException(list(params) if name_all else missing_params)
    return body
