from config import BASE_DIR
import os

ENV = os.getenv('FLASK_ENV', os.getenv('NODE_ENV', 'development'))
DEBUG = ENV == 'development'
SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key')

PORT = int(os.getenv('PORT', '3000'))
FRONTEND_URL = os.getenv('FRONTEND_URL', 'http://localhost:3000')

# 로그인 쿠키
COOKIE_SECURE = ENV == 'production'
COOKIE_MAX_AGE = 7 * 24 * 60 * 60

# 업로드/요청 크기 제한 (10MB)
MAX_CONTENT_LENGTH = int(os.getenv('MAX_FILE_SIZE', '10485760'))

# 로그
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
# App Engine Standard 에서는 /tmp 만 쓰기 가능
LOG_DIR = '/tmp/logs' if os.getenv('GAE_ENV') == 'standard' else os.path.join(BASE_DIR, 'logs')
