import os
from dotenv import load_dotenv

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# .env 가 없으면 시스템 환경변수만 사용
load_dotenv(os.path.join(BASE_DIR, '.env'))
