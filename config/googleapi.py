from config import BASE_DIR
import os

# Firebase / Firestore
CREDENTIAL_PATH = os.getenv('CREDENTIAL_PATH', '')
PROJECT_ID = os.getenv('GOOGLE_CLOUD_PROJECT_ID', '')
FIRESTORE_DATABASE = os.getenv('FIRESTORE_DATABASE', 'vintagevision')

# Google OAuth
GOOGLE_CLIENT_ID = os.getenv('GOOGLE_CLIENT_ID', '')
GOOGLE_CLIENT_SECRET = os.getenv('GOOGLE_CLIENT_SECRET', '')
GOOGLE_REDIRECT_URI = os.getenv('GOOGLE_REDIRECT_URI', 'http://localhost:3000/api/auth/google/callback')

# Vertex AI (Gemini)
VERTEX_LOCATION = os.getenv('VERTEX_LOCATION', 'us-central1')
GEMINI_MODEL = os.getenv('GEMINI_MODEL', 'gemini-2.5-flash')
GEMINI_ENABLED = os.getenv('GEMINI_ENABLED', 'true').lower() in ('1', 'true', 'yes')
ERA_PROMPT_PATH = os.getenv('ERA_PROMPT_PATH', os.path.join(BASE_DIR, 'prompts', 'era_analysis.txt'))

# 외부 API 호출 타임아웃 (초)
HTTP_TIMEOUT = int(os.getenv('HTTP_TIMEOUT', '15'))
