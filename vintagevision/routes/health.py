from datetime import datetime
from flask import Blueprint, jsonify
import pytz

# 헬스체크 블루프린트 작성
health_routes = Blueprint('health', __name__)

@health_routes.route('/api/health', methods=['GET'])
def health():
    return jsonify({
        'status': 'OK',
        'timestamp': datetime.now(pytz.timezone('UTC')).isoformat(),
    }), 200
