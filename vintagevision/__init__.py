import logging
from config import settings
from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from vintagevision.utils.logger import configure_logging

logger = logging.getLogger(__name__)

def create_app(config_object=settings, db=None):
    '''Flask 앱 생성

    Params:
        config_object:
            Flask 설정 (기본: config.settings)
        db:
            Firestore 클라이언트, 없으면 Firebase 로 초기화
    '''
    # Flask 생성
    app = Flask(__name__)
    app.config.from_object(config_object)    # Flask 설정
    configure_logging(config_object)

    # 프론트엔드가 쿠키를 실어 보낼 수 있도록
    CORS(app, origins=[app.config['FRONTEND_URL']], supports_credentials=True)

    # Firestore 초기화
    if db is None:
        from vintagevision.utils.database import init_firestore
        db = init_firestore()
    app.extensions['firestore'] = db

    # 블루프린트 등록
    from vintagevision.routes.analysis import analysis_routes
    from vintagevision.routes.auth import auth_routes
    from vintagevision.routes.health import health_routes
    from vintagevision.routes.photos import photos_routes

    app.register_blueprint(analysis_routes)
    app.register_blueprint(auth_routes)
    app.register_blueprint(health_routes)
    app.register_blueprint(photos_routes)

    from vintagevision.utils.tokens import store_refreshed_token

    @app.after_request
    def after_request(response):
        response = store_refreshed_token(response)
        logger.info("%s %s %s", request.method, request.full_path.rstrip('?'), response.status_code)
        return response

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'error': 'Route not found'}), 404

    @app.errorhandler(Exception)
    def unhandled_error(e):
        if isinstance(e, HTTPException):
            return e
        logger.exception("unhandled error")
        return jsonify({
            'error': 'Internal Server Error',
            'message': str(e) if app.config['DEBUG'] else 'Something went wrong'
        }), 500

    return app
