#
# <analysis.py>
#
# 사진 분석(Vision + Gemini)과 관련된 API 엔드포인트를 관리합니다.
#
# 주요 기능:
# - 이미 분석된 사진인지 확인
# - 사진 분석 후 결과 저장
# - 분석 결과 보기 / 목록 / 삭제
#

import logging
from flask import Blueprint, request, jsonify, current_app
from google.api_core.exceptions import GoogleAPICallError
from vintagevision.functions.pipeline import analyze_photo
from vintagevision.functions.result_store import find_result, get_owned_result, list_results
from vintagevision.functions.vision_features import VisionException
from vintagevision.utils.database import get_db
from vintagevision.utils.decorators import *
from vintagevision.utils.exceptions import *
from vintagevision.utils.tokens import GoogleSession

logger = logging.getLogger(__name__)

# 분석 블루프린트 작성
analysis_routes = Blueprint('analysis', __name__, url_prefix='/api/analysis')

DEFAULT_RESULTS_LIMIT = 20

# 이미 분석된 사진인지 확인
@analysis_routes.route('/check', methods=['GET'])
@error_handler()
@require_google_user()
def check_analysis(user_id):
    photo_id = request.args.get('photoId')
    doc_id = request.args.get('docId')
    if not photo_id and not doc_id:
        raise MissingParamException(['photoId', 'docId'], conjunction='or')

    try:
        found = find_result(get_db(), user_id, photo_id=photo_id, doc_id=doc_id)
    except GoogleAPICallError as e:
        # Datastore 모드 DB 에서는 새로 분석할 수 있게 없다고 응답
        if 'Datastore Mode' in str(e):
            logger.warning("datastore mode error, returning exists=false: %s", e)
            return jsonify({'exists': False}), 200
        raise

    if not found:
        return jsonify({'exists': False}), 200

    result_id, result = found
    return jsonify({
        'exists': True,
        'resultId': result_id,
        'result': result
    }), 200

# 사진 분석
@analysis_routes.route('/analyze', methods=['POST'])
@error_handler()
@require_google_user()
def analyze(user_id):
    body = validate_json_params('photoId', 'imageUrl', name_all=True)
    session = GoogleSession.from_request(require_token=False)

    try:
        result_id, result = analyze_photo(get_db(), session, body['photoId'],
                                          body['imageUrl'], body.get('baseUrl'))
    except (VisionException, GoogleAPICallError) as e:
        logger.exception("analysis error for photoId=%s", body['photoId'])
        return jsonify({
            'success': False,
            'error': 'Analysis failed',
            'message': str(e) if current_app.config['DEBUG'] else 'Something went wrong'
        }), 500

    return jsonify({
        'success': True,
        'resultId': result_id,
        'result': result
    }), 200

# 분석 결과 보기
@analysis_routes.route('/result/<result_id>', methods=['GET'])
@error_handler()
@require_google_user()
def get_result(result_id, user_id):
    _, data = get_owned_result(get_db(), user_id, result_id)
    return jsonify({'id': result_id, **data}), 200

# 분석 결과 목록 (최신순)
@analysis_routes.route('/results', methods=['GET'])
@error_handler()
@require_google_user()
def get_results(user_id):
    limit = request.args.get('limit', DEFAULT_RESULTS_LIMIT, type=int)
    try:
        items = list_results(get_db(), user_id, limit=limit)
    except GoogleAPICallError as e:
        logger.error("failed to fetch results for user %s: %s", user_id, e)
        raise UpstreamException('Failed to fetch results', status=500)
    return jsonify({'items': items}), 200

# 분석 결과 삭제
@analysis_routes.route('/result/<result_id>', methods=['DELETE'])
@error_handler()
@require_google_user()
def delete_result(result_id, user_id):
    doc_ref, _ = get_owned_result(get_db(), user_id, result_id,
                                  forbidden_msg='You do not have permission to delete this result')
    doc_ref.delete()
    logger.info("deleted result %s for user %s", result_id, user_id)

    return jsonify({
        'success': True,
        'message': 'Analysis result deleted successfully'
    }), 200
