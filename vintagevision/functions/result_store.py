#
# <result_store.py>
#
# 분석 결과 저장/조회를 담당합니다.
#
# Firestore 데이터베이스 모드나 인덱스 상태에 따라 쿼리/쓰기가 실패할 수 있어서
# 여러 방법을 순서대로 시도합니다.
#

import logging
import random
import string
import time
from datetime import datetime
import pytz
from firebase_admin import firestore
from google.api_core.exceptions import GoogleAPICallError
from google.cloud.firestore_v1.base_query import FieldFilter
from vintagevision.functions.photo_store import PHOTOS_COLLECTION, RESULTS_COLLECTION
from vintagevision.utils.exceptions import ForbiddenException, NotFoundException

logger = logging.getLogger(__name__)

# Firestore 자동 생성 id 는 20자, 구글 포토 id 는 훨씬 김
DOC_ID_MAX_LENGTH = 30
RESULT_SCAN_LIMIT = 200

def looks_like_doc_id(value):
    return bool(value) and len(value) < DOC_ID_MAX_LENGTH

def _epoch_millis():
    return int(time.time() * 1000)

def new_result_id(user_id):
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=7))
    return f'{user_id}_{_epoch_millis()}_{suffix}'

def build_result(user_id, photo_id, image_url, base_url, vision_features, gemini_result):
    result = {
        'userId': user_id,
        'photoId': photo_id,
        'imageUrl': base_url or image_url,
        'baseUrl': base_url or image_url,
        'visionFeatures': vision_features,
        'geminiResult': gemini_result,
        'analyzedAt': datetime.now(pytz.timezone('UTC')),
        'status': 'completed',
    }
    if looks_like_doc_id(photo_id):
        result['docId'] = photo_id
    return result

def _owned_photo(db, user_id, doc_id):
    doc_ref = db.collection(PHOTOS_COLLECTION).document(doc_id)
    snapshot = doc_ref.get()
    if not snapshot.exists:
        return doc_ref, None
    data = snapshot.to_dict()
    if data.get('userId') != user_id:
        return doc_ref, None
    return doc_ref, data

def save_result(db, user_id, result):
    '''분석 결과 저장

    1. results 컬렉션에 새 문서
    2. 실패하면 userPhotos 문서에 analysisResult 로 저장
    3. 그것도 실패하면 userPhotos 상태만 analyzed 로 변경

    Returns:
        (result_id, saved)
    '''
    result_id = new_result_id(user_id)
    try:
        db.collection(RESULTS_COLLECTION).document(result_id).set(result)
        logger.info("result saved to results collection: %s for user %s", result_id, user_id)
        return result_id, True
    except GoogleAPICallError as e:
        logger.warning("failed to save to results collection: %s", e)

    photo_id = result.get('photoId')
    if looks_like_doc_id(photo_id):
        try:
            doc_ref, photo = _owned_photo(db, user_id, photo_id)
            if photo is not None:
                if not result.get('baseUrl') and photo.get('baseUrl'):
                    result['baseUrl'] = photo['baseUrl']
                    result['imageUrl'] = photo['baseUrl']
                doc_ref.update({
                    'status': 'analyzed',
                    'analyzedAt': result['analyzedAt'],
                    'analysisResult': result,
                })
                logger.info("result saved to userPhotos document %s for user %s", photo_id, user_id)
                return photo_id, True
        except GoogleAPICallError as e:
            logger.warning("failed to save to userPhotos: %s", e)

        # 결과는 못 남겨도 pending 목록에 다시 나오지 않게
        try:
            doc_ref, photo = _owned_photo(db, user_id, photo_id)
            if photo is not None:
                doc_ref.update({
                    'status': 'analyzed',
                    'analyzedAt': result['analyzedAt'],
                })
                logger.info("marked userPhotos %s as analyzed", photo_id)
        except GoogleAPICallError as e:
            logger.warning("failed to update userPhotos status: %s", e)

    logger.error("all save methods failed, returning result anyway")
    return f'temp_{_epoch_millis()}', False

def _query_results_by_photo_id(db, user_id, query_id):
    query = (db.collection(RESULTS_COLLECTION)
             .where(filter=FieldFilter('userId', '==', user_id))
             .where(filter=FieldFilter('photoId', '==', query_id))
             .limit(1))
    docs = list(query.stream())
    if docs:
        return docs[0].id, docs[0].to_dict()
    return None

def _result_from_user_photo(db, user_id, query_id):
    _, photo = _owned_photo(db, user_id, query_id)
    if not photo or not photo.get('analysisResult'):
        return None
    result = dict(photo['analysisResult'])
    if not result.get('baseUrl') and photo.get('baseUrl'):
        result['baseUrl'] = photo['baseUrl']
        result['imageUrl'] = photo['baseUrl']
    return query_id, result

def _scan_results(db, user_id, query_id):
    docs = (db.collection(RESULTS_COLLECTION)
            .where(filter=FieldFilter('userId', '==', user_id))
            .limit(RESULT_SCAN_LIMIT).stream())
    for doc in docs:
        data = doc.to_dict()
        if data.get('photoId') == query_id or data.get('docId') == query_id:
            return doc.id, data
    return None

def find_result(db, user_id, photo_id=None, doc_id=None):
    '''사진의 기존 분석 결과 찾기

    docId 를 먼저, 그 다음 photoId 로 찾는다.

    Returns:
        (result_id, result) 또는 None
    '''
    query_ids = []
    if doc_id:
        query_ids.append(doc_id)
    if photo_id and photo_id != doc_id:
        query_ids.append(photo_id)

    for query_id in query_ids:
        strategies = [_query_results_by_photo_id]
        if looks_like_doc_id(query_id):
            strategies.append(_result_from_user_photo)
        strategies.append(_scan_results)

        for strategy in strategies:
            try:
                found = strategy(db, user_id, query_id)
            except GoogleAPICallError as e:
                logger.warning("%s failed for %s: %s", strategy.__name__, query_id, e)
                continue
            if found:
                logger.info("result found by %s for %s: %s", strategy.__name__, query_id, found[0])
                return found

    logger.info("no result found for photoId=%s, docId=%s", photo_id, doc_id)
    return None

def get_owned_result(db, user_id, result_id, forbidden_msg='Access denied'):
    doc_ref = db.collection(RESULTS_COLLECTION).document(result_id)
    snapshot = doc_ref.get()
    if not snapshot.exists:
        raise NotFoundException('Result not found')
    data = snapshot.to_dict()
    if data.get('userId') != user_id:
        logger.warning("user %s attempted to access result %s belonging to %s",
                       user_id, result_id, data.get('userId'))
        raise ForbiddenException(forbidden_msg)
    return doc_ref, data

def _sort_key(data):
    analyzed_at = data.get('analyzedAt')
    return analyzed_at.timestamp() if isinstance(analyzed_at, datetime) else 0

def list_results(db, user_id, limit=20):
    query = db.collection(RESULTS_COLLECTION).where(filter=FieldFilter('userId', '==', user_id))
    try:
        docs = list(query.order_by('analyzedAt', direction=firestore.Query.DESCENDING)
                    .limit(limit).stream())
    except GoogleAPICallError as e:
        # 인덱스가 없으면 메모리에서 정렬
        logger.warning("results order_by failed, sorting in memory: %s", e)
        docs = list(query.limit(limit).stream())
        docs.sort(key=lambda doc: _sort_key(doc.to_dict()), reverse=True)

    items = []
    for doc in docs[:limit]:
        data = doc.to_dict()
        items.append({
            'id': doc.id,
            'photoId': data.get('photoId'),
            'imageUrl': data.get('imageUrl'),
            'baseUrl': data.get('baseUrl'),
            'analyzedAt': data.get('analyzedAt'),
            'geminiResult': data.get('geminiResult'),
        })
    return items
