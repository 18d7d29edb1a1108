#
# <photo_store.py>
#
# Picker 로 고른 사진 메타데이터를 userPhotos 컬렉션에 보관합니다.
#
# 주요 기능:
# - 이미 저장된 사진은 건너뛰는 저장 (userId + photoId 기준)
# - 아직 분석하지 않은 사진 목록
# - 사진 삭제 (소유자 확인)
#

import logging
from datetime import datetime
import pytz
from firebase_admin import firestore
from google.api_core.exceptions import GoogleAPICallError
from google.cloud.firestore_v1.base_query import FieldFilter
from vintagevision.utils.exceptions import ForbiddenException, NotFoundException

logger = logging.getLogger(__name__)

PHOTOS_COLLECTION = 'userPhotos'
RESULTS_COLLECTION = 'results'

# Firestore 'in' 쿼리 한 번에 넣을 값 개수
IN_QUERY_CHUNK = 10
PENDING_LIMIT = 50
ANALYZED_SCAN_LIMIT = 200

# Firestore 는 None 필드를 저장하지 않도록 함
OPTIONAL_FIELDS = ('mimeType', 'width', 'height', 'creationTime', 'type')

def find_existing_photo_ids(db, user_id, photo_ids):
    existing = set()
    photos_ref = db.collection(PHOTOS_COLLECTION)
    for i in range(0, len(photo_ids), IN_QUERY_CHUNK):
        chunk = photo_ids[i:i + IN_QUERY_CHUNK]
        query = (photos_ref
                 .where(filter=FieldFilter('userId', '==', user_id))
                 .where(filter=FieldFilter('photoId', 'in', chunk)))
        for doc in query.stream():
            photo_id = doc.to_dict().get('photoId')
            if photo_id:
                existing.add(photo_id)
    return existing

def save_picked_photos(db, user_id, session_id, photos):
    '''새로 고른 사진만 batch 로 저장

    Returns:
        저장한 사진 개수
    '''
    photo_ids = [photo['id'] for photo in photos if photo.get('id')]
    existing = find_existing_photo_ids(db, user_id, photo_ids) if photo_ids else set()
    logger.info("found %d existing photos out of %d", len(existing), len(photos))

    # photoId 가 없으면 새 사진으로 보고 저장
    to_save = [photo for photo in photos if not photo.get('id') or photo['id'] not in existing]
    if not to_save:
        logger.info("all photos already exist, nothing to save")
        return 0

    now = datetime.now(pytz.timezone('UTC'))
    photos_ref = db.collection(PHOTOS_COLLECTION)
    batch = db.batch()
    for index, photo in enumerate(to_save):
        photo_data = {
            'userId': user_id,
            'sessionId': session_id,
            'source': 'google_photos_picker',
            'createdAt': now,
            'status': 'pending',
            'photoId': photo.get('id'),
            'baseUrl': photo.get('baseUrl'),
            'filename': photo.get('filename') or f'photo_{index + 1}',
        }
        for field in OPTIONAL_FIELDS:
            if photo.get(field) is not None:
                photo_data[field] = photo[field]
        batch.set(photos_ref.document(), photo_data)

    batch.commit()
    logger.info("saved %d new photos for user %s, session %s (%d already existed)",
                len(to_save), user_id, session_id, len(photos) - len(to_save))
    return len(to_save)

def _pending_docs(db, user_id):
    query = (db.collection(PHOTOS_COLLECTION)
             .where(filter=FieldFilter('userId', '==', user_id))
             .where(filter=FieldFilter('status', '==', 'pending')))
    try:
        return list(query.order_by('createdAt', direction=firestore.Query.DESCENDING)
                    .limit(PENDING_LIMIT).stream())
    except GoogleAPICallError as e:
        # 복합 인덱스가 없으면 정렬 없이 다시 조회
        logger.warning("pending photos index error, retrying without order_by: %s", e)
        return list(query.limit(PENDING_LIMIT).stream())

def analyzed_photo_ids(db, user_id):
    '''results 컬렉션과 analyzed 상태 사진에서 이미 분석된 id 모음'''
    analyzed = set()
    try:
        results = (db.collection(RESULTS_COLLECTION)
                   .where(filter=FieldFilter('userId', '==', user_id))
                   .limit(ANALYZED_SCAN_LIMIT).stream())
        for doc in results:
            data = doc.to_dict()
            for key in ('photoId', 'docId'):
                if data.get(key):
                    analyzed.add(data[key])
    except GoogleAPICallError as e:
        logger.warning("failed to query results collection: %s", e)

    try:
        photos = (db.collection(PHOTOS_COLLECTION)
                  .where(filter=FieldFilter('userId', '==', user_id))
                  .where(filter=FieldFilter('status', '==', 'analyzed'))
                  .limit(ANALYZED_SCAN_LIMIT).stream())
        for doc in photos:
            analyzed.add(doc.id)
            photo_id = doc.to_dict().get('photoId')
            if photo_id:
                analyzed.add(photo_id)
    except GoogleAPICallError as e:
        logger.warning("failed to query analyzed photos: %s", e)

    return analyzed

def list_pending_photos(db, user_id):
    items = []
    for doc in _pending_docs(db, user_id):
        data = doc.to_dict()
        items.append({
            'id': doc.id,
            'photoId': data.get('photoId'),
            'baseUrl': data.get('baseUrl'),
            'filename': data.get('filename'),
            'mimeType': data.get('mimeType'),
            'width': data.get('width'),
            'height': data.get('height'),
            'creationTime': data.get('creationTime'),
            'createdAt': data.get('createdAt'),
            'status': data.get('status'),
        })

    analyzed = analyzed_photo_ids(db, user_id)
    pending = [item for item in items
               if item['id'] not in analyzed and not (item['photoId'] and item['photoId'] in analyzed)]
    logger.info("found %d photos, %d pending (%d already analyzed) for user %s",
                len(items), len(pending), len(items) - len(pending), user_id)
    return pending

def delete_photo(db, user_id, doc_id):
    doc_ref = db.collection(PHOTOS_COLLECTION).document(doc_id)
    snapshot = doc_ref.get()
    if not snapshot.exists:
        raise NotFoundException('Photo not found')

    owner = snapshot.to_dict().get('userId')
    if owner != user_id:
        logger.warning("user %s attempted to delete photo %s belonging to %s", user_id, doc_id, owner)
        raise ForbiddenException('You do not have permission to delete this photo')

    doc_ref.delete()
    logger.info("deleted photo %s for user %s", doc_id, user_id)
