import logging
import requests
from config import googleapi
from vintagevision.functions.era_analysis import run_gemini
from vintagevision.functions.photos_picker import fetch_image, is_google_hosted
from vintagevision.functions.result_store import build_result, save_result
from vintagevision.functions.vision_features import run_vision
from vintagevision.utils.exceptions import AppException
from vintagevision.utils.tokens import call_with_refresh

logger = logging.getLogger(__name__)

def download_image(url, session=None):
    '''구글 포토 이미지는 access token 으로 다운로드

    다른 URL 이거나 다운로드에 실패하면 None 을 반환한다.

    Returns:
        (bytes, content_type) 또는 None
    '''
    if not url or not is_google_hosted(url):
        return None

    try:
        if session is None:
            return fetch_image(url)
        return call_with_refresh(session, lambda token: fetch_image(url, token),
                                 retry_statuses=(401, 403))
    except (requests.RequestException, AppException) as e:
        logger.warning("failed to download image %s...: %s", url[:100], e)
        return None

def analyze_photo(db, session, photo_id, image_url, base_url=None):
    '''Vision -> Gemini 분석 후 결과 저장

    Returns:
        (result_id, result)
    '''
    logger.info("starting analysis for user %s, photoId=%s", session.user_id, photo_id)

    # 1. Vision
    downloaded = download_image(image_url, session)
    if downloaded:
        vision_features = run_vision(image_bytes=downloaded[0])
    else:
        vision_features = run_vision(image_url=image_url)

    if not vision_features['labels'] and not vision_features['objects']:
        logger.warning("vision returned no features, era will likely be undetermined")

    # 2. Gemini (baseUrl 우선)
    gemini_result = None
    if googleapi.GEMINI_ENABLED:
        gemini_url = base_url or image_url
        if gemini_url != image_url:
            downloaded = download_image(gemini_url, session)
        image_bytes, mime_type = downloaded if downloaded else (None, 'image/jpeg')
        gemini_result = run_gemini(vision_features, image_bytes, mime_type)
        logger.info("gemini era_primary: %s", gemini_result.get('era_primary'))
    else:
        logger.warning("gemini disabled, skipping")

    # 3. 저장
    result = build_result(session.user_id, photo_id, image_url, base_url, vision_features, gemini_result)
    result_id, saved = save_result(db, session.user_id, result)
    if not saved:
        logger.error("analysis for photoId=%s was not persisted", photo_id)
    return result_id, result
