import logging
from google.cloud import vision

logger = logging.getLogger(__name__)

# 옷/스타일 관련 키워드 사전
CLOTHING_VOCAB = [
    'dress', 'skirt', 'blouse', 'shirt', 'trousers', 'pants', 'jeans',
    'jacket', 'coat', 'hat', 'belt', 'polka dot', 'gingham', 'houndstooth',
    'plaid', 'floral', 'lace', 'ruffle', 'lapel', 'collar', 'v-neck',
    'a-line', 'fit and flare', 'tea dress', 'day dress', 'evening dress',
    'suit', 'blazer', 'tie', 'necktie', 'vest', 'waistcoat', 'overcoat',
    'tuxedo', 'formal wear', 'sleeve', 'pocket', 'button',
]

FEATURES = [
    (vision.Feature.Type.LABEL_DETECTION, 20),
    (vision.Feature.Type.OBJECT_LOCALIZATION, 10),
    (vision.Feature.Type.IMAGE_PROPERTIES, 1),
    (vision.Feature.Type.TEXT_DETECTION, 1),
]

MAX_COLORS = 6
OCR_EXCERPT_LENGTH = 200

class VisionException(Exception):
    pass

def _get_vision_client():
    return vision.ImageAnnotatorClient()

def _round(score):
    return round(float(score), 3)

def extract_features(result):
    '''Vision 응답에서 Gemini 에 넘길 특징만 추출'''
    labels = [f'{l.description}:{_round(l.score)}' for l in result.label_annotations]
    objects = [f'{o.name}:{_round(o.score)}' for o in result.localized_object_annotations]

    colors = []
    for c in list(result.image_properties_annotation.dominant_colors.colors)[:MAX_COLORS]:
        colors.append({
            'rgb': [round(c.color.red), round(c.color.green), round(c.color.blue)],
            'score': _round(c.score),
        })

    ocr_text = result.text_annotations[0].description if result.text_annotations else ''

    all_text = ' '.join(labels + objects).lower()
    clothing_keywords = [keyword for keyword in CLOTHING_VOCAB if keyword in all_text]

    return {
        'labels': labels,
        'objects': objects,
        'colors': colors,
        'ocr_excerpt': ocr_text[:OCR_EXCERPT_LENGTH],
        'clothing_keywords': clothing_keywords,
    }

def run_vision(image_bytes=None, image_url=None):
    '''라벨/객체/색상/텍스트 검출

    Params:
        image_bytes `bytes`:
            다운로드한 이미지 (있으면 우선 사용)
        image_url `str`:
            다운로드 실패시 Vision 이 직접 가져갈 URL
    '''
    if image_bytes:
        image = {'content': image_bytes}
    elif image_url:
        image = {'source': {'image_uri': image_url}}
    else:
        raise VisionException('image bytes or url is required')

    client = _get_vision_client()
    result = client.annotate_image({
        'image': image,
        'features': [{'type_': feature, 'max_results': n} for feature, n in FEATURES],
    })

    if result.error.message:
        raise VisionException(result.error.message)

    features = extract_features(result)
    logger.info("vision features: labels=%d objects=%d colors=%d clothing_keywords=%s",
                len(features['labels']), len(features['objects']),
                len(features['colors']), features['clothing_keywords'])

    if not features['labels'] and not features['objects']:
        logger.error("no labels or objects extracted, image may be invalid")

    return features
