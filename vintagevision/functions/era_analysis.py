import copy
import json
import logging
import re
import vertexai
from vertexai.generative_models import GenerativeModel, Part
from config import googleapi

logger = logging.getLogger(__name__)

FENCE_PATTERN = re.compile(r'^```(?:json)?\s*|\s*```$', re.IGNORECASE)
JSON_OBJECT_PATTERN = re.compile(r'\{.*\}', re.DOTALL)

# 응답에 빠진 필드 기본값
DEFAULT_FIELDS = {
    'era_primary': 'Undetermined',
    'style_tags': [],
    'top3_candidates': [],
    'rationale': 'No rationale provided.',
    'search_queries': {'en': []},
    'shopping_tips': [],
}

class GeminiParseError(ValueError):
    pass

def read_prompt(path):
    with open(path, 'r', encoding='utf-8') as file:
        return file.read()

def parse_failure_result():
    '''JSON 파싱 실패시 저장할 결과'''
    return {
        'era_primary': 'Unknown',
        'style_tags': [],
        'top3_candidates': [],
        'rationale': 'Analysis incomplete due to parsing error.',
        'search_queries': {'en': []},
        'shopping_tips': [],
    }

def _get_model():
    vertexai.init(project=googleapi.PROJECT_ID or None, location=googleapi.VERTEX_LOCATION)
    return GenerativeModel(googleapi.GEMINI_MODEL)

def parse_gemini_reply(text):
    '''모델 응답 문자열에서 JSON 결과 추출

    마크다운 코드블록을 벗기고 가장 바깥의 {...} 만 파싱한다.
    '''
    text = FENCE_PATTERN.sub('', text.strip()).strip()
    match = JSON_OBJECT_PATTERN.search(text)
    if match:
        text = match.group(0)

    try:
        parsed = json.loads(text)
    except ValueError as e:
        raise GeminiParseError(str(e)) from e
    if not isinstance(parsed, dict):
        raise GeminiParseError('reply is not a JSON object')

    # search_queries 는 en 만 허용
    if isinstance(parsed.get('search_queries'), dict):
        parsed['search_queries'].pop('zh', None)

    for field, default in DEFAULT_FIELDS.items():
        if not parsed.get(field):
            parsed[field] = copy.deepcopy(default)
    return parsed

def run_gemini(features, image_bytes=None, mime_type='image/jpeg'):
    '''Vision 특징 (+ 원본 이미지) 로 시대/스타일 추정'''
    prompt = read_prompt(googleapi.ERA_PROMPT_PATH)
    contents = [
        prompt,
        '### Vision features (JSON):\n' + json.dumps(features, indent=2, ensure_ascii=False),
    ]
    if image_bytes:
        contents.append(Part.from_data(data=image_bytes, mime_type=mime_type))
    else:
        logger.warning("no image for gemini, relying on vision features only")

    model = _get_model()
    logger.info("using gemini model: %s", googleapi.GEMINI_MODEL)
    response = model.generate_content(contents, stream=False)
    if not response.candidates or not response.candidates[0].content.parts:
        # 안전 필터 등으로 응답이 비어 있음
        logger.error("gemini returned no candidates")
        return parse_failure_result()
    text = response.candidates[0].content.parts[0].text
    logger.info("raw gemini response (first 500 chars): %s", text[:500])

    try:
        return parse_gemini_reply(text)
    except GeminiParseError as e:
        logger.error("gemini JSON parse failed: %s", e)
        return parse_failure_result()
