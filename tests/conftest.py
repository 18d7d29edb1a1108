import copy
import json
import uuid
from datetime import datetime
from types import SimpleNamespace

import pytest
import pytz
import requests
from firebase_admin import firestore
from google.api_core.exceptions import FailedPrecondition, NotFound, ServiceUnavailable

from vintagevision import create_app

USER_ID = 'google-user-1'
OTHER_USER_ID = 'google-user-2'

# ---------------------------------------------------------------------------
# 메모리 Firestore
# ---------------------------------------------------------------------------

def _resolve(value):
    if value is firestore.SERVER_TIMESTAMP:
        return datetime.now(pytz.timezone('UTC'))
    return copy.deepcopy(value)

class FakeSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None

class FakeDocument:
    def __init__(self, db, collection, doc_id):
        self._db = db
        self._collection = collection
        self.id = doc_id

    def _store(self):
        return self._db.data.setdefault(self._collection, {})

    def get(self, timeout=None):
        self._db.check_read(self._collection)
        return FakeSnapshot(self, copy.deepcopy(self._store().get(self.id)))

    def set(self, data, merge=False, timeout=None):
        self._db.check_write(self._collection)
        resolved = {key: _resolve(value) for key, value in data.items()}
        if merge and self.id in self._store():
            self._store()[self.id].update(resolved)
        else:
            self._store()[self.id] = resolved

    def update(self, data):
        self._db.check_write(self._collection)
        if self.id not in self._store():
            raise NotFound(f'No document to update: {self.id}')
        self._store()[self.id].update({key: _resolve(value) for key, value in data.items()})

    def delete(self):
        self._db.check_write(self._collection)
        self._store().pop(self.id, None)

class FakeQuery:
    def __init__(self, db, collection, filters=(), order=None, limit_to=None):
        self._db = db
        self._collection = collection
        self._filters = filters
        self._order = order
        self._limit = limit_to

    def where(self, filter):
        return FakeQuery(self._db, self._collection, self._filters + (filter,), self._order, self._limit)

    def order_by(self, field, direction='ASCENDING'):
        return FakeQuery(self._db, self._collection, self._filters, (field, direction), self._limit)

    def limit(self, count):
        return FakeQuery(self._db, self._collection, self._filters, self._order, count)

    @staticmethod
    def _matches(data, field_filter):
        value = data.get(field_filter.field_path)
        if field_filter.op_string == '==':
            return value == field_filter.value
        if field_filter.op_string == 'in':
            return value in field_filter.value
        raise AssertionError(f'unsupported operator {field_filter.op_string}')

    def stream(self):
        if self._order and self._filters and self._db.missing_index:
            raise FailedPrecondition('The query requires an index.')
        self._db.check_read(self._collection)

        store = self._db.data.get(self._collection, {})
        self._db.queries.append((self._collection, self._filters, self._order))
        rows = [(doc_id, data) for doc_id, data in store.items()
                if all(self._matches(data, f) for f in self._filters)]
        if self._order:
            field, direction = self._order
            rows.sort(key=lambda row: row[1].get(field), reverse=direction == 'DESCENDING')
        if self._limit is not None:
            rows = rows[:self._limit]
        for doc_id, data in rows:
            yield FakeSnapshot(FakeDocument(self._db, self._collection, doc_id), copy.deepcopy(data))

    def get(self):
        return list(self.stream())

class FakeCollection(FakeQuery):
    def __init__(self, db, name):
        super().__init__(db, name)

    def document(self, doc_id=None):
        return FakeDocument(self._db, self._collection, doc_id or uuid.uuid4().hex[:20])

class FakeBatch:
    def __init__(self):
        self._writes = []

    def set(self, reference, data):
        self._writes.append((reference, data))

    def commit(self):
        for reference, data in self._writes:
            reference.set(data)

class FakeFirestore:
    def __init__(self):
        self.data = {}
        self.queries = []
        self.missing_index = False
        self.failing_reads = set()
        self.failing_writes = set()

    def collection(self, name):
        return FakeCollection(self, name)

    def batch(self):
        return FakeBatch()

    def check_read(self, collection):
        if collection in self.failing_reads:
            raise ServiceUnavailable(f'{collection} unavailable')

    def check_write(self, collection):
        if collection in self.failing_writes:
            raise ServiceUnavailable(f'{collection} unavailable')

    def add(self, collection, doc_id, data):
        self.data.setdefault(collection, {})[doc_id] = data

    def get(self, collection, doc_id):
        return self.data.get(collection, {}).get(doc_id)

# ---------------------------------------------------------------------------
# HTTP 응답
# ---------------------------------------------------------------------------

def http_response(status=200, json_data=None, content=None, headers=None, url='https://example.com'):
    response = requests.Response()
    response.status_code = status
    response.url = url
    if json_data is not None:
        response._content = json.dumps(json_data).encode('utf-8')
        response.headers['Content-Type'] = 'application/json'
    else:
        response._content = content or b''
    response.headers.update(headers or {})
    return response

def vision_result(labels=(), objects=(), colors=(), text=None, error=''):
    return SimpleNamespace(
        label_annotations=[SimpleNamespace(description=d, score=s) for d, s in labels],
        localized_object_annotations=[SimpleNamespace(name=n, score=s) for n, s in objects],
        image_properties_annotation=SimpleNamespace(dominant_colors=SimpleNamespace(colors=[
            SimpleNamespace(color=SimpleNamespace(red=r, green=g, blue=b), score=s)
            for (r, g, b), s in colors
        ])),
        text_annotations=[SimpleNamespace(description=text)] if text else [],
        error=SimpleNamespace(message=error),
    )

def gemini_response(text):
    part = SimpleNamespace(text=text)
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])

def cookies_set(response):
    '''Set-Cookie 헤더를 {이름: 값} 으로'''
    cookies = {}
    for header in response.headers.getlist('Set-Cookie'):
        name, _, rest = header.partition('=')
        cookies[name] = rest.split(';', 1)[0]
    return cookies

# ---------------------------------------------------------------------------
# fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_db():
    return FakeFirestore()

@pytest.fixture
def app(fake_db, tmp_path):
    settings = type('TestSettings', (), {
        'ENV': 'testing',
        'DEBUG': False,
        'TESTING': True,
        'SECRET_KEY': 'test',
        'FRONTEND_URL': 'http://localhost:3000',
        'COOKIE_SECURE': False,
        'COOKIE_MAX_AGE': 7 * 24 * 60 * 60,
        'MAX_CONTENT_LENGTH': 10485760,
        'LOG_LEVEL': 'DEBUG',
        'LOG_DIR': str(tmp_path / 'logs'),
    })
    return create_app(settings, db=fake_db)

@pytest.fixture
def client(app):
    return app.test_client()

@pytest.fixture
def logged_in(client):
    client.set_cookie('google_user_id', USER_ID)
    client.set_cookie('google_access_token', 'access-1')
    client.set_cookie('google_refresh_token', 'refresh-1')
    return client
