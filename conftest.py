# conftest.py
"""
Shared pytest fixtures.

FakeFirestore is an in-memory stand-in for the small part of the
google.cloud.firestore client the dog service touches: auto-id documents,
get/create on a document and equality queries on a collection. Every call
is recorded with the retry/timeout it received.
"""

import random
import string
import threading
from datetime import datetime, timezone

import pytest
from firebase_admin import firestore
from google.api_core import exceptions as gcp_exceptions

from dog_api import create_app
from dog_api.api.dogs.services import DogService
from dog_api.core.logging_config import AppLogger

AUTO_ID_CHARS = string.ascii_letters + string.digits


class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocumentReference:
    def __init__(self, collection, doc_id):
        self._collection = collection
        self.id = doc_id

    def get(self, retry=None, timeout=None):
        self._collection.record('get', self.id, retry=retry, timeout=timeout)
        return FakeSnapshot(self.id, self._collection.docs.get(self.id))

    def create(self, document_data, retry=None, timeout=None):
        self._collection.record('create', self.id, retry=retry, timeout=timeout)
        stamped = {
            key: datetime.now(timezone.utc) if value is firestore.SERVER_TIMESTAMP else value
            for key, value in document_data.items()
        }
        with self._collection.lock:
            if self.id in self._collection.docs:
                raise gcp_exceptions.AlreadyExists(f"Document already exists: {self.id}")
            self._collection.docs[self.id] = stamped


class FakeQuery:
    def __init__(self, collection, field_filter):
        self._collection = collection
        self._filter = field_filter

    def stream(self, retry=None, timeout=None):
        self._collection.record('stream', self._filter.value, retry=retry, timeout=timeout)
        assert self._filter.op_string == '=='
        with self._collection.lock:
            items = list(self._collection.docs.items())
        for doc_id, data in items:
            if self._filter.field_path in data and data[self._filter.field_path] == self._filter.value:
                yield FakeSnapshot(doc_id, data)


class FakeCollection:
    def __init__(self, name, lock):
        self.name = name
        self.lock = lock
        self.docs = {}
        self.calls = []

    def record(self, op, target, **kwargs):
        self.calls.append((op, target, kwargs))

    def document(self, document_id=None):
        if document_id is None:
            document_id = ''.join(random.choice(AUTO_ID_CHARS) for _ in range(20))
        return FakeDocumentReference(self, document_id)

    def where(self, filter=None):
        return FakeQuery(self, filter)


class FakeFirestore:
    def __init__(self):
        self._lock = threading.Lock()
        self._collections = {}

    def collection(self, name):
        with self._lock:
            if name not in self._collections:
                self._collections[name] = FakeCollection(name, self._lock)
            return self._collections[name]


@pytest.fixture
def fake_db():
    return FakeFirestore()


@pytest.fixture
def app_logger():
    return AppLogger.for_tests()


@pytest.fixture
def dog_service(fake_db, app_logger):
    return DogService(fake_db, app_logger)


@pytest.fixture
def app(fake_db, app_logger):
    return create_app('testing', db=fake_db, app_logger=app_logger)


@pytest.fixture
def client(app):
    return app.test_client()
