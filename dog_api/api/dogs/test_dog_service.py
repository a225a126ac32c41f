# dog_api/api/dogs/test_dog_service.py
"""
DogService tests against the in-memory Firestore double (see conftest.py).

Usage: python -m pytest dog_api/api/dogs/test_dog_service.py -v
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from unittest.mock import MagicMock

import pytest
from google.api_core import exceptions as gcp_exceptions

from dog_api.api.dogs.services import DogService
from dog_api.core.exceptions import DogNotFoundError, DogStoreError
from dog_api.models.dog import CreateDogRequest

OSCAR = CreateDogRequest(name="Oscar", age=1, type="Golden Doodle")


def test_create_dog_returns_auto_id(dog_service, fake_db):
    dog_id = dog_service.create_dog(OSCAR)

    assert len(dog_id) == 20
    stored = fake_db.collection('dogs').docs[dog_id]
    assert stored['id'] == dog_id
    assert stored['name'] == "Oscar"
    assert isinstance(stored['created_timestamp'], datetime)


def test_create_then_get_round_trip(dog_service):
    dog_id = dog_service.create_dog(OSCAR)

    dog = dog_service.get_dog_by_id(dog_id)

    assert (dog.name, dog.age, dog.type, dog.id) == ("Oscar", 1, "Golden Doodle", dog_id)
    assert dog.created_timestamp is not None
    assert dog.created_timestamp.tzinfo is not None


@pytest.mark.parametrize("age", [0, -3, 15])
def test_create_accepts_any_age(dog_service, age):
    dog_id = dog_service.create_dog(CreateDogRequest(name="Rex", age=age, type="Mutt"))
    assert dog_service.get_dog_by_id(dog_id).age == age


def test_get_unknown_id_raises_not_found(dog_service):
    dog_service.create_dog(OSCAR)

    with pytest.raises(DogNotFoundError) as excinfo:
        dog_service.get_dog_by_id("999")
    assert excinfo.value.dog_id == "999"


def test_find_by_type_matches_exactly(dog_service):
    dog_id = dog_service.create_dog(OSCAR)
    dog_service.create_dog(CreateDogRequest(name="Fifi", age=4, type="Poodle"))

    found = dog_service.find_dogs_by_type("Golden Doodle")

    assert [d.id for d in found] == [dog_id]
    assert found[0].name == "Oscar"
    assert dog_service.find_dogs_by_type("golden doodle") == []
    assert dog_service.find_dogs_by_type("Golden") == []


def test_find_by_type_without_matches_is_empty(dog_service):
    dog_service.create_dog(OSCAR)
    assert dog_service.find_dogs_by_type("Poodle") == []


def test_concurrent_creates_produce_distinct_dogs(dog_service):
    requests = [CreateDogRequest(name=f"Dog {i}", age=i, type="Beagle") for i in range(2)]

    with ThreadPoolExecutor(max_workers=2) as pool:
        ids = list(pool.map(dog_service.create_dog, requests))

    assert len(set(ids)) == 2
    assert sorted(dog_service.get_dog_by_id(i).name for i in ids) == ["Dog 0", "Dog 1"]


def test_timeout_is_forwarded_and_retries_disabled(dog_service, fake_db):
    dog_id = dog_service.create_dog(OSCAR, timeout=1.5)
    dog_service.get_dog_by_id(dog_id, timeout=2.5)
    dog_service.find_dogs_by_type("Golden Doodle", timeout=3.5)

    calls = fake_db.collection('dogs').calls
    assert [(op, kwargs) for op, _, kwargs in calls] == [
        ('create', {'retry': None, 'timeout': 1.5}),
        ('get', {'retry': None, 'timeout': 2.5}),
        ('stream', {'retry': None, 'timeout': 3.5}),
    ]


def test_custom_collection_name(fake_db, app_logger):
    service = DogService(fake_db, app_logger, collection_name='dogs_test')
    dog_id = service.create_dog(OSCAR)
    assert dog_id in fake_db.collection('dogs_test').docs
    assert fake_db.collection('dogs').docs == {}


# --- store failures ------------------------------------------------------------------

@pytest.fixture
def mock_db():
    return MagicMock()


@pytest.fixture
def failing_service(mock_db, app_logger):
    return DogService(mock_db, app_logger)


def test_get_store_failure_is_wrapped(failing_service, mock_db):
    cause = gcp_exceptions.ServiceUnavailable("backend down")
    mock_db.collection.return_value.document.return_value.get.side_effect = cause

    with pytest.raises(DogStoreError) as excinfo:
        failing_service.get_dog_by_id("abc")
    assert excinfo.value.__cause__ is cause
    assert "dogs/abc" in str(excinfo.value)


def test_get_grpc_not_found_is_not_found(failing_service, mock_db):
    mock_db.collection.return_value.document.return_value.get.side_effect = gcp_exceptions.NotFound("gone")

    with pytest.raises(DogNotFoundError):
        failing_service.get_dog_by_id("abc")


def test_get_malformed_document_is_store_error(failing_service, mock_db):
    snapshot = MagicMock(exists=True)
    snapshot.to_dict.return_value = {"name": "Oscar", "age": "one", "type": "Golden Doodle", "id": "abc"}
    mock_db.collection.return_value.document.return_value.get.return_value = snapshot

    with pytest.raises(DogStoreError):
        failing_service.get_dog_by_id("abc")


def test_find_store_failure_is_wrapped(failing_service, mock_db):
    mock_db.collection.return_value.where.return_value.stream.side_effect = \
        gcp_exceptions.DeadlineExceeded("too slow")

    with pytest.raises(DogStoreError) as excinfo:
        failing_service.find_dogs_by_type("Poodle")
    assert "Poodle" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, gcp_exceptions.DeadlineExceeded)


def test_create_store_failure_is_wrapped(failing_service, mock_db):
    doc_ref = mock_db.collection.return_value.document.return_value
    doc_ref.id = "generated0123456789a"
    doc_ref.create.side_effect = gcp_exceptions.PermissionDenied("no access")

    with pytest.raises(DogStoreError) as excinfo:
        failing_service.create_dog(OSCAR)
    assert "generated0123456789a" in str(excinfo.value)


def test_create_collision_is_store_error(failing_service, mock_db):
    doc_ref = mock_db.collection.return_value.document.return_value
    doc_ref.id = "taken"
    doc_ref.create.side_effect = gcp_exceptions.AlreadyExists("exists")

    with pytest.raises(DogStoreError):
        failing_service.create_dog(OSCAR)


def test_create_client_side_encoding_error_is_store_error(failing_service, mock_db):
    doc_ref = mock_db.collection.return_value.document.return_value
    doc_ref.id = "generated0123456789a"
    cause = ValueError("Value out of range: 1000000000000000000000000000000")
    doc_ref.create.side_effect = cause

    with pytest.raises(DogStoreError) as excinfo:
        failing_service.create_dog(CreateDogRequest(name="Oscar", age=10**30, type="Pug"))
    assert excinfo.value.__cause__ is cause
