# dog_api/api/dogs/services.py
from typing import List, Optional

from firebase_admin import firestore
from google.api_core import exceptions as gcp_exceptions
from google.cloud.firestore_v1.base_query import FieldFilter
from opentelemetry import trace

from dog_api.core.exceptions import DogNotFoundError, DogStoreError
from dog_api.core.logging_config import AppLogger
from dog_api.models.dog import Dog, CreateDogRequest

tracer = trace.get_tracer(__name__)

DEFAULT_COLLECTION = 'dogs'


class DogService:
    """
    Create/read/find operations over the Firestore 'dogs' collection.

    Every method makes exactly one store round trip. ``timeout`` is the
    caller's deadline in seconds and is handed to Firestore unchanged; the
    client library's automatic retries are switched off so a failure reaches
    the caller on the first attempt.
    """

    def __init__(self, db: firestore.Client, app_logger: AppLogger, collection_name: str = DEFAULT_COLLECTION):
        self.db = db
        self.app_logger = app_logger
        self.collection_name = collection_name
        self.dogs_ref = self.db.collection(collection_name)

    def get_dog_by_id(self, dog_id: str, timeout: Optional[float] = None) -> Dog:
        """Returns the dog stored under ``dog_id``. Raises DogNotFoundError when there is none."""
        with tracer.start_as_current_span("DogService.get_dog_by_id"):
            logger = self.app_logger.with_trace_context()
            dog_path = f"{self.collection_name}/{dog_id}"
            logger.debug(f"searching firestore: path={dog_path}")

            try:
                snapshot = self.dogs_ref.document(dog_id).get(retry=None, timeout=timeout)
            except gcp_exceptions.NotFound:
                raise DogNotFoundError(dog_id)
            except gcp_exceptions.GoogleAPIError as e:
                raise DogStoreError(f"get {dog_path} failed: {e}") from e

            if not snapshot.exists:
                raise DogNotFoundError(dog_id)

            try:
                return Dog.from_dict(snapshot.to_dict())
            except (KeyError, TypeError, ValueError) as e:
                raise DogStoreError(f"document {dog_path} is not a valid dog: {e}") from e

    def find_dogs_by_type(self, dog_type: str, timeout: Optional[float] = None) -> List[Dog]:
        """All dogs whose type equals ``dog_type`` exactly. No match is an empty list."""
        with tracer.start_as_current_span("DogService.find_dogs_by_type"):
            logger = self.app_logger.with_trace_context()
            logger.debug(f"searching firestore: collection={self.collection_name} type={dog_type!r}")

            query = self.dogs_ref.where(filter=FieldFilter('type', '==', dog_type))
            dogs = []
            try:
                # stream() is lazy; the round trip happens while iterating
                for snapshot in query.stream(retry=None, timeout=timeout):
                    dogs.append(Dog.from_dict(snapshot.to_dict()))
            except gcp_exceptions.GoogleAPIError as e:
                raise DogStoreError(f"query {self.collection_name} where type == {dog_type!r} failed: {e}") from e
            except (KeyError, TypeError, ValueError) as e:
                raise DogStoreError(f"query {self.collection_name} where type == {dog_type!r} "
                                    f"returned an invalid dog: {e}") from e
            return dogs

    def create_dog(self, request: CreateDogRequest, timeout: Optional[float] = None) -> str:
        """
        Stores a new dog and returns its generated id.

        The id comes from Firestore's auto-id generator and the write uses
        create(), which refuses to overwrite an existing document.
        created_timestamp is filled in by the server.
        """
        with tracer.start_as_current_span("DogService.create_dog"):
            logger = self.app_logger.with_trace_context()

            doc_ref = self.dogs_ref.document()
            logger.debug(f"creating firestore doc: collection={self.collection_name} id={doc_ref.id}")

            dog = request.to_dog(doc_ref.id)
            dog_data = {
                'name': dog.name,
                'age': dog.age,
                'type': dog.type,
                'id': dog.id,
                'created_timestamp': firestore.SERVER_TIMESTAMP,
            }
            try:
                doc_ref.create(dog_data, retry=None, timeout=timeout)
            except gcp_exceptions.GoogleAPIError as e:
                raise DogStoreError(f"create {self.collection_name}/{doc_ref.id} failed: {e}") from e
            except (ValueError, TypeError) as e:
                # raised by the client while encoding the document, before any RPC
                raise DogStoreError(f"create {self.collection_name}/{doc_ref.id} rejected: {e}") from e
            return doc_ref.id
