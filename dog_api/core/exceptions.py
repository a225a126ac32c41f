# dog_api/core/exceptions.py


class DogServiceError(Exception):
    """Base class for every error raised by DogService."""


class DogNotFoundError(DogServiceError):
    """No dog document exists under the requested id."""

    def __init__(self, dog_id: str):
        super().__init__(f"dog not found: {dog_id}")
        self.dog_id = dog_id


class DogStoreError(DogServiceError):
    """A Firestore call failed, or returned a document that is not a valid dog.

    The underlying exception is always available as ``__cause__``.
    """
