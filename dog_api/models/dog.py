# dog_api/models/dog.py
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Dict, Any

from dog_api.utils.datetime_utils import DateTimeUtils


@dataclass
class Dog:
    """
    A document in the Firestore 'dogs' collection.

    ``id`` is the Firestore auto-generated document id, written into the
    document itself at creation. ``created_timestamp`` is stamped by the
    server (SERVER_TIMESTAMP) and is only known once the document is read back.
    """
    name: str
    age: int
    type: str
    id: str
    created_timestamp: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dog":
        """
        Builds a Dog from a Firestore document dict.
        Raises KeyError/TypeError/ValueError when the document does not have the dog shape.
        """
        created = data.get('created_timestamp')
        if isinstance(created, str):
            created = DateTimeUtils.parse_iso_datetime(created)
        elif created is not None:
            created = DateTimeUtils.from_firestore(created)
            if not isinstance(created, datetime):
                raise TypeError(f"created_timestamp is not a timestamp: {created!r}")

        age = data.get('age', 0)
        if isinstance(age, bool) or not isinstance(age, int):
            raise TypeError(f"age is not an integer: {age!r}")

        return cls(
            name=str(data['name']),
            age=age,
            type=str(data['type']),
            id=str(data['id']),
            created_timestamp=created,
        )


@dataclass
class CreateDogRequest:
    """Input of DogService.create_dog. The id is assigned by the store, never by the caller."""
    name: str
    age: int
    type: str

    def to_dog(self, dog_id: str) -> Dog:
        return Dog(name=self.name, age=self.age, type=self.type, id=dog_id)
