# dog_api/api/dogs/schemas.py
from marshmallow import Schema, fields, validate, EXCLUDE

from dog_api.utils.datetime_utils import DateTimeUtils


class CreateDogSchema(Schema):
    """POST /dogs request body. Unknown keys are dropped, age defaults to 0."""
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(required=True, validate=validate.Length(min=1))
    # Firestore integers are signed 64-bit
    age = fields.Int(strict=True, load_default=0, validate=validate.Range(min=-2**63, max=2**63 - 1))
    type = fields.Str(required=True, validate=validate.Length(min=1))


class DogSchema(Schema):
    """Dog JSON as returned by GET /dogs/<dog_id> and /dogs/find."""
    name = fields.Str()
    age = fields.Int()
    type = fields.Str()
    id = fields.Str()
    created_timestamp = fields.Method('get_created_timestamp')

    def get_created_timestamp(self, dog):
        return DateTimeUtils.to_iso_string(dog.created_timestamp)


class DogListSchema(Schema):
    dogs = fields.List(fields.Nested(DogSchema), required=True)


class CreateDogResponseSchema(Schema):
    dog_id = fields.Str(required=True)
