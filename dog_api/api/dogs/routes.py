# dog_api/api/dogs/routes.py
from flask import Blueprint, request, jsonify, current_app
from marshmallow import ValidationError

from dog_api.core.exceptions import DogNotFoundError
from dog_api.models.dog import CreateDogRequest
from .schemas import CreateDogSchema, CreateDogResponseSchema, DogSchema, DogListSchema

dogs_bp = Blueprint('dogs_bp', __name__)


def _error(error_code: str, message: str, status: int):
    return jsonify({"error_code": error_code, "message": message}), status


@dogs_bp.route('', methods=['POST'])
def create_dog():
    """Registers a new dog. Body: {"name", "age", "type"}; name and type must be non-empty."""
    dog_service = current_app.services['dogs']
    logger = dog_service.app_logger.with_trace_context()

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return _error("INVALID_BODY", "Request body must be a JSON object.", 400)
    try:
        data = CreateDogSchema().load(payload)
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    logger.info(f"incoming dog request: name={data['name']!r} type={data['type']!r} age={data['age']}")
    try:
        dog_id = dog_service.create_dog(
            CreateDogRequest(name=data['name'], age=data['age'], type=data['type']),
            timeout=current_app.config.get('STORE_TIMEOUT_SECONDS'),
        )
    except Exception as e:
        logger.error(f"Create dog API error: {e}", exc_info=True)
        return _error("CREATE_FAILED", "Failed to create the dog.", 500)

    logger.info(f"created dog: {dog_id}")
    return jsonify(CreateDogResponseSchema().dump({"dog_id": dog_id})), 200


@dogs_bp.route('/find', methods=['GET'])
def find_dogs_by_type():
    """
    Lists dogs of one type.

    Query Parameters:
        - type (str, required): exact, case-sensitive type to match
    """
    dog_service = current_app.services['dogs']
    logger = dog_service.app_logger.with_trace_context()

    dog_type = request.args.get('type', '')
    logger.info(f"searching for dog type {dog_type!r}")
    if not dog_type:
        return _error("MISSING_PARAMETER", "Query parameter 'type' is required.", 404)

    try:
        dogs = dog_service.find_dogs_by_type(dog_type, timeout=current_app.config.get('STORE_TIMEOUT_SECONDS'))
    except Exception as e:
        logger.error(f"Find dogs API error (type: {dog_type!r}): {e}", exc_info=True)
        return _error("FETCH_FAILED", "Failed to search dogs.", 500)

    logger.info(f"found {len(dogs)} dogs for {dog_type!r}")
    return jsonify(DogListSchema().dump({"dogs": dogs})), 200


@dogs_bp.route('/<string:dog_id>', methods=['GET'])
def get_dog(dog_id: str):
    """Fetches a single dog by its id."""
    dog_service = current_app.services['dogs']
    logger = dog_service.app_logger.with_trace_context()

    logger.info(f"searching for dog {dog_id}")
    try:
        dog = dog_service.get_dog_by_id(dog_id, timeout=current_app.config.get('STORE_TIMEOUT_SECONDS'))
    except DogNotFoundError:
        return _error("DOG_NOT_FOUND", f"No dog with id {dog_id}.", 404)
    except Exception as e:
        logger.error(f"Get dog API error (dog_id: {dog_id}): {e}", exc_info=True)
        return _error("FETCH_FAILED", "Failed to fetch the dog.", 500)

    logger.info(f"search found dog: {dog.id}")
    return jsonify(DogSchema().dump(dog)), 200
