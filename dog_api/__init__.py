# dog_api/__init__.py

# =====================================================================================
# 1. Module imports
# =====================================================================================
import os
import logging
from flask import Flask, jsonify
from marshmallow import ValidationError
from opentelemetry.instrumentation.flask import FlaskInstrumentor
from werkzeug.exceptions import HTTPException

# - settings
from dog_api.core.config import config_by_name, resolve_project_id
from dog_api.core.logging_config import AppLogger

# - blueprints
from dog_api.api.dogs.routes import dogs_bp

# - services
from dog_api.api.dogs.services import DogService
from dog_api.services.firestore_service import create_firestore_client


def create_app(config_name=None, db=None, app_logger=None):
    """
    Flask application factory.

    :param config_name: key of config_by_name; defaults to FLASK_ENV, then 'development'
    :param db: an existing Firestore client; one is built from the config when omitted
    :param app_logger: the AppLogger handle; one is built from the config when omitted
    """
    # =====================================================================================
    # 2. App and configuration
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.sort_keys = False
    app.config['GOOGLE_CLOUD_PROJECT'] = resolve_project_id(app.config['GOOGLE_CLOUD_PROJECT'])

    # =====================================================================================
    # 3. External services, then domain services (dependency injection via app.services)
    # =====================================================================================
    if db is None:
        db = create_firestore_client(app.config)
    if app_logger is None:
        app_logger = AppLogger.for_project(app.config['GOOGLE_CLOUD_PROJECT'])

    app.firestore = db
    app.services = {
        'dogs': DogService(db, app_logger, collection_name=app.config['DOGS_COLLECTION']),
    }

    # =====================================================================================
    # 4. Blueprints and request tracing
    # =====================================================================================
    app.register_blueprint(dogs_bp, url_prefix='/dogs')

    if app.config['TRACE_EXPORTER'] != 'none':
        FlaskInstrumentor().instrument_app(app)

    # =====================================================================================
    # 5. App-wide error handlers
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(err):
        response = {"error_code": err.name.upper().replace(' ', '_'), "message": err.description}
        return jsonify(response), err.code

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # anything the blueprints did not handle themselves
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "An unexpected server error occurred."}
        return jsonify(response), 500

    logging.info(f"Flask app created for '{config_name}' environment.")
    return app
