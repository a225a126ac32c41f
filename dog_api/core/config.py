# dog_api/core/config.py

import logging
import os
from functools import lru_cache
from typing import Optional

import google.auth
from google.auth.exceptions import DefaultCredentialsError

# Used when no project is configured and none can be detected (local runs).
LOCAL_PROJECT_ID = 'dog-service-local'


def _optional_float(name: str):
    """Reads a float env var, treating an unset or blank value as None."""
    value = os.getenv(name, '').strip()
    return float(value) if value else None


def resolve_project_id(configured: Optional[str] = None) -> str:
    """
    Returns ``configured`` when set. Otherwise asks google.auth for the
    project of the ambient credentials, which on GCE / Cloud Run comes from
    the metadata server, and falls back to LOCAL_PROJECT_ID.
    """
    if configured:
        return configured
    return _detect_project_id()


@lru_cache(maxsize=None)
def _detect_project_id() -> str:
    try:
        _, project_id = google.auth.default()
    except DefaultCredentialsError as e:
        logging.info(f"No ambient Google credentials ({e}); using project '{LOCAL_PROJECT_ID}'")
        return LOCAL_PROJECT_ID
    if not project_id:
        logging.info(f"Ambient credentials carry no project; using project '{LOCAL_PROJECT_ID}'")
        return LOCAL_PROJECT_ID
    logging.info(f"Detected Google Cloud project '{project_id}'")
    return project_id


class Config:
    """Settings shared by every environment. Values come from the process env (or .env)."""
    # None means detect it, see resolve_project_id.
    GOOGLE_CLOUD_PROJECT = os.getenv('GOOGLE_CLOUD_PROJECT')
    # Service account key file; Application Default Credentials are used when unset.
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')
    FIRESTORE_EMULATOR_HOST = os.getenv('FIRESTORE_EMULATOR_HOST')
    DOGS_COLLECTION = os.getenv('DOGS_COLLECTION', 'dogs')

    PORT = int(os.getenv('PORT', 8080))
    HOST = os.getenv('HOST', '127.0.0.1')

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FORMAT = os.getenv('LOG_FORMAT', 'console')

    # none | console | otlp | gcp (Cloud Trace)
    TRACE_EXPORTER = os.getenv('TRACE_EXPORTER', 'none')
    OTEL_EXPORTER_OTLP_ENDPOINT = os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT', 'localhost:4317')

    # Deadline handed to every Firestore call made on behalf of a request.
    STORE_TIMEOUT_SECONDS = _optional_float('STORE_TIMEOUT_SECONDS')
    SHUTDOWN_TIMEOUT_SECONDS = float(os.getenv('SHUTDOWN_TIMEOUT_SECONDS', 9))


class DevelopmentConfig(Config):
    """Local development: colored console logs, debug level, loopback only."""
    DEBUG = True
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG')


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    GOOGLE_CLOUD_PROJECT = 'dummy'
    TRACE_EXPORTER = 'none'
    LOG_LEVEL = 'DEBUG'


class ProductionConfig(Config):
    """Deployed service: JSON logs for Cloud Logging, listen on every interface."""
    DEBUG = False
    HOST = os.getenv('HOST', '0.0.0.0')
    LOG_FORMAT = os.getenv('LOG_FORMAT', 'json')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG')
    TRACE_EXPORTER = os.getenv('TRACE_EXPORTER', 'gcp')


# Keyed by FLASK_ENV; see create_app in dog_api/__init__.py.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
