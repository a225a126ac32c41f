# dog_api/services/firestore_service.py
import logging
import os

import firebase_admin
from firebase_admin import credentials, firestore
from google.auth.credentials import AnonymousCredentials
from google.cloud import firestore as cloud_firestore


def create_firestore_client(config) -> firestore.Client:
    """
    Builds the Firestore client the whole process shares.

    Against the emulator (FIRESTORE_EMULATOR_HOST) the client is created with
    anonymous credentials, otherwise through firebase_admin using the service
    account file in FIREBASE_CREDENTIALS_PATH, or Application Default
    Credentials when that is unset.

    :param config: Flask config (or any mapping) holding the settings above
    :return: a thread-safe google.cloud.firestore.Client
    """
    project_id = config['GOOGLE_CLOUD_PROJECT']
    emulator_host = config.get('FIRESTORE_EMULATOR_HOST')

    if emulator_host:
        # the client library reads the emulator address from the environment
        os.environ['FIRESTORE_EMULATOR_HOST'] = emulator_host
        logging.info(f"Connecting to Firestore emulator at {emulator_host} (project: {project_id})")
        return cloud_firestore.Client(project=project_id, credentials=AnonymousCredentials())

    if not firebase_admin._apps:
        cred_path = config.get('FIREBASE_CREDENTIALS_PATH')
        if cred_path:
            if not os.path.exists(cred_path):
                raise FileNotFoundError(f"Firebase credentials file not found: {cred_path}")
            cred = credentials.Certificate(cred_path)
        else:
            cred = credentials.ApplicationDefault()
        firebase_admin.initialize_app(cred, {'projectId': project_id})

    logging.info(f"Connecting to Firestore (project: {project_id})")
    return firestore.client()


def close_firestore_client(client) -> None:
    """Releases the client's channels and tears down the default firebase app if one was created."""
    try:
        client.close()
    finally:
        if firebase_admin._apps:
            firebase_admin.delete_app(firebase_admin.get_app())
    logging.info("Firestore client closed")
