"""
Firebase Admin SDK initialisation for EduConnect Platform
"""

import json
import logging
import os

from firebase_admin import initialize_app, get_app, credentials, firestore

logger = logging.getLogger(__name__)


def initialize_firebase(config):
    """
    Initialize the default Firebase app once and return it
    """
    try:
        return get_app()
    except ValueError:
        pass

    if config.FIREBASE_SERVICE_ACCOUNT_KEY:
        cred = credentials.Certificate(json.loads(config.FIREBASE_SERVICE_ACCOUNT_KEY))
        logger.info("Initializing Firebase from FIREBASE_SERVICE_ACCOUNT_KEY")
        return initialize_app(cred)

    if os.path.exists(config.FIREBASE_SERVICE_ACCOUNT_PATH):
        cred = credentials.Certificate(config.FIREBASE_SERVICE_ACCOUNT_PATH)
        logger.info(f"Initializing Firebase from {config.FIREBASE_SERVICE_ACCOUNT_PATH}")
        return initialize_app(cred)

    # Default credentials in Cloud Functions
    logger.info("Initializing Firebase with application default credentials")
    return initialize_app()


def get_db(config):
    """Get Firestore client, initializing Firebase if needed"""
    initialize_firebase(config)
    return firestore.client()
