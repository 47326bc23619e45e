"""
Configuration for EduConnect Platform
Values come from the environment, with a local .env file for development
"""

import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    ENVIRONMENT = os.getenv('ENVIRONMENT', 'development')
    TESTING = False
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # JSON string wins over the key file path
    FIREBASE_SERVICE_ACCOUNT_KEY = os.getenv('FIREBASE_SERVICE_ACCOUNT_KEY')
    FIREBASE_SERVICE_ACCOUNT_PATH = os.getenv('FIREBASE_SERVICE_ACCOUNT_PATH', 'serviceAccountKey.json')

    NOTIFICATION_SENDER_NAME = os.getenv('NOTIFICATION_SENDER_NAME', 'EduConnect')
    # 0 sends notifications inline in the request
    NOTIFICATION_WORKERS = int(os.getenv('NOTIFICATION_WORKERS', '2'))


class TestingConfig(Config):
    ENVIRONMENT = 'testing'
    TESTING = True
    NOTIFICATION_WORKERS = 0


class FunctionConfig(Config):
    # A function instance can be frozen between requests, so nothing runs after the response
    NOTIFICATION_WORKERS = 0
