# uvbunny/core/config.py

import os


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes')


class Config:
    """Settings shared by every environment. Values come from the environment (.env)."""
    # Signs the API's access/refresh tokens.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    # Service account key; when unset the Admin SDK falls back to application default credentials.
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')
    FIREBASE_PROJECT_ID = os.getenv('FIREBASE_PROJECT_ID')

    # Seconds between keep-alive comments on the live bunny stream.
    STREAM_KEEPALIVE_SECONDS = int(os.getenv('STREAM_KEEPALIVE_SECONDS', 15))
    # Writes cachedHappiness onto bunnies when a config changes. Nothing in the API reads it.
    CACHE_HAPPINESS_ON_CONFIG_UPDATE = _env_flag('CACHE_HAPPINESS_ON_CONFIG_UPDATE')


class DevelopmentConfig(Config):
    DEBUG = True
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH', Config.FIREBASE_CREDENTIALS_PATH)


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = os.getenv('TEST_JWT_SECRET_KEY', 'uvbunny-testing-secret-key-not-for-production')
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')
    STREAM_KEEPALIVE_SECONDS = 1


class ProductionConfig(Config):
    DEBUG = False


# create_app() picks the class by FLASK_ENV.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
