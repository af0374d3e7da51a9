"""
Configuration for the volunteer scheduler.

Values come from the environment or a .env file via python-decouple.
FLASK_ENV picks the class; only production insists on real secrets.
"""
import secrets
from decouple import config
from typing import Optional


class Config:
    SECRET_KEY = config('SECRET_KEY', default=secrets.token_hex(32))
    SQLALCHEMY_DATABASE_URI = config('DATABASE_URL', default='sqlite:///instance/volunteers.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = config('LOG_LEVEL', default='INFO')
    LOG_FILE = config('LOG_FILE', default='logs/volunteer_scheduler.log')

    RATELIMIT_ENABLED = config('RATELIMIT_ENABLED', default=True, cast=bool)
    RATELIMIT_DEFAULT = config('RATELIMIT_DEFAULT', default='300 per hour')
    # Point at Redis when running more than one worker
    RATELIMIT_STORAGE_URI = config('RATELIMIT_STORAGE_URI', default='memory://')
    RATELIMIT_STRATEGY = config('RATELIMIT_STRATEGY', default='fixed-window')

    # Occurrence key is (start, location) when True, otherwise start only
    CONFLICT_MATCH_LOCATION = config('CONFLICT_MATCH_LOCATION', default=False, cast=bool)
    # Approving a swap runs the consistency guard for the replacement
    SWAP_APPROVAL_CHECKS_CONFLICTS = config('SWAP_APPROVAL_CHECKS_CONFLICTS', default=False, cast=bool)
    UPCOMING_SERVICES_LIMIT = config('UPCOMING_SERVICES_LIMIT', default=5, cast=int)

    @classmethod
    def validate(cls) -> None:
        """Raise ValueError when required settings are missing"""


class DevelopmentConfig(Config):
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False
    LOG_LEVEL = 'WARNING'
    LOG_FILE = ''
    CONFLICT_MATCH_LOCATION = False
    SWAP_APPROVAL_CHECKS_CONFLICTS = False


class ProductionConfig(Config):
    DEBUG = False
    TESTING = False
    LOG_LEVEL = config('LOG_LEVEL', default='WARNING')

    # The SPA reads the CSRF token from a cookie and echoes it in X-CSRFToken
    SESSION_COOKIE_SECURE = config('SESSION_COOKIE_SECURE', default=True, cast=bool)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = config('SESSION_COOKIE_SAMESITE', default='Lax')
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = config('WTF_CSRF_TIME_LIMIT', default=3600, cast=int)

    # Pool settings apply to server databases; SQLite ignores them
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': config('DB_POOL_RECYCLE', default=3600, cast=int),
    }
    if not Config.SQLALCHEMY_DATABASE_URI.startswith('sqlite'):
        SQLALCHEMY_ENGINE_OPTIONS.update({
            'pool_size': config('DB_POOL_SIZE', default=10, cast=int),
            'max_overflow': config('DB_MAX_OVERFLOW', default=20, cast=int),
        })

    @classmethod
    def validate(cls) -> None:
        """
        Production needs an explicit SECRET_KEY of at least 32 characters.

        Raises:
            ValueError: If SECRET_KEY is unset or too short
        """
        secret_key = config('SECRET_KEY', default='')
        if not secret_key:
            raise ValueError(
                "SECRET_KEY must be set in production. "
                "Generate one with: python -c 'import secrets; print(secrets.token_hex(32))'"
            )
        if len(secret_key) < 32:
            raise ValueError(f"SECRET_KEY must be at least 32 characters (got {len(secret_key)})")


config_mapping = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


def get_config(config_name: Optional[str] = None) -> type:
    """
    Config class for ``config_name``, falling back to FLASK_ENV and then
    to development. Unknown names also fall back to development.
    """
    if config_name is None:
        config_name = config('FLASK_ENV', default='development')
    return config_mapping.get(config_name, DevelopmentConfig)
