"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name, default):
    return os.getenv(name, default).lower() in ('1', 'true', 'yes')


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '0') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Session Configuration (Production-safe defaults)
    SESSION_COOKIE_SECURE = _env_bool('SESSION_COOKIE_SECURE', 'false')
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv('SESSION_COOKIE_SAMESITE', 'Lax')
    PERMANENT_SESSION_LIFETIME = int(os.getenv('SESSION_LIFETIME', '86400'))  # 24 hours

    # CSRF (JSON clients fetch a token from /auth/csrf-token)
    WTF_CSRF_ENABLED = _env_bool('WTF_CSRF_ENABLED', 'true')
    WTF_CSRF_TIME_LIMIT = None

    # Database - Support multiple environment variable naming conventions
    # Priority: DATABASE_URL > DB_* > POSTGRES_*
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST', 'localhost')
        DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
        DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'kasir')
        DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'kasir')
        DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'kasir')

        DATABASE_URL = (
            f"postgresql://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = _env_bool('SQLALCHEMY_ECHO', 'false')
    DB_POOL_SIZE = int(os.getenv('DB_POOL_SIZE', '10'))
    DB_MAX_OVERFLOW = int(os.getenv('DB_MAX_OVERFLOW', '20'))

    # Stock & reporting
    LOW_STOCK_THRESHOLD = int(os.getenv('LOW_STOCK_THRESHOLD', '5'))
    STOCK_HISTORY_DEFAULT_LIMIT = int(os.getenv('STOCK_HISTORY_DEFAULT_LIMIT', '50'))
    PERFORMANCE_DEFAULT_DAYS = int(os.getenv('PERFORMANCE_DEFAULT_DAYS', '10'))
    TOP_LIST_DEFAULT_LIMIT = int(os.getenv('TOP_LIST_DEFAULT_LIMIT', '20'))
    RECENT_SALES_LIMIT = int(os.getenv('RECENT_SALES_LIMIT', '5'))
    MAX_PRODUCT_IMAGES = 5

    # Deployment permission: may cashiers remove a single line from a sale?
    SALE_ITEM_DELETE_ENABLED = _env_bool('SALE_ITEM_DELETE_ENABLED', 'true')

    # Redis Cache Configuration
    REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
    CACHE_ENABLED = _env_bool('CACHE_ENABLED', 'true')
    CACHE_DEFAULT_TTL = int(os.getenv('CACHE_DEFAULT_TTL', '60'))  # seconds
    CACHE_ANALYTICS_TTL = int(os.getenv('CACHE_ANALYTICS_TTL', '120'))
    CACHE_KEY_PREFIX = os.getenv('CACHE_KEY_PREFIX', 'kasir')

    # Error tracking
    SENTRY_DSN = os.getenv('SENTRY_DSN')
