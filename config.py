"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    TESTING = False

    # Database - single local SQLite file unless DATABASE_URL overrides it
    DATABASE_PATH = os.getenv('DATABASE_PATH', 'estimator.db')
    DATABASE_URL = os.getenv('DATABASE_URL') or f"sqlite:///{DATABASE_PATH}"

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'

    # Line item editing
    AUTOSAVE_DEBOUNCE_MS = int(os.getenv('AUTOSAVE_DEBOUNCE_MS', '500'))
    MIN_VISIBLE_ROWS = int(os.getenv('MIN_VISIBLE_ROWS', '20'))
    ADD_ROWS_BATCH = int(os.getenv('ADD_ROWS_BATCH', '10'))

    # Pricing fallbacks (used when company settings are missing a value)
    DEFAULT_LABOR_RATE = float(os.getenv('DEFAULT_LABOR_RATE', '75'))
    DEFAULT_MARKUP_PCT = float(os.getenv('DEFAULT_MARKUP_PCT', '0'))
    DEFAULT_OVERHEAD_PCT = float(os.getenv('DEFAULT_OVERHEAD_PCT', '10'))
    DEFAULT_PROFIT_PCT = float(os.getenv('DEFAULT_PROFIT_PCT', '10'))

    # Business Information (for proposals)
    BUSINESS_NAME = os.getenv('BUSINESS_NAME', 'WhitTech.AI')
    BUSINESS_ADDRESS = os.getenv('BUSINESS_ADDRESS', '')
    BUSINESS_PHONE = os.getenv('BUSINESS_PHONE', '')
    BUSINESS_EMAIL = os.getenv('BUSINESS_EMAIL', '')
    ESTIMATE_VALID_DAYS = int(os.getenv('ESTIMATE_VALID_DAYS', '30'))

    # Upload constraints (bulk import)
    MAX_UPLOAD_SIZE = int(os.getenv('MAX_UPLOAD_SIZE', 5 * 1024 * 1024))  # 5MB
    ALLOWED_IMPORT_EXTENSIONS = {'csv', 'xlsx'}

    # Cloud sync of the database file (opaque blob push/pull)
    CLOUD_SYNC_URL = os.getenv('CLOUD_SYNC_URL', '')
    CLOUD_SYNC_APP_NAME = os.getenv('CLOUD_SYNC_APP_NAME', 'estimator')
    CLOUD_SYNC_TIMEOUT = int(os.getenv('CLOUD_SYNC_TIMEOUT', '10'))  # seconds
    CLOUD_SYNC_TOKEN = os.getenv('CLOUD_SYNC_TOKEN')


class TestConfig(Config):
    """Configuration used by the test suite."""

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    AUTOSAVE_DEBOUNCE_MS = 0
    CLOUD_SYNC_URL = 'https://sync.example.test'
