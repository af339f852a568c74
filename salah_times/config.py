import os
from dotenv import load_dotenv

# Load .env file
dotenv_path = os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env')
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path)
else:
    print("Warning: .env file not found. Using defaults or environment variables.")

class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'a_default_fallback_secret_key_for_development_only'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = "INFO"

    # Sentry Configuration
    SENTRY_DSN = os.environ.get('SENTRY_DSN')

    # Prayer Time API Configuration
    PRAYER_API_ADAPTER = os.environ.get('PRAYER_API_ADAPTER') or "AlAdhanAdapter"
    PRAYER_API_BASE_URL = os.environ.get('PRAYER_API_BASE_URL') or "https://api.aladhan.com/v1"
    PRAYER_API_KEY = os.environ.get('PRAYER_API_KEY')
    PRAYER_API_TIMEOUT_SECONDS = float(os.environ.get('PRAYER_API_TIMEOUT_SECONDS', 15))
    # 0 keeps the timings call single-shot; the user retries manually.
    PRAYER_API_MAX_RETRIES = int(os.environ.get('PRAYER_API_MAX_RETRIES', 0))
    PRAYER_API_BACKOFF_SECONDS = float(os.environ.get('PRAYER_API_BACKOFF_SECONDS', 0.5))

    # Geocoding API Configuration
    GEOCODING_PROVIDER = os.environ.get('GEOCODING_PROVIDER', 'BigDataCloud') # Can be 'BigDataCloud' or 'LocationIQ'
    BIGDATACLOUD_BASE_URL = os.environ.get('BIGDATACLOUD_BASE_URL') or "https://api.bigdatacloud.net/data"
    LOCATIONIQ_API_KEY = os.environ.get('LOCATIONIQ_API_KEY')
    GEOCODING_TIMEOUT_SECONDS = float(os.environ.get('GEOCODING_TIMEOUT_SECONDS', 10))

    # Location Acquisition
    GEOLOCATION_TIMEOUT_SECONDS = float(os.environ.get('GEOLOCATION_TIMEOUT_SECONDS', 10))

    # Resolver sessions
    PROJECTION_TICK_SECONDS = float(os.environ.get('PROJECTION_TICK_SECONDS', 60))
    RESOLVER_MAX_WORKERS = int(os.environ.get('RESOLVER_MAX_WORKERS', 4))
    # How long a session request waits for its cycle before answering with the loading state.
    RESOLVER_WAIT_SECONDS = float(os.environ.get('RESOLVER_WAIT_SECONDS', 30))

    # Default Calculation Settings (AlAdhan ids)
    DEFAULT_CALCULATION_METHOD_ID = int(os.environ.get('DEFAULT_CALCULATION_METHOD_ID', 2)) # ISNA
    DEFAULT_SCHOOL_ID = int(os.environ.get('DEFAULT_SCHOOL_ID', 0)) # Shafi/Hanbali/Maliki

class DevelopmentConfig(Config):
    FLASK_ENV = 'development'
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///salah_times.db'
    LOG_LEVEL = "DEBUG"

class ProductionConfig(Config):
    FLASK_ENV = 'production'
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///salah_times.db'

class TestingConfig(Config):
    TESTING = True
    # Use an in-memory SQLite database for tests to ensure speed and isolation.
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    RATELIMIT_ENABLED = False # Disable rate limiting for tests
    SECRET_KEY = 'test-secret-key'
    SENTRY_DSN = None
    PRAYER_API_MAX_RETRIES = 0
    PRAYER_API_BACKOFF_SECONDS = 0

config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
