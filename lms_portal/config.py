import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()

class Config:
    # Flask Configuration
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///lms_portal.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False

    # Debug Configuration
    DEBUG = os.getenv('FLASK_ENV') == 'development'
    TESTING = False

    # Drops and recreates every table when the app starts
    RESET_DB_ON_START = os.getenv('RESET_DB_ON_START', 'False').lower() == 'true'

    # Session Configuration
    # Flask's signed cookie only carries the opaque token; the session row is authoritative
    SESSION_LIFETIME = timedelta(days=int(os.getenv('SESSION_LIFETIME_DAYS', '7')))
    PERMANENT_SESSION_LIFETIME = SESSION_LIFETIME
    SESSION_COOKIE_NAME = os.getenv('SESSION_COOKIE_NAME', 'lms_session')
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = os.getenv('SESSION_COOKIE_SECURE', 'False').lower() == 'true'

    # Password hashing (werkzeug method string, e.g. "scrypt" or "pbkdf2:sha256:600000")
    PASSWORD_HASH_METHOD = os.getenv('PASSWORD_HASH_METHOD', 'scrypt')
    PASSWORD_MIN_LENGTH = int(os.getenv('PASSWORD_MIN_LENGTH', '5'))

    # Enrollment Configuration
    DEFAULT_VALIDITY_MONTHS = int(os.getenv('DEFAULT_VALIDITY_MONTHS', '12'))
    MAX_VALIDITY_MONTHS = int(os.getenv('MAX_VALIDITY_MONTHS', '120'))
    QUIZ_PASSING_SCORE = int(os.getenv('QUIZ_PASSING_SCORE', '70'))

    # Dashboard Configuration
    TREND_WINDOW_DAYS = 7
    MAX_TREND_WINDOW_DAYS = 90

    # Logging Configuration
    LOGGING = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'standard'
            }
        },
        'root': {
            'level': os.getenv('LOG_LEVEL', 'INFO'),
            'handlers': ['console']
        }
    }


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    RESET_DB_ON_START = False
    PASSWORD_HASH_METHOD = 'pbkdf2:sha256:1000'
