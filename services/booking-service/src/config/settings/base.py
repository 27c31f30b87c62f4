"""Base settings for Booking Service."""
import os
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(BASE_DIR.parent.parent.parent))

SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key')
DEBUG = os.environ.get('DEBUG', 'True').lower() == 'true'
ALLOWED_HOSTS = os.environ.get('ALLOWED_HOSTS', '*').split(',')

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'rest_framework',
    'apps.core',
]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': os.environ.get('DB_NAME', 'booking_service_db'),
        'USER': os.environ.get('DB_USER', 'booking_service_user'),
        'PASSWORD': os.environ.get('DB_PASSWORD', 'booking_service_password'),
        'HOST': os.environ.get('DB_HOST', 'pgbouncer'),
        'PORT': os.environ.get('DB_PORT', '6432'),
    }
}

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

SERVICE_NAME = 'booking-service'
SERVICE_PORT = 7104

# Inter-service communication
SERVICE_URLS = {
    'hotel-service': os.environ.get('HOTEL_SERVICE_URL', 'http://hotel-service:7103'),
    'notification-service': os.environ.get('NOTIFICATION_SERVICE_URL', 'http://notification-service:7101'),
    'identity-service': os.environ.get('IDENTITY_SERVICE_URL', 'http://identity-service:7102'),
}
SERVICE_AUTH_TOKEN = os.environ.get('INTERNAL_SERVICE_API_KEY', '')
SERVICE_TIMEOUT_SECONDS = float(os.environ.get('SERVICE_TIMEOUT_SECONDS', '10'))
SERVICE_CONNECT_TIMEOUT_SECONDS = float(os.environ.get('SERVICE_CONNECT_TIMEOUT_SECONDS', '5'))
CIRCUIT_BREAKER_FAILURE_THRESHOLD = int(os.environ.get('CIRCUIT_BREAKER_FAILURE_THRESHOLD', '5'))
CIRCUIT_BREAKER_RESET_SECONDS = float(os.environ.get('CIRCUIT_BREAKER_RESET_SECONDS', '30'))

# Room type detail cache (inventory counts are never cached)
CATALOG_CACHE_ENABLED = os.environ.get('CATALOG_CACHE_ENABLED', 'true').lower() != 'false'
CATALOG_CACHE_TTL_SECONDS = float(os.environ.get('CATALOG_CACHE_TTL_SECONDS', '60'))
CATALOG_CACHE_MAX_ENTRIES = int(os.environ.get('CATALOG_CACHE_MAX_ENTRIES', '250'))

# LocMemCache culls len // CULL_FREQUENCY least recently used entries when
# full; a frequency equal to MAX_ENTRIES evicts exactly one.
CACHES = {
    'default': {'BACKEND': 'django.core.cache.backends.locmem.LocMemCache'},
    'catalog': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'catalog-room-types',
        'TIMEOUT': CATALOG_CACHE_TTL_SECONDS,
        'OPTIONS': {
            'MAX_ENTRIES': CATALOG_CACHE_MAX_ENTRIES,
            'CULL_FREQUENCY': CATALOG_CACHE_MAX_ENTRIES,
        },
    },
}

# Booking side effects
LOYALTY_POINTS_PER_CURRENCY = os.environ.get('LOYALTY_POINTS_PER_CURRENCY', '0.1')
WAITLIST_WAKE_LIMIT = int(os.environ.get('WAITLIST_WAKE_LIMIT', '10'))

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {'json': {'()': 'pythonjsonlogger.jsonlogger.JsonFormatter'}},
    'handlers': {'console': {'class': 'logging.StreamHandler', 'formatter': 'json'}},
    'root': {'handlers': ['console'], 'level': os.environ.get('LOG_LEVEL', 'INFO')},
}
