"""
Testing Settings

Settings for running tests.
"""

from .base import *

DEBUG = False
TESTING = True

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}


# Disable migrations for faster tests
class DisableMigrations:
    def __contains__(self, item):
        return True

    def __getitem__(self, item):
        return None


MIGRATION_MODULES = DisableMigrations()

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    },
    'catalog': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'test-catalog',
        'TIMEOUT': 60,
        'OPTIONS': {'MAX_ENTRIES': 2, 'CULL_FREQUENCY': 2},
    },
}

SERVICE_AUTH_TOKEN = 'test-service-key'
SERVICE_URLS = {
    'hotel-service': 'http://hotel-service.test',
    'notification-service': 'http://notification-service.test',
    'identity-service': 'http://identity-service.test',
}

CATALOG_CACHE_ENABLED = True
LOYALTY_POINTS_PER_CURRENCY = '0.1'
WAITLIST_WAKE_LIMIT = 10

# Logging - minimal output during tests
LOGGING = {
    'version': 1,
    'disable_existing_loggers': True,
    'handlers': {
        'null': {
            'class': 'logging.NullHandler',
        },
    },
    'root': {
        'handlers': ['null'],
        'level': 'CRITICAL',
    },
}
