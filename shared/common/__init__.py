# Shared Common Library for Phoenix Booking
# This package contains shared exceptions, service clients, caching,
# and model mixins used across the microservices.

__version__ = "1.0.0"

from .exceptions import (
    BaseAPIException,
    ValidationException,
    NotFoundException,
    ConflictException,
    BookingConflictException,
    BadGatewayException,
    ServiceUnavailableException,
)

from .cache import (
    CacheKeyBuilder,
    ResponseCache,
    stable_key,
)

__all__ = [
    # Version
    '__version__',

    # Exceptions
    'BaseAPIException',
    'ValidationException',
    'NotFoundException',
    'ConflictException',
    'BookingConflictException',
    'BadGatewayException',
    'ServiceUnavailableException',

    # Cache
    'CacheKeyBuilder',
    'ResponseCache',
    'stable_key',
]
