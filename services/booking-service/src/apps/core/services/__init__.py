# services/booking-service/src/apps/core/services/__init__.py
"""
Booking Service Business Logic
"""

from shared.common.exceptions import (
    BaseAPIException,
    ValidationException,
    NotFoundException,
    BadGatewayException,
    ServiceUnavailableException,
)


# Custom Exceptions
class BookingServiceError(BaseAPIException):
    """Base exception for booking service errors."""
    pass


class BookingValidationError(BookingServiceError, ValidationException):
    """Malformed or illogical booking input."""
    default_detail = 'Booking validation failed.'


class BookingNotFoundError(BookingServiceError, NotFoundException):
    """Booking not found."""
    error_code = 'BOOKING_NOT_FOUND'


class MaintenanceNotFoundError(BookingServiceError, NotFoundException):
    """Maintenance window not found."""
    error_code = 'MAINTENANCE_NOT_FOUND'


class WaitlistNotFoundError(BookingServiceError, NotFoundException):
    """Waitlist entry not found."""
    error_code = 'WAITLIST_NOT_FOUND'


class UpstreamUnavailableError(BookingServiceError, ServiceUnavailableException):
    """Hotel catalog could not provide room inventory."""
    default_detail = 'Room inventory is temporarily unavailable.'
    error_code = 'UPSTREAM_UNAVAILABLE'


class NotificationFailedError(BookingServiceError, BadGatewayException):
    """Notification could not be delivered to the notification service."""
    error_code = 'NOTIFICATION_FAILED'


class LoyaltyAwardFailedError(BookingServiceError, BadGatewayException):
    """Loyalty points could not be awarded."""
    error_code = 'LOYALTY_AWARD_FAILED'


from .inventory_service import InventoryService  # noqa: E402
from .notification_service import NotificationService, LoyaltyService  # noqa: E402
from .availability_service import AvailabilityService, AvailabilityResult  # noqa: E402
from .waitlist_service import WaitlistService  # noqa: E402
from .maintenance_service import MaintenanceService  # noqa: E402
from .booking_service import BookingService, BookingConflict, BookingResult  # noqa: E402


__all__ = [
    # Services
    'InventoryService',
    'NotificationService',
    'LoyaltyService',
    'AvailabilityService',
    'WaitlistService',
    'MaintenanceService',
    'BookingService',

    # Results
    'AvailabilityResult',
    'BookingConflict',
    'BookingResult',

    # Exceptions
    'BookingServiceError',
    'BookingValidationError',
    'BookingNotFoundError',
    'MaintenanceNotFoundError',
    'WaitlistNotFoundError',
    'UpstreamUnavailableError',
    'NotificationFailedError',
    'LoyaltyAwardFailedError',
]
