# shared/common/exceptions.py
"""
Base Exception Classes

Every service error is a REST framework ``APIException`` carrying an
HTTP status and a machine-readable ``error_code``, so a caller can map
it to a response body with ``to_dict()`` instead of matching messages.
"""

from typing import Dict, Any, Optional
from rest_framework import status
from rest_framework.exceptions import APIException


class BaseAPIException(APIException):
    """Root of the service error hierarchy."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'The booking service failed to handle the request.'
    default_code = 'error'
    error_code = 'INTERNAL_ERROR'

    def __init__(
        self,
        detail: Optional[str] = None,
        code: Optional[str] = None,
        error_code: Optional[str] = None,
        extra_data: Optional[Dict] = None
    ):
        super().__init__(detail=detail, code=code)
        self.error_code = error_code or self.error_code
        self.extra_data = extra_data or {}

    @property
    def is_retryable(self) -> bool:
        """Server-side failures may succeed when retried later."""
        return self.status_code >= 500

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'code': self.error_code,
            'message': str(self.detail),
        }
        data.update(self.extra_data)
        return data


# =============================================================================
# 4xx
# =============================================================================

class ValidationException(BaseAPIException):
    """Input rejected; ``errors`` maps field names to messages."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The request contains invalid fields.'
    default_code = 'validation_error'
    error_code = 'VALIDATION_ERROR'

    def __init__(self, errors: Dict[str, Any] = None, detail: str = None):
        super().__init__(detail=detail)
        self.errors = errors or {}
        self.extra_data = {'errors': self.errors}


class NotFoundException(BaseAPIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'No record matches the given id.'
    default_code = 'not_found'
    error_code = 'NOT_FOUND'


class ConflictException(BaseAPIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The request conflicts with stored state.'
    default_code = 'conflict'
    error_code = 'CONFLICT'


class BookingConflictException(ConflictException):
    """Requested stay cannot be placed: booked out or under maintenance."""
    default_detail = 'The requested rooms are not available for these dates.'
    error_code = 'BOOKING_CONFLICT'


# =============================================================================
# 5xx
# =============================================================================

class BadGatewayException(BaseAPIException):
    """A collaborating service rejected or failed the call."""
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'A collaborating service failed.'
    default_code = 'bad_gateway'
    error_code = 'BAD_GATEWAY'


class ServiceUnavailableException(BaseAPIException):
    """A dependency needed to answer is unreachable."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'A required dependency is unreachable.'
    default_code = 'service_unavailable'
    error_code = 'SERVICE_UNAVAILABLE'
