# shared/common/clients.py
"""
Service Clients for Inter-Service Communication

Async httpx clients for the hotel catalog, notification and identity
services. Each client owns a circuit breaker; every request is bounded
by the configured timeout and re-raises transport and status errors
for the calling service to translate.
"""

import time
import httpx
import logging
from typing import Callable, Dict, Any
from django.conf import settings

from .cache import CacheKeyBuilder, ResponseCache

logger = logging.getLogger(__name__)


# =============================================================================
# CIRCUIT BREAKER
# =============================================================================

class CircuitBreakerError(Exception):
    """Raised instead of calling a service whose circuit is open"""
    pass


class CircuitBreaker:
    """
    Stops calling a failing service for a cool-down period.

    closed -> open after ``failure_threshold`` consecutive failures;
    open -> half_open once ``timeout`` seconds have passed; half_open
    closes after ``success_threshold`` successes and re-opens on the
    first failure.
    """

    CLOSED = 'closed'
    OPEN = 'open'
    HALF_OPEN = 'half_open'

    def __init__(
        self,
        name: str = 'service',
        failure_threshold: int = 5,
        success_threshold: int = 2,
        timeout: float = 30,
        clock: Callable[[], float] = time.monotonic
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.success_threshold = success_threshold
        self.timeout = timeout
        self._clock = clock
        self.state = self.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.last_failure_time = None

    @classmethod
    def for_service(cls, service_name: str) -> 'CircuitBreaker':
        return cls(
            name=service_name,
            failure_threshold=getattr(settings, 'CIRCUIT_BREAKER_FAILURE_THRESHOLD', 5),
            timeout=getattr(settings, 'CIRCUIT_BREAKER_RESET_SECONDS', 30),
        )

    def can_execute(self) -> bool:
        if self.state == self.OPEN:
            if self.last_failure_time is not None and \
                    self._clock() - self.last_failure_time < self.timeout:
                return False
            self.state = self.HALF_OPEN
        return True

    def record_success(self):
        if self.state == self.CLOSED:
            self.failure_count = 0
            return

        self.success_count += 1
        if self.success_count >= self.success_threshold:
            self.state = self.CLOSED
            self.failure_count = 0
            self.success_count = 0
            self.last_failure_time = None
            logger.info(f"Circuit breaker for {self.name} closed")

    def record_failure(self):
        self.failure_count += 1
        self.last_failure_time = self._clock()
        if self.state == self.HALF_OPEN or self.failure_count >= self.failure_threshold:
            self.state = self.OPEN
            self.success_count = 0
            logger.warning(
                f"Circuit breaker for {self.name} opened after {self.failure_count} failures"
            )


# =============================================================================
# BASE SERVICE CLIENT
# =============================================================================

class BaseServiceClient:
    """
    Base class for service-to-service HTTP communication.

    Requests carry the shared service key in ``X-Service-Auth`` and the
    caller's name in ``X-Source-Service``. Only 5xx responses and
    transport errors count against the circuit breaker.
    """

    def __init__(self, service_name: str, base_url: str = None):
        self.service_name = service_name
        service_urls = getattr(settings, 'SERVICE_URLS', {})
        self.base_url = (base_url or service_urls.get(service_name, f'http://{service_name}')).rstrip('/')
        self.timeout = httpx.Timeout(
            getattr(settings, 'SERVICE_TIMEOUT_SECONDS', 10.0),
            connect=getattr(settings, 'SERVICE_CONNECT_TIMEOUT_SECONDS', 5.0),
        )
        self.circuit_breaker = CircuitBreaker.for_service(service_name)

    def _headers(self) -> Dict[str, str]:
        return {
            'Accept': 'application/json',
            'X-Service-Auth': getattr(settings, 'SERVICE_AUTH_TOKEN', '') or '',
            'X-Source-Service': getattr(settings, 'SERVICE_NAME', 'unknown'),
        }

    async def _request(
        self,
        method: str,
        path: str,
        params: Dict = None,
        data: Dict = None
    ) -> Dict:
        if not self.circuit_breaker.can_execute():
            raise CircuitBreakerError(f"Circuit breaker open for {self.service_name}")

        url = f"{self.base_url}{path}"

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=data,
                    headers=self._headers()
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                logger.error(
                    f"{self.service_name} answered {status_code} for {method} {path}",
                    extra={'url': url, 'status_code': status_code}
                )
                if status_code >= 500:
                    self.circuit_breaker.record_failure()
                raise
            except httpx.RequestError as e:
                logger.error(f"{method} {url} failed: {e!r}")
                self.circuit_breaker.record_failure()
                raise

        self.circuit_breaker.record_success()
        return response.json() if response.content else {}

    async def get(self, path: str, params: Dict = None) -> Dict:
        return await self._request('GET', path, params=params)

    async def post(self, path: str, data: Dict = None) -> Dict:
        return await self._request('POST', path, data=data)


# =============================================================================
# SPECIFIC SERVICE CLIENTS
# =============================================================================

cache_keys = CacheKeyBuilder('booking-service')


class HotelCatalogClient(BaseServiceClient):
    """Client for Hotel Catalog Service"""

    def __init__(self, cache: ResponseCache = None):
        super().__init__('hotel-service')
        self.cache = cache if cache is not None else ResponseCache('catalog')

    async def get_room_type_count(self, hotel_id: str, room_type_id: str) -> Dict:
        # Inventory counts gate writes and are never cached.
        return await self.get(f'/api/hotels/{hotel_id}/room-types/{room_type_id}/count')

    async def get_room_type(self, hotel_id: str, room_type_id: str) -> Dict:
        key = cache_keys.room_type(hotel_id, room_type_id)
        room_type = self.cache.get(key)
        if room_type is not None:
            return room_type

        room_type = await self.get(f'/api/hotels/{hotel_id}/room-types/{room_type_id}')
        self.cache.set(key, room_type)
        return room_type


class NotificationServiceClient(BaseServiceClient):
    """Client for Notification Service"""

    def __init__(self):
        super().__init__('notification-service')

    async def notify(
        self,
        notification_type: str,
        to: str,
        subject: str = None,
        message: str = None,
        metadata: Dict[str, Any] = None,
        channel: str = 'email'
    ) -> Dict:
        return await self.post('/notify', {
            'channel': channel,
            'type': notification_type,
            'to': to,
            'subject': subject,
            'message': message,
            'metadata': metadata or {},
        })


class IdentityServiceClient(BaseServiceClient):
    """Client for Identity Service"""

    def __init__(self):
        super().__init__('identity-service')

    async def award_loyalty(
        self,
        user_id: str,
        points: int,
        reason: str,
        metadata: Dict[str, Any] = None
    ) -> Dict:
        return await self.post(f'/internal/users/{user_id}/loyalty', {
            'points': points,
            'reason': reason,
            'metadata': metadata or {},
        })
