# services/booking-service/src/apps/core/services/notification_service.py
"""
Notification and Loyalty Services

Best-effort side effects of booking transitions. Failures are logged
and reported to the caller, never raised into the booking flow.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

import httpx
from asgiref.sync import async_to_sync
from django.conf import settings

from shared.common.clients import (
    CircuitBreakerError,
    IdentityServiceClient,
    NotificationServiceClient,
)

from . import LoyaltyAwardFailedError, NotificationFailedError

logger = logging.getLogger(__name__)

DEFAULT_POINTS_PER_CURRENCY = Decimal('0.1')


class NotificationType:
    """Notification type constants sent to the notification service."""

    BOOKING_CONFIRMATION = 'booking_confirmation'
    BOOKING_UPDATED = 'booking_updated'
    BOOKING_CANCELLED = 'booking_cancelled'
    WAITLIST_JOINED = 'waitlist_joined'
    WAITLIST_AVAILABLE = 'waitlist_available'


@dataclass
class Notification:
    type: str
    to: Optional[str]
    subject: str = ''
    message: str = ''
    metadata: Dict[str, Any] = field(default_factory=dict)


class NotificationService:
    """Sends notifications through the notification service."""

    def __init__(self, client: NotificationServiceClient = None):
        self.client = client or NotificationServiceClient()

    async def deliver(self, notification: Notification):
        """Deliver one notification, raising NotificationFailedError on failure."""
        try:
            await self.client.notify(
                notification.type,
                notification.to,
                subject=notification.subject,
                message=notification.message,
                metadata=notification.metadata,
            )
        except (httpx.HTTPError, httpx.InvalidURL, CircuitBreakerError, ValueError) as e:
            raise NotificationFailedError(
                f"Failed to send {notification.type} to {notification.to}: {e}"
            ) from e

    def send(self, notification: Notification) -> bool:
        """Send a notification; returns False if skipped or failed."""
        return self.send_many([notification])[0]

    def send_many(self, notifications: List[Notification]) -> List[bool]:
        """
        Send notifications concurrently.

        Each delivery is independent: one failure does not cancel the
        others. Returns one flag per notification, in input order.
        """
        return async_to_sync(self._send_all)(notifications)

    async def _send_all(self, notifications: List[Notification]) -> List[bool]:
        results = iter(await asyncio.gather(
            *(self.deliver(n) for n in notifications if n.to),
            return_exceptions=True
        ))

        sent = []
        for notification in notifications:
            if not notification.to:
                sent.append(False)
                continue

            result = next(results)
            if isinstance(result, NotificationFailedError):
                logger.warning(str(result.detail))
                sent.append(False)
            elif isinstance(result, BaseException):
                logger.exception(
                    f"Unexpected error sending {notification.type}",
                    exc_info=result
                )
                sent.append(False)
            else:
                sent.append(True)

        return sent


class LoyaltyService:
    """Awards loyalty points through the identity service."""

    REASON_COMPLETED_BOOKING = 'completed_booking'

    def __init__(self, client: IdentityServiceClient = None):
        self.client = client or IdentityServiceClient()

    @staticmethod
    def points_for(amount: Decimal) -> int:
        """Points for a spend: at least one point for any positive amount."""
        try:
            multiplier = Decimal(str(getattr(settings, 'LOYALTY_POINTS_PER_CURRENCY', '0.1')))
        except InvalidOperation:
            multiplier = DEFAULT_POINTS_PER_CURRENCY
        if not multiplier.is_finite():
            multiplier = DEFAULT_POINTS_PER_CURRENCY

        points = (Decimal(amount) * multiplier).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
        return max(1, int(points))

    def award(self, user_id: Optional[str], amount: Decimal, booking_id) -> Optional[int]:
        """Award points for a booking; returns the points or None."""
        if not user_id or not amount or Decimal(amount) <= 0:
            return None

        points = self.points_for(amount)
        try:
            async_to_sync(self._award)(user_id, points, amount, booking_id)
        except LoyaltyAwardFailedError as e:
            logger.warning(str(e.detail), extra={'booking_id': str(booking_id)})
            return None
        except Exception:
            logger.exception(
                f"Unexpected error awarding loyalty points to user {user_id}",
                extra={'booking_id': str(booking_id)}
            )
            return None

        logger.info(f"Awarded {points} loyalty points to user {user_id}")
        return points

    async def _award(self, user_id: str, points: int, amount: Decimal, booking_id):
        try:
            await self.client.award_loyalty(
                user_id,
                points,
                self.REASON_COMPLETED_BOOKING,
                metadata={'bookingId': str(booking_id), 'totalCost': str(amount)},
            )
        except (httpx.HTTPError, httpx.InvalidURL, CircuitBreakerError, ValueError) as e:
            raise LoyaltyAwardFailedError(
                f"Failed to award loyalty points to user {user_id}: {e}"
            ) from e
