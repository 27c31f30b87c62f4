# services/booking-service/src/apps/core/services/waitlist_service.py
"""
Waitlist Service

Manages waitlist entries and wakes waiting guests when dates free up.
"""

import uuid
import logging
from datetime import date
from typing import List, Optional, Tuple

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction

from apps.core.models import WaitlistEntry
from apps.core.serializers import WaitlistJoinSerializer

from . import BookingValidationError, WaitlistNotFoundError
from .notification_service import Notification, NotificationService, NotificationType

logger = logging.getLogger(__name__)


class WaitlistService:
    """
    Service for managing the waitlist.

    Handles:
    - Idempotent joins
    - Wake-up after cancellations
    - Conversion into bookings
    """

    def __init__(self, notifications: NotificationService = None):
        self.notifications = notifications or NotificationService()

    # ==========================================================================
    # Waitlist CRUD
    # ==========================================================================

    def join(
        self,
        hotel_id: str,
        email: str,
        check_in: date,
        check_out: date,
        first_name: str = None,
        last_name: str = None,
        acknowledge: bool = False
    ) -> Tuple[WaitlistEntry, bool]:
        """
        Add a guest to the waitlist, or return their existing entry.

        A repeat join never modifies the stored entry, so a notified or
        converted entry is not reset to waiting.
        """
        serializer = WaitlistJoinSerializer(data={
            'email': email,
            'check_in': check_in,
            'check_out': check_out,
            'first_name': first_name,
            'last_name': last_name,
        })
        if not serializer.is_valid():
            raise BookingValidationError(
                errors=serializer.errors,
                detail='Invalid waitlist request.'
            )
        data = serializer.validated_data

        lookup = {
            'hotel_id': hotel_id,
            'email': data['email'],
            'check_in': data['check_in'],
            'check_out': data['check_out'],
        }
        defaults = {
            'first_name': data.get('first_name'),
            'last_name': data.get('last_name'),
            'status': WaitlistEntry.Status.WAITING,
        }

        try:
            with transaction.atomic():
                entry, created = WaitlistEntry.objects.get_or_create(defaults=defaults, **lookup)
        except IntegrityError:
            # Lost an insert race on the unique key
            entry, created = WaitlistEntry.objects.get(**lookup), False

        if created:
            logger.info(
                f"Added waitlist entry for {email} at hotel {hotel_id} "
                f"for {check_in} to {check_out}"
            )
            if acknowledge:
                self.notifications.send(self._joined_notification(entry))

        return entry, created

    def get_entry(self, entry_id: uuid.UUID) -> WaitlistEntry:
        """Get a waitlist entry by ID."""
        try:
            return WaitlistEntry.objects.get(id=entry_id)
        except (WaitlistEntry.DoesNotExist, ValueError, DjangoValidationError):
            raise WaitlistNotFoundError(f"Waitlist entry {entry_id} not found")

    def list_for_hotel(self, hotel_id: str, status: str = None) -> List[WaitlistEntry]:
        """List a hotel's waitlist, newest first."""
        queryset = WaitlistEntry.objects.filter(hotel_id=hotel_id)

        if status:
            queryset = queryset.filter(status=status)

        return list(queryset.order_by('-created_at'))

    def convert(self, entry_id: uuid.UUID, booking_id: uuid.UUID) -> WaitlistEntry:
        """Record that a waitlisted guest booked."""
        entry = self.get_entry(entry_id)
        entry.convert(booking_id)

        logger.info(f"Converted waitlist entry {entry_id} into booking {booking_id}")
        return entry

    # ==========================================================================
    # Wake-up
    # ==========================================================================

    def wake(
        self,
        hotel_id: str,
        check_in: date,
        check_out: date,
        limit: Optional[int] = None
    ) -> List[WaitlistEntry]:
        """
        Notify the oldest waiting guests whose stay overlaps freed dates.

        Notifications go out concurrently. An entry is marked notified
        only after its delivery succeeded; entries whose delivery failed
        stay waiting for a later wake-up. Returns the notified entries.
        """
        if limit is None:
            limit = getattr(settings, 'WAITLIST_WAKE_LIMIT', 10)

        watchers = list(WaitlistEntry.waiting_for(hotel_id, check_in, check_out)[:limit])
        if not watchers:
            logger.info(
                f"No waitlist entries to wake for hotel {hotel_id} "
                f"{check_in} to {check_out}"
            )
            return []

        delivered = self.notifications.send_many(
            [self._available_notification(entry) for entry in watchers]
        )

        notified = []
        for entry, sent in zip(watchers, delivered):
            if not sent:
                logger.warning(
                    f"Waitlist entry {entry.id} left waiting: notification not delivered"
                )
                continue
            entry.mark_notified()
            notified.append(entry)

        logger.info(
            f"Woke {len(notified)} of {len(watchers)} waitlist entries "
            f"for hotel {hotel_id}"
        )
        return notified

    # ==========================================================================
    # Private Methods
    # ==========================================================================

    def _joined_notification(self, entry: WaitlistEntry) -> Notification:
        return Notification(
            type=NotificationType.WAITLIST_JOINED,
            to=entry.email,
            subject='Added to Waitlist',
            message="You're on the waitlist. We'll notify you if dates open up.",
            metadata=self._metadata(entry),
        )

    def _available_notification(self, entry: WaitlistEntry) -> Notification:
        return Notification(
            type=NotificationType.WAITLIST_AVAILABLE,
            to=entry.email,
            subject='Availability opened up',
            message=(
                f"Good news! {entry.check_in.strftime('%a %b %d %Y')} - "
                f"{entry.check_out.strftime('%a %b %d %Y')} is available again."
            ),
            metadata=self._metadata(entry),
        )

    @staticmethod
    def _metadata(entry: WaitlistEntry) -> dict:
        return {
            'hotelId': entry.hotel_id,
            'waitlistId': str(entry.id),
            'checkIn': entry.check_in.isoformat(),
            'checkOut': entry.check_out.isoformat(),
        }
