# services/booking-service/src/apps/core/services/booking_service.py
"""
Booking Service

Core business logic for reservation management.
"""

import uuid
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Dict, Any, List

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from apps.core.models import Booking, BookingRoom, InventoryLock, WaitlistEntry
from apps.core.serializers import BookingCreateSerializer, BookingUpdateSerializer
from shared.common.exceptions import BookingConflictException

from . import (
    BookingValidationError,
    BookingNotFoundError,
    WaitlistNotFoundError,
)
from .availability_service import AvailabilityService, REASON_MAINTENANCE
from .inventory_service import InventoryService
from .notification_service import (
    LoyaltyService,
    Notification,
    NotificationService,
    NotificationType,
)
from .waitlist_service import WaitlistService

logger = logging.getLogger(__name__)


@dataclass
class BookingConflict:
    """Why a booking could not be placed."""

    reason: str
    room_type_id: str
    message: str
    waitlist_entry: Optional[WaitlistEntry] = None

    def as_exception(self) -> BookingConflictException:
        extra = {'reason': self.reason, 'roomTypeId': self.room_type_id}
        if self.waitlist_entry is not None:
            extra['waitlistId'] = str(self.waitlist_entry.id)
        return BookingConflictException(self.message, extra_data=extra)


@dataclass
class BookingResult:
    """Outcome of a create or update: a booking, or a conflict."""

    booking: Optional[Booking] = None
    conflict: Optional[BookingConflict] = None

    @property
    def ok(self) -> bool:
        return self.conflict is None


class BookingService:
    """
    Service for managing bookings.

    Handles:
    - Booking creation with availability checks
    - Updates and cancellations
    - Waitlist wake-up when inventory frees
    - Booking queries and price quotes

    Availability checks and the booking write run in one transaction
    holding the inventory locks of every room type involved.
    Notifications, loyalty and waitlist wake-up run after commit and
    never fail the operation.
    """

    def __init__(
        self,
        inventory: InventoryService = None,
        availability: AvailabilityService = None,
        waitlist: WaitlistService = None,
        notifications: NotificationService = None,
        loyalty: LoyaltyService = None
    ):
        self.inventory = inventory or InventoryService()
        self.availability = availability or AvailabilityService(inventory=self.inventory)
        self.notifications = notifications or NotificationService()
        self.waitlist = waitlist or WaitlistService(notifications=self.notifications)
        self.loyalty = loyalty or LoyaltyService()

    # ==========================================================================
    # Booking Transitions
    # ==========================================================================

    def create_booking(
        self,
        hotel_id: str,
        data: Dict[str, Any],
        user_id: str = None
    ) -> BookingResult:
        """Create a confirmed booking, or report the first conflicting room line."""
        data = self._validate(BookingCreateSerializer, data)
        check_in, check_out = data['check_in'], data['check_out']
        lines = data['rooms']

        with transaction.atomic():
            InventoryLock.acquire_all(hotel_id, [line['room_type_id'] for line in lines])

            conflict = self._find_conflict(hotel_id, lines, check_in, check_out)
            if conflict is None:
                entry = self._find_waitlist_entry(data.get('waitlist_id'))

                booking = Booking.objects.create(
                    hotel_id=hotel_id,
                    user_id=user_id,
                    email=data.get('email'),
                    first_name=data.get('first_name'),
                    last_name=data.get('last_name'),
                    phone=data.get('phone'),
                    check_in=check_in,
                    check_out=check_out,
                    status=Booking.Status.CONFIRMED,
                    payment_status=Booking.PaymentStatus.PAID,
                    total_cost=self._total_cost(data.get('total_cost'), lines, check_in, check_out),
                    waitlist_entry_id=entry.id if entry else None,
                )
                self._save_lines(booking, lines)

                if entry:
                    entry.convert(booking.id)

        if conflict is not None:
            if data.get('auto_waitlist') and data.get('email'):
                conflict.waitlist_entry, _ = self.waitlist.join(
                    hotel_id,
                    data['email'],
                    check_in,
                    check_out,
                    first_name=data.get('first_name'),
                    last_name=data.get('last_name'),
                )
            return BookingResult(conflict=conflict)

        logger.info(
            f"Created booking {booking.id} at hotel {hotel_id} "
            f"for {check_in} to {check_out}"
        )

        self.loyalty.award(user_id, booking.total_cost, booking.id)
        self.notifications.send(Notification(
            type=NotificationType.BOOKING_CONFIRMATION,
            to=booking.email,
            subject='Booking Confirmation',
            message=f"Hi {booking.first_name or 'there'}, your booking is confirmed.",
            metadata=self._metadata(booking),
        ))

        return BookingResult(booking=booking)

    def update_booking(self, booking_id: uuid.UUID, data: Dict[str, Any]) -> BookingResult:
        """
        Change dates, room lines or status of a booking.

        When the stay or its rooms change, or a cancelled booking is
        reactivated, every effective room line is checked again with the
        booking itself left out of the committed count. A conflict leaves
        the booking untouched.
        """
        data = self._validate(BookingUpdateSerializer, data)
        booking = self.get_booking(booking_id)

        check_in = data.get('check_in', booking.check_in)
        check_out = data.get('check_out', booking.check_out)
        if check_out <= check_in:
            raise BookingValidationError(
                errors={'check_out': ['Check-out must be after check-in']},
                detail='Invalid booking dates.'
            )

        previous_status = booking.status
        new_status = data.get('status', previous_status)
        lines = data.get('rooms') or self._stored_lines(booking)

        dates_changed = (check_in, check_out) != (booking.check_in, booking.check_out)
        reactivated = (
            previous_status == Booking.Status.CANCELLED
            and new_status != Booking.Status.CANCELLED
        )
        recheck = dates_changed or 'rooms' in data or reactivated

        with transaction.atomic():
            if recheck:
                InventoryLock.acquire_all(
                    booking.hotel_id, [line['room_type_id'] for line in lines]
                )
                conflict = self._find_conflict(
                    booking.hotel_id, lines, check_in, check_out,
                    exclude_booking_id=booking.id
                )
                if conflict is not None:
                    return BookingResult(conflict=conflict)

            booking.check_in = check_in
            booking.check_out = check_out
            booking.status = new_status
            if new_status == Booking.Status.CANCELLED:
                booking.cancelled_at = booking.cancelled_at or timezone.now()
            else:
                booking.cancelled_at = None
            booking.save()

            if 'rooms' in data:
                booking.rooms.all().delete()
                self._save_lines(booking, lines)

        logger.info(f"Updated booking {booking.id}")

        self.notifications.send(Notification(
            type=NotificationType.BOOKING_UPDATED,
            to=booking.email,
            subject='Booking Updated',
            message=f"Hi {booking.first_name or 'there'}, your booking has been updated.",
            metadata=self._metadata(booking),
        ))

        if previous_status != Booking.Status.CANCELLED and new_status == Booking.Status.CANCELLED:
            self.waitlist.wake(booking.hotel_id, booking.check_in, booking.check_out)

        return BookingResult(booking=booking)

    def cancel_booking(self, booking_id: uuid.UUID) -> Booking:
        """Cancel a booking and wake waitlisted guests for its dates."""
        booking = self.get_booking(booking_id)
        booking.cancel()

        logger.info(f"Cancelled booking {booking.id}")

        self.notifications.send(Notification(
            type=NotificationType.BOOKING_CANCELLED,
            to=booking.email,
            subject='Booking Cancelled',
            message='Your booking has been cancelled.',
            metadata=self._metadata(booking),
        ))
        self.waitlist.wake(booking.hotel_id, booking.check_in, booking.check_out)

        return booking

    # ==========================================================================
    # Queries
    # ==========================================================================

    def get_booking(self, booking_id: uuid.UUID) -> Booking:
        """Get a booking by ID."""
        try:
            return Booking.objects.get(id=booking_id)
        except (Booking.DoesNotExist, ValueError, DjangoValidationError):
            raise BookingNotFoundError(f"Booking {booking_id} not found")

    def list_user_bookings(self, user_id: str) -> List[Booking]:
        """A guest's bookings, newest first."""
        return list(
            Booking.objects.filter(user_id=user_id)
            .prefetch_related('rooms')
            .order_by('-created_at')
        )

    def list_hotel_bookings(self, hotel_id: str) -> List[Booking]:
        """A hotel's bookings, newest first."""
        return list(
            Booking.objects.filter(hotel_id=hotel_id)
            .prefetch_related('rooms')
            .order_by('-created_at')
        )

    def list_bookings(
        self,
        status: str = None,
        hotel_id: str = None,
        start_date: date = None,
        end_date: date = None,
        limit: int = 100
    ) -> List[Booking]:
        """Filtered booking listing, latest check-in first."""
        queryset = Booking.objects.all()

        if status:
            queryset = queryset.filter(status=status)
        if hotel_id:
            queryset = queryset.filter(hotel_id=hotel_id)
        if start_date:
            queryset = queryset.filter(check_in__gte=start_date)
        if end_date:
            queryset = queryset.filter(check_in__lte=end_date)

        return list(queryset.prefetch_related('rooms').order_by('-check_in')[:limit])

    def quote(
        self,
        hotel_id: str,
        room_type_id: str,
        number_of_nights: int = 1,
        room_count: int = 1
    ) -> Decimal:
        """Price of a stay at the room type's current nightly rate."""
        errors = {}
        for field, value in (('number_of_nights', number_of_nights), ('room_count', room_count)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                errors[field] = ['Must be a positive integer']
        if errors:
            raise BookingValidationError(errors=errors, detail='Invalid quote request.')

        price = self.inventory.price_per_night(hotel_id, room_type_id)
        return (price * number_of_nights * room_count).quantize(Decimal('0.01'))

    # ==========================================================================
    # Private Methods
    # ==========================================================================

    @staticmethod
    def _validate(serializer_class, data: Dict[str, Any]) -> Dict[str, Any]:
        serializer = serializer_class(data=data)
        if not serializer.is_valid():
            raise BookingValidationError(
                errors=serializer.errors,
                detail='Invalid booking request.'
            )
        return serializer.validated_data

    def _find_conflict(
        self,
        hotel_id: str,
        lines: List[Dict[str, Any]],
        check_in: date,
        check_out: date,
        exclude_booking_id: uuid.UUID = None
    ) -> Optional[BookingConflict]:
        """First room line that cannot be placed, in request order."""
        requested = defaultdict(int)

        for line in lines:
            room_type_id = line['room_type_id']
            # Earlier lines of the same type count against this one
            requested[room_type_id] += line['number_of_rooms']

            result = self.availability.evaluate(
                hotel_id,
                room_type_id,
                requested[room_type_id],
                check_in,
                check_out,
                exclude_booking_id=exclude_booking_id
            )
            if result.has_conflict:
                if result.reason == REASON_MAINTENANCE:
                    message = 'Hotel is under maintenance'
                else:
                    message = f"Room type {room_type_id} is not available for the selected dates"
                return BookingConflict(
                    reason=result.reason,
                    room_type_id=room_type_id,
                    message=message,
                )

        return None

    def _find_waitlist_entry(self, entry_id: Optional[uuid.UUID]) -> Optional[WaitlistEntry]:
        if not entry_id:
            return None
        try:
            return self.waitlist.get_entry(entry_id)
        except WaitlistNotFoundError:
            logger.warning(f"Booking references unknown waitlist entry {entry_id}")
            return None

    @staticmethod
    def _total_cost(
        total_cost: Optional[Decimal],
        lines: List[Dict[str, Any]],
        check_in: date,
        check_out: date
    ) -> Decimal:
        if total_cost is not None:
            return total_cost

        nights = (check_out - check_in).days
        return sum(
            (
                line['price_per_night'] * line['number_of_rooms'] * nights
                for line in lines
                if line.get('price_per_night') is not None
            ),
            Decimal('0.00')
        )

    @staticmethod
    def _save_lines(booking: Booking, lines: List[Dict[str, Any]]):
        BookingRoom.objects.bulk_create([
            BookingRoom(
                booking=booking,
                position=position,
                room_type_id=line['room_type_id'],
                number_of_rooms=line['number_of_rooms'],
                price_per_night=line.get('price_per_night'),
            )
            for position, line in enumerate(lines)
        ])

    @staticmethod
    def _stored_lines(booking: Booking) -> List[Dict[str, Any]]:
        return [
            {
                'room_type_id': room.room_type_id,
                'number_of_rooms': room.number_of_rooms,
                'price_per_night': room.price_per_night,
            }
            for room in booking.rooms.all()
        ]

    @staticmethod
    def _metadata(booking: Booking) -> Dict[str, str]:
        return {
            'bookingId': str(booking.id),
            'hotelId': str(booking.hotel_id),
            'checkIn': booking.check_in.isoformat(),
            'checkOut': booking.check_out.isoformat(),
            'totalCost': str(booking.total_cost),
        }
