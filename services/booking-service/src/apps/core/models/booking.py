# services/booking-service/src/apps/core/models/booking.py
"""
Booking Model

Hotel reservations and their per-room-type lines.
"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from django.db import models
from django.db.models import F, Q, Sum
from django.utils import timezone

from shared.common.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class Booking(UUIDPrimaryKeyMixin, TimestampMixin, models.Model):
    """
    Hotel booking covering one or more room types for a stay.

    The stay is the half-open interval [check_in, check_out): the
    check-out day is free for the next guest.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        CONFIRMED = 'confirmed', 'Confirmed'
        CANCELLED = 'cancelled', 'Cancelled'

    class PaymentStatus(models.TextChoices):
        UNPAID = 'unpaid', 'Unpaid'
        PAID = 'paid', 'Paid'
        REFUNDED = 'refunded', 'Refunded'

    # References
    hotel_id = models.CharField(max_length=64, db_index=True)
    user_id = models.CharField(max_length=64, blank=True, null=True, db_index=True)

    # Guest
    email = models.EmailField(blank=True, null=True)
    first_name = models.CharField(max_length=100, blank=True, null=True)
    last_name = models.CharField(max_length=100, blank=True, null=True)
    phone = models.CharField(max_length=32, blank=True, null=True)

    # Stay
    check_in = models.DateField()
    check_out = models.DateField()

    # Status
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID
    )

    # Pricing
    total_cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00')
    )

    # Waitlist conversion
    waitlist_entry_id = models.UUIDField(blank=True, null=True)

    # Cancellation
    cancelled_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        db_table = 'bookings'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['hotel_id', 'check_in', 'check_out']),
            models.Index(fields=['user_id', 'created_at']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(check_out__gt=F('check_in')),
                name='booking_check_out_after_check_in',
            ),
        ]

    def __str__(self):
        return f"Booking {self.id} - {self.hotel_id} {self.check_in} to {self.check_out}"

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    @property
    def is_active(self) -> bool:
        """Active bookings hold inventory."""
        return self.status in self.get_active_statuses()

    @property
    def guest_name(self) -> str:
        return ' '.join(p for p in [self.first_name, self.last_name] if p)

    # ==========================================================================
    # Status Methods
    # ==========================================================================

    def cancel(self):
        """Cancel the booking and refund a captured payment."""
        self.status = self.Status.CANCELLED
        if self.payment_status == self.PaymentStatus.PAID:
            self.payment_status = self.PaymentStatus.REFUNDED
        if not self.cancelled_at:
            self.cancelled_at = timezone.now()
        self.save()

    # ==========================================================================
    # Query Methods
    # ==========================================================================

    @classmethod
    def get_active_statuses(cls):
        return [cls.Status.PENDING, cls.Status.CONFIRMED]


class BookingRoom(models.Model):
    """One room type line of a booking."""

    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name='rooms'
    )
    position = models.PositiveSmallIntegerField(default=0)
    room_type_id = models.CharField(max_length=64, db_index=True)
    number_of_rooms = models.PositiveIntegerField(default=1)
    price_per_night = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        blank=True,
        null=True
    )

    class Meta:
        db_table = 'booking_rooms'
        ordering = ['position']
        constraints = [
            models.CheckConstraint(
                condition=Q(number_of_rooms__gte=1),
                name='booking_room_at_least_one',
            ),
        ]

    def __str__(self):
        return f"{self.number_of_rooms} x {self.room_type_id}"

    @property
    def line_total(self) -> Optional[Decimal]:
        """Cost of this line for the whole stay, if priced."""
        if self.price_per_night is None:
            return None
        return self.price_per_night * self.number_of_rooms * self.booking.nights

    @classmethod
    def committed_rooms(
        cls,
        hotel_id: str,
        room_type_id: str,
        check_in: date,
        check_out: date,
        exclude_booking_id: uuid.UUID = None
    ) -> int:
        """Rooms of a type held by active bookings overlapping the stay."""
        queryset = cls.objects.filter(
            room_type_id=room_type_id,
            booking__hotel_id=hotel_id,
            booking__status__in=Booking.get_active_statuses(),
            booking__check_in__lt=check_out,
            booking__check_out__gt=check_in,
        )

        if exclude_booking_id:
            queryset = queryset.exclude(booking_id=exclude_booking_id)

        return queryset.aggregate(total=Sum('number_of_rooms'))['total'] or 0
