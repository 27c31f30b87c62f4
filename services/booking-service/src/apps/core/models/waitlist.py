# services/booking-service/src/apps/core/models/waitlist.py
"""
Waitlist Model

Guests waiting for dates to open up at a hotel.
"""

import uuid
from datetime import date

from django.db import models
from django.utils import timezone

from shared.common.mixins import DateRangeMixin, TimestampMixin, UUIDPrimaryKeyMixin


class WaitlistEntry(UUIDPrimaryKeyMixin, TimestampMixin, DateRangeMixin, models.Model):
    """
    Waitlist entry for a requested stay.

    One entry per (hotel, email, check_in, check_out); joining again
    returns the existing entry.
    """

    class Status(models.TextChoices):
        WAITING = 'waiting', 'Waiting'
        NOTIFIED = 'notified', 'Notified'
        CONVERTED = 'converted', 'Converted'

    date_range_fields = ('check_in', 'check_out')

    hotel_id = models.CharField(max_length=64, db_index=True)

    # Requester
    email = models.EmailField()
    first_name = models.CharField(max_length=100, blank=True, null=True)
    last_name = models.CharField(max_length=100, blank=True, null=True)

    # Request Details
    check_in = models.DateField()
    check_out = models.DateField()

    # Status
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.WAITING,
        db_index=True
    )
    notified_at = models.DateTimeField(blank=True, null=True)
    converted_booking_id = models.UUIDField(blank=True, null=True)

    class Meta:
        db_table = 'waitlist'
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['hotel_id', 'status', 'check_in', 'check_out']),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['hotel_id', 'email', 'check_in', 'check_out'],
                name='waitlist_unique_request',
            ),
        ]

    def __str__(self):
        return f"Waitlist: {self.email} for {self.check_in} to {self.check_out}"

    # ==========================================================================
    # Status Methods
    # ==========================================================================

    def mark_notified(self):
        self.status = self.Status.NOTIFIED
        self.notified_at = timezone.now()
        self.save(update_fields=['status', 'notified_at', 'updated_at'])

    def convert(self, booking_id: uuid.UUID):
        """Mark as converted into a booking."""
        self.status = self.Status.CONVERTED
        self.converted_booking_id = booking_id
        if not self.notified_at:
            self.notified_at = timezone.now()
        self.save(update_fields=['status', 'converted_booking_id', 'notified_at', 'updated_at'])

    # ==========================================================================
    # Query Methods
    # ==========================================================================

    @classmethod
    def waiting_for(cls, hotel_id: str, check_in: date, check_out: date):
        """Waiting entries overlapping [check_in, check_out), oldest first."""
        return cls.overlapping_range(
            check_in, check_out, hotel_id=hotel_id, status=cls.Status.WAITING
        ).order_by('created_at', 'id')
