# services/booking-service/src/apps/core/models/maintenance.py
"""
Maintenance Window Model

Hotel-wide closures that block new bookings.
"""

from datetime import date

from django.db import models
from django.db.models import F, Q

from shared.common.mixins import UUIDPrimaryKeyMixin, TimestampMixin, DateRangeMixin


class MaintenanceWindow(UUIDPrimaryKeyMixin, TimestampMixin, DateRangeMixin, models.Model):
    """
    Scheduled maintenance for a hotel.

    Any window overlapping a requested stay blocks booking for the whole
    hotel, whatever the room type.
    """

    class Priority(models.TextChoices):
        LOW = 'low', 'Low'
        MEDIUM = 'medium', 'Medium'
        HIGH = 'high', 'High'

    class Status(models.TextChoices):
        SCHEDULED = 'scheduled', 'Scheduled'
        IN_PROGRESS = 'in_progress', 'In Progress'
        COMPLETED = 'completed', 'Completed'

    hotel_id = models.CharField(max_length=64, db_index=True)
    description = models.TextField(blank=True, default='')

    start_date = models.DateField()
    end_date = models.DateField()

    priority = models.CharField(
        max_length=10,
        choices=Priority.choices,
        default=Priority.MEDIUM
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.SCHEDULED
    )

    created_by = models.CharField(max_length=64, blank=True, null=True)

    class Meta:
        db_table = 'maintenance_windows'
        ordering = ['-start_date']
        indexes = [
            models.Index(fields=['hotel_id', 'start_date', 'end_date']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_date__gt=F('start_date')),
                name='maintenance_end_after_start',
            ),
        ]

    def __str__(self):
        return f"Maintenance {self.hotel_id}: {self.start_date} to {self.end_date}"

    @classmethod
    def overlapping(cls, hotel_id: str, start: date, end: date):
        """Windows for a hotel intersecting [start, end)."""
        return cls.overlapping_range(start, end, hotel_id=hotel_id)
