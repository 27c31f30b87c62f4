# shared/common/mixins.py
"""
Reusable Model Mixins
"""

import uuid
from datetime import date

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """Random UUID primary key, safe to hand to other services."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class Meta:
        abstract = True


class TimestampMixin(models.Model):
    """Creation and last-modification timestamps."""

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class DateRangeMixin:
    """
    Overlap lookups for models holding a date range.

    Ranges are half-open [start, end): a range ending on the day another
    starts does not overlap it. Subclasses name their two date fields
    in ``date_range_fields``.
    """

    date_range_fields = ('start_date', 'end_date')

    @classmethod
    def overlapping_range(cls, start: date, end: date, **filters):
        start_field, end_field = cls.date_range_fields
        return cls.objects.filter(
            **{f'{start_field}__lt': end, f'{end_field}__gt': start},
            **filters
        )
