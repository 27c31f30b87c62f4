# services/booking-service/src/apps/core/services/maintenance_service.py
"""
Maintenance Service

Management of hotel maintenance windows.
"""

import uuid
import logging
from datetime import date
from typing import List

from django.core.exceptions import ValidationError as DjangoValidationError

from apps.core.models import MaintenanceWindow
from apps.core.serializers import MaintenanceWindowSerializer

from . import BookingValidationError, MaintenanceNotFoundError

logger = logging.getLogger(__name__)


class MaintenanceService:
    """
    Service for maintenance windows.

    A window blocks new bookings for the whole hotel while it exists,
    whatever its status; removing the closure means deleting the window.
    """

    def create_window(
        self,
        hotel_id: str,
        start_date: date,
        end_date: date,
        description: str = '',
        priority: str = MaintenanceWindow.Priority.MEDIUM,
        created_by: str = None
    ) -> MaintenanceWindow:
        """Schedule a maintenance window."""
        data = self._validate({
            'start_date': start_date,
            'end_date': end_date,
            'description': description or '',
            'priority': priority,
            'created_by': created_by,
        })

        window = MaintenanceWindow.objects.create(hotel_id=hotel_id, **data)

        logger.info(
            f"Created maintenance window {window.id} for hotel {hotel_id}: "
            f"{window.start_date} to {window.end_date}"
        )
        return window

    def get_window(self, window_id: uuid.UUID) -> MaintenanceWindow:
        """Get a maintenance window by ID."""
        try:
            return MaintenanceWindow.objects.get(id=window_id)
        except (MaintenanceWindow.DoesNotExist, ValueError, DjangoValidationError):
            raise MaintenanceNotFoundError(f"Maintenance window {window_id} not found")

    def list_windows(self, hotel_id: str = None, status: str = None) -> List[MaintenanceWindow]:
        """List maintenance windows, latest start first."""
        queryset = MaintenanceWindow.objects.all()

        if hotel_id:
            queryset = queryset.filter(hotel_id=hotel_id)
        if status:
            queryset = queryset.filter(status=status)

        return list(queryset.order_by('-start_date'))

    def update_window(self, window_id: uuid.UUID, **fields) -> MaintenanceWindow:
        """Update a maintenance window. Dates are re-validated together."""
        window = self.get_window(window_id)
        data = self._validate(fields, instance=window)

        for field, value in data.items():
            setattr(window, field, value)
        window.save()

        logger.info(f"Updated maintenance window {window_id}")
        return window

    def delete_window(self, window_id: uuid.UUID) -> None:
        """Delete a maintenance window, lifting the closure."""
        window = self.get_window(window_id)
        window.delete()

        logger.info(f"Deleted maintenance window {window_id}")

    @staticmethod
    def _validate(data: dict, instance: MaintenanceWindow = None) -> dict:
        serializer = MaintenanceWindowSerializer(
            instance=instance,
            data=data,
            partial=instance is not None
        )
        if not serializer.is_valid():
            raise BookingValidationError(
                errors=serializer.errors,
                detail='Invalid maintenance window.'
            )
        return serializer.validated_data
