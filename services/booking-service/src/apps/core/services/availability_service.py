# services/booking-service/src/apps/core/services/availability_service.py
"""
Availability Service

Decides whether a hotel can take a booking for a room type and stay.
"""

import uuid
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from apps.core.models import BookingRoom, MaintenanceWindow

from .inventory_service import InventoryService

logger = logging.getLogger(__name__)


REASON_MAINTENANCE = 'maintenance'
REASON_BOOKED_OUT = 'booked_out'


@dataclass(frozen=True)
class AvailabilityResult:
    """Outcome of one availability check. Both flags are independent."""

    booking_conflict: bool
    maintenance_conflict: bool
    total_rooms: int = 0
    committed_rooms: int = 0

    @property
    def available_rooms(self) -> int:
        return self.total_rooms - self.committed_rooms

    @property
    def has_conflict(self) -> bool:
        return self.booking_conflict or self.maintenance_conflict

    @property
    def reason(self) -> Optional[str]:
        """Maintenance takes priority when both conflicts are present."""
        if self.maintenance_conflict:
            return REASON_MAINTENANCE
        if self.booking_conflict:
            return REASON_BOOKED_OUT
        return None


class AvailabilityService:
    """
    Service for availability checks.

    Handles:
    - Committed room counts for a stay
    - Maintenance window conflicts
    - Combined availability decisions

    Nothing here is cached: inventory and bookings may change between
    calls, so every decision is recomputed.
    """

    def __init__(self, inventory: InventoryService = None):
        self.inventory = inventory or InventoryService()

    def committed_rooms(
        self,
        hotel_id: str,
        room_type_id: str,
        check_in: date,
        check_out: date,
        exclude_booking_id: uuid.UUID = None
    ) -> int:
        """Rooms of a type already held by pending/confirmed bookings."""
        return BookingRoom.committed_rooms(
            hotel_id, room_type_id, check_in, check_out,
            exclude_booking_id=exclude_booking_id
        )

    def has_maintenance_conflict(
        self,
        hotel_id: str,
        check_in: date,
        check_out: date
    ) -> bool:
        """Whether any maintenance window for the hotel overlaps the stay."""
        return MaintenanceWindow.overlapping(hotel_id, check_in, check_out).exists()

    def evaluate(
        self,
        hotel_id: str,
        room_type_id: str,
        requested_rooms: int,
        check_in: date,
        check_out: date,
        exclude_booking_id: uuid.UUID = None
    ) -> AvailabilityResult:
        """
        Check one room type for a stay.

        The catalog lookup runs first; if it fails the error propagates
        and no decision is made.
        """
        total = self.inventory.total_rooms(hotel_id, room_type_id)

        committed = self.committed_rooms(
            hotel_id, room_type_id, check_in, check_out,
            exclude_booking_id=exclude_booking_id
        )
        maintenance = self.has_maintenance_conflict(hotel_id, check_in, check_out)

        result = AvailabilityResult(
            booking_conflict=(total - committed) < requested_rooms,
            maintenance_conflict=maintenance,
            total_rooms=total,
            committed_rooms=committed,
        )

        if result.has_conflict:
            logger.info(
                f"Availability conflict ({result.reason}) for hotel {hotel_id} "
                f"room type {room_type_id} {check_in} to {check_out}: "
                f"{result.available_rooms} of {total} free, {requested_rooms} requested"
            )

        return result
