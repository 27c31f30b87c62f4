# services/booking-service/src/apps/core/services/inventory_service.py
"""
Inventory Service

Room inventory lookups against the hotel catalog.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict

import httpx
from asgiref.sync import async_to_sync

from shared.common.clients import CircuitBreakerError, HotelCatalogClient

from . import UpstreamUnavailableError

logger = logging.getLogger(__name__)


class InventoryService:
    """
    Service for reading room inventory from the hotel catalog.

    Every call goes to the catalog: counts are a snapshot at call time
    and are never cached.
    """

    def __init__(self, client: HotelCatalogClient = None):
        self.client = client or HotelCatalogClient()

    def total_rooms(self, hotel_id: str, room_type_id: str) -> int:
        """Total physical rooms of a type at a hotel."""
        response = self._call(
            self.client.get_room_type_count, hotel_id, room_type_id
        )

        count = response.get('count') if isinstance(response, dict) else None
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            logger.error(
                f"Malformed room count for hotel {hotel_id} "
                f"room type {room_type_id}: {response!r}"
            )
            raise UpstreamUnavailableError(
                f"Hotel catalog returned an invalid room count for room type {room_type_id}"
            )

        return count

    def price_per_night(self, hotel_id: str, room_type_id: str) -> Decimal:
        """Nightly price of a room type."""
        room_type = self._call(self.client.get_room_type, hotel_id, room_type_id)

        try:
            return Decimal(str(room_type['pricePerNight']))
        except (KeyError, TypeError, InvalidOperation):
            raise UpstreamUnavailableError(
                f"Hotel catalog returned no price for room type {room_type_id}"
            )

    def _call(self, method, *args) -> Dict[str, Any]:
        try:
            return async_to_sync(method)(*args)
        except (httpx.HTTPError, httpx.InvalidURL, CircuitBreakerError, ValueError) as e:
            logger.error(f"Hotel catalog lookup failed: {e!r}")
            raise UpstreamUnavailableError(
                f"Hotel catalog is unavailable: {e}"
            ) from e
