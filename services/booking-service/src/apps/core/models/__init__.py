# services/booking-service/src/apps/core/models/__init__.py
"""
Booking Service Models
"""

from .booking import Booking, BookingRoom
from .maintenance import MaintenanceWindow
from .waitlist import WaitlistEntry
from .inventory_lock import InventoryLock

__all__ = [
    'Booking',
    'BookingRoom',
    'MaintenanceWindow',
    'WaitlistEntry',
    'InventoryLock',
]
