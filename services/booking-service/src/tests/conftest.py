# services/booking-service/src/tests/conftest.py
"""
Pytest Configuration and Fixtures

Provides common fixtures for booking service tests.
"""

import uuid
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from django.core.cache import caches

from apps.core.models import Booking, BookingRoom, MaintenanceWindow, WaitlistEntry
from apps.core.services import (
    BookingService,
    InventoryService,
    LoyaltyService,
    NotificationService,
    WaitlistService,
)


@pytest.fixture(autouse=True)
def catalog_cache():
    """Start every test with an empty catalog cache."""
    caches['catalog'].clear()
    yield caches['catalog']
    caches['catalog'].clear()


@pytest.fixture
def hotel_id():
    """Provide a test hotel ID."""
    return 'hotel-1'


@pytest.fixture
def room_type_id():
    """Provide a test room type ID."""
    return 'deluxe'


@pytest.fixture
def user_id():
    """Provide a test user ID."""
    return str(uuid.uuid4())


@pytest.fixture
def check_in():
    return date(2030, 6, 10)


@pytest.fixture
def check_out(check_in):
    return check_in + timedelta(days=3)


# =============================================================================
# Collaborators
# =============================================================================

@pytest.fixture
def inventory():
    """Inventory lookup with three rooms of every type."""
    inventory = MagicMock(spec=InventoryService)
    inventory.total_rooms.return_value = 3
    inventory.price_per_night.return_value = Decimal('100.00')
    return inventory


@pytest.fixture
def notification_client():
    client = MagicMock()
    client.notify = AsyncMock(return_value={})
    return client


@pytest.fixture
def identity_client():
    client = MagicMock()
    client.award_loyalty = AsyncMock(return_value={})
    return client


@pytest.fixture
def notifications(notification_client):
    return NotificationService(client=notification_client)


@pytest.fixture
def loyalty(identity_client):
    return LoyaltyService(client=identity_client)


@pytest.fixture
def waitlist_service(notifications):
    return WaitlistService(notifications=notifications)


@pytest.fixture
def booking_service(inventory, notifications, loyalty):
    return BookingService(
        inventory=inventory,
        notifications=notifications,
        loyalty=loyalty,
    )


@pytest.fixture
def sent_types(notification_client):
    """Notification types sent so far, in call order."""
    def _sent_types():
        return [c.args[0] for c in notification_client.notify.call_args_list]
    return _sent_types


# =============================================================================
# Factories
# =============================================================================

@pytest.fixture
def sample_booking_data(check_in, check_out, room_type_id):
    """Provide sample booking creation data."""
    return {
        'check_in': check_in.isoformat(),
        'check_out': check_out.isoformat(),
        'rooms': [{'room_type_id': room_type_id, 'number_of_rooms': 1, 'price_per_night': '100.00'}],
        'email': 'guest@example.com',
        'first_name': 'Ada',
        'last_name': 'Lovelace',
        'phone': '+4712345678',
    }


@pytest.fixture
def make_booking(hotel_id, room_type_id, check_in, check_out):
    """Factory for bookings stored directly, bypassing availability checks."""
    def _make_booking(rooms=1, status=Booking.Status.CONFIRMED, room_type=None, **kwargs):
        kwargs.setdefault('hotel_id', hotel_id)
        kwargs.setdefault('check_in', check_in)
        kwargs.setdefault('check_out', check_out)
        kwargs.setdefault('email', 'holder@example.com')
        kwargs.setdefault('payment_status', Booking.PaymentStatus.PAID)
        kwargs.setdefault('total_cost', Decimal('300.00'))

        booking = Booking.objects.create(status=status, **kwargs)
        BookingRoom.objects.create(
            booking=booking,
            room_type_id=room_type or room_type_id,
            number_of_rooms=rooms,
            price_per_night=Decimal('100.00'),
        )
        return booking
    return _make_booking


@pytest.fixture
def make_waitlist_entry(hotel_id, check_in, check_out):
    """Factory for waitlist entries."""
    def _make_waitlist_entry(email=None, **kwargs):
        kwargs.setdefault('hotel_id', hotel_id)
        kwargs.setdefault('check_in', check_in)
        kwargs.setdefault('check_out', check_out)
        return WaitlistEntry.objects.create(
            email=email or f'{uuid.uuid4().hex[:8]}@example.com',
            **kwargs
        )
    return _make_waitlist_entry


@pytest.fixture
def make_maintenance_window(hotel_id, check_in, check_out):
    """Factory for maintenance windows."""
    def _make_maintenance_window(**kwargs):
        kwargs.setdefault('hotel_id', hotel_id)
        kwargs.setdefault('start_date', check_in)
        kwargs.setdefault('end_date', check_out)
        return MaintenanceWindow.objects.create(**kwargs)
    return _make_maintenance_window
