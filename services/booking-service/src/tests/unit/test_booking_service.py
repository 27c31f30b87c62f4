# services/booking-service/src/tests/unit/test_booking_service.py
"""
Unit Tests for BookingService

Tests for booking creation, updates, cancellation, and queries.
"""

import uuid
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch

import httpx
import pytest
from django.db import transaction

from apps.core.models import Booking, BookingRoom, InventoryLock, MaintenanceWindow, WaitlistEntry
from apps.core.services import (
    BookingNotFoundError,
    BookingService,
    BookingValidationError,
    MaintenanceService,
    UpstreamUnavailableError,
)


@pytest.mark.django_db
class TestCreateBooking:
    """Tests for BookingService.create_booking."""

    def test_create_booking(
        self, booking_service, sample_booking_data, sent_types, identity_client,
        hotel_id, user_id, check_in, check_out
    ):
        result = booking_service.create_booking(hotel_id, sample_booking_data, user_id=user_id)

        assert result.ok
        booking = result.booking
        assert booking.status == Booking.Status.CONFIRMED
        assert booking.payment_status == Booking.PaymentStatus.PAID
        assert booking.check_in == check_in
        assert booking.check_out == check_out
        assert booking.total_cost == Decimal('300.00')
        assert [(r.room_type_id, r.number_of_rooms) for r in booking.rooms.all()] == [('deluxe', 1)]

        assert sent_types() == ['booking_confirmation']
        identity_client.award_loyalty.assert_awaited_once()
        assert identity_client.award_loyalty.call_args.args[:2] == (user_id, 30)

    def test_explicit_total_cost(self, booking_service, sample_booking_data, hotel_id):
        sample_booking_data['total_cost'] = '250.00'

        result = booking_service.create_booking(hotel_id, sample_booking_data)

        assert result.booking.total_cost == Decimal('250.00')

    def test_total_from_several_lines(self, booking_service, sample_booking_data, hotel_id):
        sample_booking_data['rooms'] = [
            {'room_type_id': 'deluxe', 'number_of_rooms': 2, 'price_per_night': '100.00'},
            {'room_type_id': 'suite', 'number_of_rooms': 1, 'price_per_night': '250.00'},
            {'room_type_id': 'single'},
        ]

        result = booking_service.create_booking(hotel_id, sample_booking_data)

        # 3 nights: 2 x 100 + 1 x 250, unpriced line adds nothing
        assert result.booking.total_cost == Decimal('1350.00')
        assert [r.room_type_id for r in result.booking.rooms.all()] == ['deluxe', 'suite', 'single']

    def test_anonymous_booking_skips_loyalty(
        self, booking_service, sample_booking_data, identity_client, hotel_id
    ):
        result = booking_service.create_booking(hotel_id, sample_booking_data)

        assert result.ok
        assert result.booking.user_id is None
        identity_client.award_loyalty.assert_not_awaited()

    @pytest.mark.parametrize('changes,field', [
        ({'check_out': '2030-06-10'}, 'check_out'),
        ({'check_out': '2030-06-01'}, 'check_out'),
        ({'check_in': 'next tuesday'}, 'check_in'),
        ({'rooms': []}, 'rooms'),
        ({'rooms': [{'room_type_id': 'deluxe', 'number_of_rooms': 0}]}, 'rooms'),
        ({'email': 'not-an-email'}, 'email'),
    ])
    def test_validation_before_side_effects(
        self, booking_service, sample_booking_data, inventory, notification_client,
        identity_client, hotel_id, changes, field
    ):
        sample_booking_data.update(changes)

        with pytest.raises(BookingValidationError) as exc_info:
            booking_service.create_booking(hotel_id, sample_booking_data, user_id='user-1')

        assert field in exc_info.value.errors
        assert exc_info.value.status_code == 400
        inventory.total_rooms.assert_not_called()
        notification_client.notify.assert_not_awaited()
        identity_client.award_loyalty.assert_not_awaited()
        assert not Booking.objects.exists()
        assert not InventoryLock.objects.exists()

    def test_missing_rooms(self, booking_service, sample_booking_data, hotel_id):
        del sample_booking_data['rooms']

        with pytest.raises(BookingValidationError) as exc_info:
            booking_service.create_booking(hotel_id, sample_booking_data)

        assert 'rooms' in exc_info.value.errors

    def test_booked_out(
        self, booking_service, sample_booking_data, make_booking, sent_types, hotel_id
    ):
        make_booking(rooms=3)

        result = booking_service.create_booking(hotel_id, sample_booking_data)

        assert not result.ok
        assert result.booking is None
        assert result.conflict.reason == 'booked_out'
        assert result.conflict.room_type_id == 'deluxe'
        assert result.conflict.message == 'Room type deluxe is not available for the selected dates'
        assert result.conflict.waitlist_entry is None
        assert Booking.objects.count() == 1
        assert sent_types() == []

    def test_booked_out_joins_waitlist(
        self, booking_service, sample_booking_data, make_booking, hotel_id, check_in, check_out
    ):
        make_booking(rooms=3)
        sample_booking_data['auto_waitlist'] = 'true'

        result = booking_service.create_booking(hotel_id, sample_booking_data)

        entry = result.conflict.waitlist_entry
        assert entry is not None
        assert entry.email == 'guest@example.com'
        assert (entry.check_in, entry.check_out) == (check_in, check_out)
        assert entry.status == WaitlistEntry.Status.WAITING

        again = booking_service.create_booking(hotel_id, sample_booking_data)

        assert again.conflict.waitlist_entry.id == entry.id
        assert WaitlistEntry.objects.count() == 1

    def test_auto_waitlist_needs_email(
        self, booking_service, sample_booking_data, make_booking, hotel_id
    ):
        make_booking(rooms=3)
        sample_booking_data['auto_waitlist'] = True
        sample_booking_data['email'] = ''

        result = booking_service.create_booking(hotel_id, sample_booking_data)

        assert result.conflict.waitlist_entry is None
        assert not WaitlistEntry.objects.exists()

    def test_maintenance_conflict(
        self, booking_service, sample_booking_data, make_maintenance_window, hotel_id
    ):
        make_maintenance_window()

        result = booking_service.create_booking(hotel_id, sample_booking_data)

        assert result.conflict.reason == 'maintenance'
        assert result.conflict.message == 'Hotel is under maintenance'
        assert not Booking.objects.exists()

    def test_first_conflicting_line_reported(
        self, booking_service, sample_booking_data, inventory, hotel_id
    ):
        inventory.total_rooms.side_effect = lambda hotel, room_type: {'deluxe': 3, 'suite': 0}.get(room_type, 3)
        sample_booking_data['rooms'] = [
            {'room_type_id': 'deluxe', 'number_of_rooms': 1},
            {'room_type_id': 'suite', 'number_of_rooms': 1},
            {'room_type_id': 'single', 'number_of_rooms': 1},
        ]

        result = booking_service.create_booking(hotel_id, sample_booking_data)

        assert result.conflict.room_type_id == 'suite'
        assert [c.args[1] for c in inventory.total_rooms.call_args_list] == ['deluxe', 'suite']

    def test_repeated_room_type_lines_share_inventory(
        self, booking_service, sample_booking_data, hotel_id
    ):
        sample_booking_data['rooms'] = [
            {'room_type_id': 'deluxe', 'number_of_rooms': 2},
            {'room_type_id': 'deluxe', 'number_of_rooms': 2},
        ]

        result = booking_service.create_booking(hotel_id, sample_booking_data)

        assert result.conflict.reason == 'booked_out'

    def test_upstream_failure_aborts_without_writes(
        self, booking_service, sample_booking_data, inventory, notification_client, hotel_id
    ):
        inventory.total_rooms.side_effect = UpstreamUnavailableError('catalog down')

        with pytest.raises(UpstreamUnavailableError):
            booking_service.create_booking(hotel_id, sample_booking_data)

        assert not Booking.objects.exists()
        assert not BookingRoom.objects.exists()
        assert not InventoryLock.objects.exists()
        notification_client.notify.assert_not_awaited()

    def test_side_effect_failures_do_not_fail_booking(
        self, booking_service, sample_booking_data, notification_client, identity_client,
        hotel_id, user_id
    ):
        notification_client.notify.side_effect = httpx.ConnectError('down')
        identity_client.award_loyalty.side_effect = httpx.ReadTimeout('slow')

        result = booking_service.create_booking(hotel_id, sample_booking_data, user_id=user_id)

        assert result.ok
        assert Booking.objects.filter(id=result.booking.id).exists()

    def test_unexpected_loyalty_error_still_confirms_booking(
        self, booking_service, sample_booking_data, identity_client, sent_types,
        hotel_id, user_id
    ):
        identity_client.award_loyalty.side_effect = RuntimeError('identity client bug')

        result = booking_service.create_booking(hotel_id, sample_booking_data, user_id=user_id)

        assert result.ok
        assert Booking.objects.filter(id=result.booking.id).exists()
        assert sent_types() == ['booking_confirmation']

    def test_unexpected_notification_error_does_not_fail_booking(
        self, booking_service, sample_booking_data, notification_client, identity_client,
        hotel_id, user_id
    ):
        notification_client.notify.side_effect = RuntimeError('notification client bug')

        result = booking_service.create_booking(hotel_id, sample_booking_data, user_id=user_id)

        assert result.ok
        assert Booking.objects.filter(id=result.booking.id).exists()
        identity_client.award_loyalty.assert_awaited_once()
        notification_client.notify.assert_awaited_once()

    def test_checks_run_under_inventory_locks(
        self, booking_service, sample_booking_data, hotel_id
    ):
        in_transaction = []

        def acquire_all(hotel, room_types):
            in_transaction.append(transaction.get_connection().in_atomic_block)
            return []

        sample_booking_data['rooms'] = [
            {'room_type_id': 'suite'},
            {'room_type_id': 'deluxe'},
        ]
        with patch.object(InventoryLock, 'acquire_all', side_effect=acquire_all) as mock_acquire:
            booking_service.create_booking(hotel_id, sample_booking_data)

        mock_acquire.assert_called_once_with(hotel_id, ['suite', 'deluxe'])
        assert in_transaction == [True]

    def test_converts_waitlist_entry(
        self, booking_service, sample_booking_data, make_waitlist_entry, hotel_id
    ):
        entry = make_waitlist_entry(email='guest@example.com')
        entry.mark_notified()
        sample_booking_data['waitlist_id'] = str(entry.id)

        result = booking_service.create_booking(hotel_id, sample_booking_data)

        entry.refresh_from_db()
        assert entry.status == WaitlistEntry.Status.CONVERTED
        assert entry.converted_booking_id == result.booking.id
        assert result.booking.waitlist_entry_id == entry.id

    def test_unknown_waitlist_id_is_not_fatal(
        self, booking_service, sample_booking_data, hotel_id
    ):
        sample_booking_data['waitlist_id'] = str(uuid.uuid4())

        result = booking_service.create_booking(hotel_id, sample_booking_data)

        assert result.ok
        assert result.booking.waitlist_entry_id is None

    def test_conflict_as_exception(
        self, booking_service, sample_booking_data, make_booking, hotel_id
    ):
        make_booking(rooms=3)
        sample_booking_data['auto_waitlist'] = True

        result = booking_service.create_booking(hotel_id, sample_booking_data)
        exc = result.conflict.as_exception()

        assert exc.status_code == 409
        assert exc.to_dict() == {
            'code': 'BOOKING_CONFLICT',
            'message': 'Room type deluxe is not available for the selected dates',
            'reason': 'booked_out',
            'roomTypeId': 'deluxe',
            'waitlistId': str(result.conflict.waitlist_entry.id),
        }


@pytest.mark.django_db
class TestUpdateBooking:
    """Tests for BookingService.update_booking."""

    def test_move_dates(self, booking_service, make_booking, sent_types, check_in, check_out):
        booking = make_booking(rooms=3)

        result = booking_service.update_booking(booking.id, {
            'check_in': (check_in + timedelta(days=1)).isoformat(),
            'check_out': (check_out + timedelta(days=1)).isoformat(),
        })

        assert result.ok
        booking.refresh_from_db()
        assert booking.check_in == check_in + timedelta(days=1)
        assert sent_types() == ['booking_updated']

    def test_conflict_leaves_booking_untouched(
        self, booking_service, make_booking, check_in, check_out
    ):
        booking = make_booking(rooms=1, check_in=check_out, check_out=check_out + timedelta(days=2))
        make_booking(rooms=3)

        result = booking_service.update_booking(booking.id, {'check_in': check_in.isoformat()})

        assert result.conflict.reason == 'booked_out'
        booking.refresh_from_db()
        assert booking.check_in == check_out

    def test_replace_rooms(self, booking_service, make_booking):
        booking = make_booking(rooms=1)

        result = booking_service.update_booking(booking.id, {
            'rooms': [{'room_type_id': 'suite', 'number_of_rooms': 2}],
        })

        assert result.ok
        assert [(r.room_type_id, r.number_of_rooms) for r in booking.rooms.all()] == [('suite', 2)]

    def test_replaced_rooms_are_checked(self, booking_service, make_booking, inventory):
        booking = make_booking(rooms=1)

        result = booking_service.update_booking(booking.id, {
            'rooms': [{'room_type_id': 'deluxe', 'number_of_rooms': 4}],
        })

        assert result.conflict.room_type_id == 'deluxe'
        assert booking.rooms.get().number_of_rooms == 1

    def test_status_only_skips_availability(self, booking_service, make_booking, inventory):
        booking = make_booking(status=Booking.Status.PENDING)

        result = booking_service.update_booking(booking.id, {'status': 'confirmed'})

        assert result.booking.status == Booking.Status.CONFIRMED
        inventory.total_rooms.assert_not_called()

    def test_cancel_via_update_wakes_waitlist(
        self, booking_service, make_booking, make_waitlist_entry, sent_types
    ):
        booking = make_booking()
        entry = make_waitlist_entry()

        result = booking_service.update_booking(booking.id, {'status': 'cancelled'})

        assert result.booking.status == Booking.Status.CANCELLED
        assert result.booking.cancelled_at is not None
        # Refunds belong to cancel_booking
        assert result.booking.payment_status == Booking.PaymentStatus.PAID
        entry.refresh_from_db()
        assert entry.status == WaitlistEntry.Status.NOTIFIED
        assert sent_types() == ['booking_updated', 'waitlist_available']

    def test_reactivating_cancelled_booking_is_checked(
        self, booking_service, make_booking
    ):
        booking = make_booking(status=Booking.Status.CANCELLED)
        make_booking(rooms=3)

        result = booking_service.update_booking(booking.id, {'status': 'confirmed'})

        assert result.conflict.reason == 'booked_out'
        booking.refresh_from_db()
        assert booking.status == Booking.Status.CANCELLED

    @pytest.mark.parametrize('data,field', [
        ({'status': 'archived'}, 'status'),
        ({'rooms': []}, 'rooms'),
        ({'check_in': '2030-06-20', 'check_out': '2030-06-19'}, 'check_out'),
        ({'check_in': '2030-06-13'}, 'check_out'),
    ])
    def test_invalid_update(self, booking_service, make_booking, inventory, data, field):
        booking = make_booking()

        with pytest.raises(BookingValidationError) as exc_info:
            booking_service.update_booking(booking.id, data)

        assert field in exc_info.value.errors
        inventory.total_rooms.assert_not_called()

    def test_unknown_booking(self, booking_service):
        with pytest.raises(BookingNotFoundError) as exc_info:
            booking_service.update_booking(uuid.uuid4(), {'status': 'confirmed'})

        assert exc_info.value.error_code == 'BOOKING_NOT_FOUND'


@pytest.mark.django_db
class TestCancelBooking:
    """Tests for BookingService.cancel_booking."""

    def test_cancel(self, booking_service, make_booking, make_waitlist_entry, sent_types):
        booking = make_booking()
        entry = make_waitlist_entry()

        cancelled = booking_service.cancel_booking(booking.id)

        assert cancelled.status == Booking.Status.CANCELLED
        assert cancelled.payment_status == Booking.PaymentStatus.REFUNDED
        assert cancelled.cancelled_at is not None
        entry.refresh_from_db()
        assert entry.status == WaitlistEntry.Status.NOTIFIED
        assert sent_types() == ['booking_cancelled', 'waitlist_available']

    def test_cancel_twice(self, booking_service, make_booking):
        booking = make_booking()

        first = booking_service.cancel_booking(booking.id)
        second = booking_service.cancel_booking(booking.id)

        assert second.status == Booking.Status.CANCELLED
        assert second.payment_status == Booking.PaymentStatus.REFUNDED
        assert second.cancelled_at == first.cancelled_at

    def test_cancel_unpaid(self, booking_service, make_booking):
        booking = make_booking(payment_status=Booking.PaymentStatus.UNPAID)

        assert booking_service.cancel_booking(booking.id).payment_status == Booking.PaymentStatus.UNPAID

    def test_cancel_frees_inventory(
        self, booking_service, sample_booking_data, make_booking, hotel_id
    ):
        booking = make_booking(rooms=3)
        assert not booking_service.create_booking(hotel_id, sample_booking_data).ok

        booking_service.cancel_booking(booking.id)

        assert booking_service.create_booking(hotel_id, sample_booking_data).ok

    def test_notification_failure_still_cancels(
        self, booking_service, make_booking, notification_client
    ):
        booking = make_booking()
        notification_client.notify.side_effect = httpx.ConnectError('down')

        booking_service.cancel_booking(booking.id)

        booking.refresh_from_db()
        assert booking.status == Booking.Status.CANCELLED

    @pytest.mark.parametrize('booking_id', [uuid.uuid4(), 'not-a-uuid'])
    def test_unknown_booking(self, booking_service, booking_id):
        with pytest.raises(BookingNotFoundError):
            booking_service.cancel_booking(booking_id)


@pytest.mark.django_db
class TestBookingQueries:
    """Tests for booking listings and quotes."""

    def test_get_booking(self, booking_service, make_booking):
        booking = make_booking()
        assert booking_service.get_booking(booking.id) == booking

    def test_list_user_bookings(self, booking_service, make_booking, user_id):
        mine = make_booking(user_id=user_id)
        make_booking(user_id='someone-else')

        assert booking_service.list_user_bookings(user_id) == [mine]

    def test_list_hotel_bookings_newest_first(self, booking_service, make_booking, hotel_id):
        first = make_booking()
        second = make_booking()
        make_booking(hotel_id='hotel-2')
        Booking.objects.filter(pk=first.pk).update(created_at=second.created_at - timedelta(hours=1))

        assert booking_service.list_hotel_bookings(hotel_id) == [second, first]

    def test_list_bookings_filters(self, booking_service, make_booking, hotel_id):
        early = make_booking(check_in=date(2030, 1, 1), check_out=date(2030, 1, 3))
        late = make_booking(check_in=date(2030, 3, 1), check_out=date(2030, 3, 3))
        cancelled = make_booking(
            check_in=date(2030, 2, 1), check_out=date(2030, 2, 3),
            status=Booking.Status.CANCELLED
        )

        assert booking_service.list_bookings() == [late, cancelled, early]
        assert booking_service.list_bookings(status='cancelled') == [cancelled]
        assert booking_service.list_bookings(
            start_date=date(2030, 1, 15), end_date=date(2030, 2, 15)
        ) == [cancelled]
        assert booking_service.list_bookings(hotel_id='hotel-2') == []
        assert booking_service.list_bookings(limit=1) == [late]

    def test_quote(self, booking_service, inventory, hotel_id, room_type_id):
        inventory.price_per_night.return_value = Decimal('129.99')

        assert booking_service.quote(hotel_id, room_type_id, number_of_nights=3, room_count=2) == Decimal('779.94')
        inventory.price_per_night.assert_called_once_with(hotel_id, room_type_id)

    @pytest.mark.parametrize('nights,rooms', [(0, 1), (1, 0), (-2, 1), ('3', 1), (True, 1)])
    def test_quote_rejects_bad_counts(self, booking_service, inventory, hotel_id, room_type_id, nights, rooms):
        with pytest.raises(BookingValidationError):
            booking_service.quote(hotel_id, room_type_id, number_of_nights=nights, room_count=rooms)

        inventory.price_per_night.assert_not_called()


@pytest.mark.django_db
class TestEndToEndScenario:
    """Booked-out, maintenance and cancellation flow on a two-room hotel."""

    def test_scenario(
        self, booking_service, inventory, make_waitlist_entry, notification_client, hotel_id
    ):
        inventory.total_rooms.return_value = 2
        request = {
            'check_in': '2025-01-01',
            'check_out': '2025-01-05',
            'email': 'a@example.com',
            'rooms': [{'room_type_id': 'R', 'number_of_rooms': 2}],
        }

        booking_a = booking_service.create_booking(hotel_id, request).booking
        assert booking_a.status == Booking.Status.CONFIRMED

        request['rooms'] = [{'room_type_id': 'R', 'number_of_rooms': 1}]
        request['email'] = 'b@example.com'
        assert booking_service.create_booking(hotel_id, request).conflict.reason == 'booked_out'

        window = MaintenanceService().create_window(hotel_id, date(2025, 1, 1), date(2025, 1, 10))
        later = dict(request, check_in='2025-01-06', check_out='2025-01-08')
        assert booking_service.create_booking(hotel_id, later).conflict.reason == 'maintenance'
        assert booking_service.create_booking(hotel_id, request).conflict.reason == 'maintenance'

        waiting = make_waitlist_entry(
            email='w@example.com', check_in=date(2025, 1, 3), check_out=date(2025, 1, 7)
        )
        outside = make_waitlist_entry(
            email='x@example.com', check_in=date(2025, 1, 5), check_out=date(2025, 1, 7)
        )
        notification_client.notify.reset_mock()

        booking_service.cancel_booking(booking_a.id)

        waiting.refresh_from_db()
        outside.refresh_from_db()
        assert waiting.status == WaitlistEntry.Status.NOTIFIED
        assert outside.status == WaitlistEntry.Status.WAITING
        notified = [c.args[1] for c in notification_client.notify.call_args_list]
        assert notified == ['a@example.com', 'w@example.com']

        MaintenanceService().delete_window(window.id)
        assert MaintenanceWindow.objects.count() == 0
        assert booking_service.create_booking(hotel_id, request).ok
