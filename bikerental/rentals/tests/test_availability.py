from datetime import timedelta
from unittest import mock

import pytest
from django.core.cache import cache
from django.db import DatabaseError
from django.utils import timezone

from bikerental.rentals import availability
from bikerental.rentals.factories import BikeFactory, BookingFactory, opening_time
from bikerental.rentals.models import Booking


@pytest.mark.django_db
class TestSnapshot:
    def setup_method(self):
        self.bike = BikeFactory()

    def test_bike_without_bookings_is_available(self):
        snap = availability.bike_availability(self.bike.pk)
        assert snap.available is True
        assert snap.next_available_at is None
        assert snap.current_booking is None

    def test_running_booking_blocks_until_it_ends(self):
        booking = BookingFactory(bike=self.bike, status=Booking.CONFIRMED)
        snap = availability.bike_availability(self.bike.pk)
        assert snap.available is False
        assert snap.next_available_at == booking.end_at
        assert snap.current_booking == {"end_at": booking.end_at, "status": Booking.CONFIRMED}

    def test_earliest_end_wins(self):
        first = BookingFactory(bike=self.bike, start_at=opening_time(2), end_at=opening_time(2, 15))
        BookingFactory(bike=self.bike, start_at=opening_time(5), end_at=opening_time(6))
        snap = availability.bike_availability(self.bike.pk)
        assert snap.next_available_at == first.end_at

    def test_cancelled_and_completed_bookings_do_not_block(self):
        BookingFactory(bike=self.bike, status=Booking.CANCELLED)
        BookingFactory(bike=self.bike, status=Booking.COMPLETED)
        assert availability.bike_availability(self.bike.pk).available is True

    def test_ended_booking_does_not_block(self):
        booking = BookingFactory(bike=self.bike, status=Booking.ACTIVE)
        later = booking.end_at + timedelta(minutes=1)
        assert availability.bike_availability(self.bike.pk, now=later).available is True

    def test_database_error_fails_open(self):
        with mock.patch.object(availability, "_evaluate", side_effect=DatabaseError("boom")):
            snap = availability.bike_availability(self.bike.pk)
        assert snap == availability.AVAILABLE
        # failures are not cached
        assert cache.get(availability.snapshot_cache_key(self.bike.pk)) is None

    def test_snapshot_is_cached_and_invalidated_on_booking_change(self):
        assert availability.bike_availability(self.bike.pk).available is True
        assert cache.get(availability.snapshot_cache_key(self.bike.pk)) is not None

        booking = BookingFactory(bike=self.bike)
        assert cache.get(availability.snapshot_cache_key(self.bike.pk)) is None
        assert availability.bike_availability(self.bike.pk).available is False

        booking.status = Booking.CANCELLED
        booking.save()
        assert availability.bike_availability(self.bike.pk).available is True

    def test_explicit_now_bypasses_cache(self):
        availability.bike_availability(self.bike.pk, now=timezone.now())
        assert cache.get(availability.snapshot_cache_key(self.bike.pk)) is None


@pytest.mark.django_db
class TestAggregate:
    def test_maps_busy_bikes_to_earliest_end(self):
        busy, free = BikeFactory(), BikeFactory()
        b1 = BookingFactory(bike=busy, start_at=opening_time(2), end_at=opening_time(2, 12))
        BookingFactory(bike=busy, start_at=opening_time(4), end_at=opening_time(4, 12))
        result = availability.all_bikes_availability()
        assert result == {busy.pk: b1.end_at}
        assert free.pk not in result

    def test_cached_until_booking_saved(self):
        bike = BikeFactory()
        assert availability.all_bikes_availability() == {}
        assert cache.get(availability.AGGREGATE_CACHE_KEY) == {}
        BookingFactory(bike=bike)
        assert cache.get(availability.AGGREGATE_CACHE_KEY) is None
        assert bike.pk in availability.all_bikes_availability()

    def test_database_error_reports_everything_available(self):
        with mock.patch.object(availability, "occupying_bookings", side_effect=DatabaseError("boom")):
            assert availability.all_bikes_availability() == {}


@pytest.mark.django_db
class TestWindowConflicts:
    def setup_method(self):
        self.bike = BikeFactory()
        self.existing = BookingFactory(
            bike=self.bike, start_at=opening_time(3, 9), end_at=opening_time(4, 9),
        )

    def test_overlapping_window_conflicts(self):
        assert not availability.is_window_available(self.bike.pk, opening_time(3, 15), opening_time(4, 15))
        assert not availability.is_window_available(self.bike.pk, opening_time(2, 9), opening_time(5, 9))

    def test_touching_windows_do_not_conflict(self):
        assert availability.is_window_available(self.bike.pk, opening_time(4, 9), opening_time(5, 9))
        assert availability.is_window_available(self.bike.pk, opening_time(2, 9), opening_time(3, 9))

    def test_other_bike_is_free(self):
        other = BikeFactory()
        assert availability.is_window_available(other.pk, opening_time(3, 9), opening_time(4, 9))

    def test_cancelled_booking_frees_window(self):
        self.existing.status = Booking.CANCELLED
        self.existing.save()
        assert availability.is_window_available(self.bike.pk, opening_time(3, 9), opening_time(4, 9))

    def test_booking_can_be_excluded_when_moving_itself(self):
        assert availability.is_window_available(
            self.bike.pk, opening_time(3, 12), opening_time(4, 12), exclude=self.existing,
        )
