from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.core.exceptions import ValidationError
from django.utils import timezone

from bikerental.rentals.windows import (
    reconcile_window, validate_booking_window, window_errors, within_operating_hours,
)


def local(*args):
    return timezone.make_aware(datetime(*args))


NOW = local(2025, 3, 1, 8, 0)


def test_valid_window_has_no_errors():
    assert window_errors(local(2025, 3, 2, 9, 0), local(2025, 3, 3, 9, 0), now=NOW) == {}


def test_pickup_before_opening_rejected():
    errors = window_errors(local(2025, 3, 2, 5, 0), local(2025, 3, 2, 12, 0), now=NOW)
    assert errors == {"start_at": ["Pickup and return must be between 07:00 and 19:00."]}


def test_return_at_closing_hour_rejected():
    errors = window_errors(local(2025, 3, 2, 9, 0), local(2025, 3, 2, 19, 0), now=NOW)
    assert "end_at" in errors


def test_operating_hours_use_local_time():
    # 03:30 UTC is 09:00 in Asia/Kolkata
    utc_value = datetime(2025, 3, 2, 3, 30, tzinfo=dt_timezone.utc)
    assert within_operating_hours(utc_value)


def test_start_in_past_rejected():
    errors = window_errors(local(2025, 2, 28, 9, 0), local(2025, 3, 2, 9, 0), now=NOW)
    assert errors["start_at"] == ["Start time cannot be in the past."]


def test_start_beyond_horizon_rejected():
    start = local(2025, 4, 5, 9, 0)
    errors = window_errors(start, start + timedelta(hours=2), now=NOW)
    assert errors["start_at"] == ["Bookings can be made at most 30 days ahead."]


def test_end_must_follow_start():
    start = local(2025, 3, 2, 9, 0)
    errors = window_errors(start, start, now=NOW)
    assert errors["end_at"] == ["End time must be after start time."]


def test_rental_longer_than_horizon_rejected():
    start = local(2025, 3, 2, 9, 0)
    errors = window_errors(start, start + timedelta(days=31), now=NOW)
    assert errors["end_at"] == ["A rental cannot be longer than 30 days."]


def test_errors_are_collected_per_field():
    errors = window_errors(local(2025, 2, 28, 5, 0), local(2025, 2, 27, 20, 0), now=NOW)
    assert len(errors["start_at"]) == 2
    assert len(errors["end_at"]) == 2


def test_validate_raises_django_validation_error():
    with pytest.raises(ValidationError) as exc:
        validate_booking_window(local(2025, 3, 2, 5, 0), local(2025, 3, 2, 12, 0), now=NOW)
    assert "start_at" in exc.value.message_dict


def test_opening_hours_from_settings(settings):
    settings.OPENING_HOUR = 5
    assert window_errors(local(2025, 3, 2, 5, 0), local(2025, 3, 2, 12, 0), now=NOW) == {}


def test_reconcile_drops_stale_end():
    start = local(2025, 3, 5, 9, 0)
    assert reconcile_window(start, local(2025, 3, 4, 9, 0)) == (start, None)
    assert reconcile_window(start, start) == (start, None)
    later = local(2025, 3, 6, 9, 0)
    assert reconcile_window(start, later) == (start, later)
