from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils import timezone


def operating_hours():
    return (
        int(getattr(settings, "OPENING_HOUR", 7)),
        int(getattr(settings, "CLOSING_HOUR", 19)),
    )


def horizon():
    return timedelta(days=int(getattr(settings, "BOOKING_HORIZON_DAYS", 30)))


def within_operating_hours(value):
    opening, closing = operating_hours()
    return opening <= timezone.localtime(value).hour < closing


def window_errors(start, end, now=None):
    """
    Collect every rule the [start, end) window breaks, keyed by field.
    Rules: both ends inside operating hours (local time), start not in the
    past, end after start, start within the booking horizon from now and
    end within the same horizon from start.
    """
    now = now or timezone.now()
    opening, closing = operating_hours()
    limit = horizon()
    errors = {}

    def add(field, message):
        errors.setdefault(field, []).append(message)

    hours_msg = f"Pickup and return must be between {opening:02d}:00 and {closing:02d}:00."
    if start is not None and not within_operating_hours(start):
        add("start_at", hours_msg)
    if end is not None and not within_operating_hours(end):
        add("end_at", hours_msg)

    if start is not None:
        if start < now:
            add("start_at", "Start time cannot be in the past.")
        elif start > now + limit:
            add("start_at", f"Bookings can be made at most {limit.days} days ahead.")

    if start is not None and end is not None:
        if end <= start:
            add("end_at", "End time must be after start time.")
        elif end > start + limit:
            add("end_at", f"A rental cannot be longer than {limit.days} days.")

    return errors


def validate_booking_window(start, end, now=None):
    errors = window_errors(start, end, now=now)
    if errors:
        raise ValidationError(errors)


def reconcile_window(start, end):
    """Drop an end that no longer follows a newly chosen start."""
    if start is not None and end is not None and end <= start:
        return start, None
    return start, end
