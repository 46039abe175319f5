from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from bikerental.rentals import pricing


def _start():
    return timezone.make_aware(datetime(2025, 3, 10, 9, 0))


def test_first_day_is_flat_fare():
    q = pricing.quote(_start(), _start() + timedelta(hours=24))
    assert q.hours == 24
    assert q.overage_hours == 0
    assert q.total == 500


def test_short_rental_still_pays_base_fare():
    q = pricing.quote(_start(), _start() + timedelta(hours=2))
    assert q.hours == 2
    assert q.total == 500


def test_hours_beyond_first_day_are_billed_hourly():
    q = pricing.quote(_start(), _start() + timedelta(hours=30))
    assert q.overage_hours == 6
    assert q.overage_amount == 132
    assert q.total == 632


def test_partial_hour_is_rounded_up():
    q = pricing.quote(_start(), _start() + timedelta(hours=24, minutes=1))
    assert q.hours == 25
    assert q.total == 522


def test_extra_helmet_addon():
    q = pricing.quote(_start(), _start() + timedelta(hours=24), pricing.booking_addons(True))
    assert q.addons == {"extra_helmet": 50}
    assert q.total == 550
    assert q.as_dict()["addons_amount"] == 50


def test_unknown_addon_rejected():
    with pytest.raises(ValueError):
        pricing.quote(_start(), _start() + timedelta(hours=3), ["jetpack"])


def test_empty_or_reversed_window_rejected():
    with pytest.raises(ValueError):
        pricing.rental_hours(_start(), _start())
    with pytest.raises(ValueError):
        pricing.rental_hours(_start(), _start() - timedelta(hours=1))


def test_tariff_comes_from_settings(settings):
    settings.RENTAL_TARIFF = {"BASE_FARE": 300, "INCLUDED_HOURS": 12, "HOURLY_OVERAGE": 10, "ADDONS": {}}
    q = pricing.quote(_start(), _start() + timedelta(hours=14))
    assert q.total == 320


def test_minor_units():
    assert pricing.to_minor_units(Decimal("632.00")) == 63200
    assert pricing.to_minor_units(Decimal("10.005")) == 1001
    assert pricing.to_minor_units(500) == 50000
