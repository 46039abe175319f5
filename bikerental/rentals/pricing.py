"""
Rental pricing: a flat fare covers the first INCLUDED_HOURS, every started
hour beyond that is billed at HOURLY_OVERAGE, fixed-price add-ons on top.

All amounts are whole rupees; the gateway wants paise (see `to_minor_units`).
"""
import math
from dataclasses import dataclass, asdict
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings

SECONDS_PER_HOUR = 3600


@dataclass(frozen=True)
class PriceQuote:
    hours: int
    base_amount: int
    overage_hours: int
    overage_amount: int
    addons: dict
    addons_amount: int
    total: int
    currency: str

    def as_dict(self):
        return asdict(self)


def tariff():
    conf = getattr(settings, "RENTAL_TARIFF", {})
    return {
        "BASE_FARE": int(conf.get("BASE_FARE", 500)),
        "INCLUDED_HOURS": int(conf.get("INCLUDED_HOURS", 24)),
        "HOURLY_OVERAGE": int(conf.get("HOURLY_OVERAGE", 22)),
        "ADDONS": dict(conf.get("ADDONS", {"extra_helmet": 50})),
    }


def rental_hours(start, end):
    """Started hours between two instants; a partial hour counts as a full one."""
    if end <= start:
        raise ValueError("end must be after start")
    seconds = (end - start) / timedelta(seconds=1)
    return math.ceil(seconds / SECONDS_PER_HOUR)


def quote(start, end, addons=()):
    """
    Price a rental window. `addons` is an iterable of add-on codes
    (e.g. ["extra_helmet"]); unknown codes raise ValueError.
    """
    rates = tariff()
    hours = rental_hours(start, end)
    overage_hours = max(0, hours - rates["INCLUDED_HOURS"])
    overage_amount = overage_hours * rates["HOURLY_OVERAGE"]

    chosen = {}
    for code in addons:
        if code not in rates["ADDONS"]:
            raise ValueError(f"Unknown add-on '{code}'")
        chosen[code] = rates["ADDONS"][code]
    addons_amount = sum(chosen.values())

    base = rates["BASE_FARE"]
    return PriceQuote(
        hours=hours,
        base_amount=base,
        overage_hours=overage_hours,
        overage_amount=overage_amount,
        addons=chosen,
        addons_amount=addons_amount,
        total=base + overage_amount + addons_amount,
        currency=getattr(settings, "PAYMENT_CURRENCY", "INR"),
    )


def booking_addons(extra_helmet=False):
    return ["extra_helmet"] if extra_helmet else []


def to_minor_units(amount):
    """Rupees -> paise, rounded half-up to an integer."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
