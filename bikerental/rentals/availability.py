"""
Bike availability.

Two questions are answered here and they are deliberately different:

* `bike_availability` / `all_bikes_availability` give the storefront snapshot:
  a bike is "unavailable" while any occupying booking still has its end ahead
  of `now`, and `next_available_at` is the earliest such end.
* `is_window_available` is the real conflict check used when a booking is
  created or moved: two windows clash iff they overlap.

Snapshot reads fail open; a broken datastore must not hide the catalog.
"""
import logging
from dataclasses import dataclass, asdict
from datetime import datetime

from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError
from django.db.models import Min
from django.utils import timezone

from .models import Booking

logger = logging.getLogger(__name__)

AGGREGATE_CACHE_KEY = "availability:all"


def snapshot_cache_key(bike_id):
    return f"availability:bike:{bike_id}"


def cache_ttl():
    return int(getattr(settings, "AVAILABILITY_CACHE_SECONDS", 30))


@dataclass(frozen=True)
class AvailabilitySnapshot:
    available: bool
    next_available_at: datetime = None
    current_booking: dict = None

    def as_dict(self):
        return asdict(self)


AVAILABLE = AvailabilitySnapshot(available=True)


def occupying_bookings(now=None):
    now = now or timezone.now()
    return Booking.objects.filter(status__in=Booking.OCCUPYING_STATUSES, end_at__gte=now)


def _evaluate(bike_id, now):
    blocking = (
        occupying_bookings(now)
        .filter(bike_id=bike_id)
        .order_by("end_at")
        .values("end_at", "status")
        .first()
    )
    if blocking is None:
        return AVAILABLE
    return AvailabilitySnapshot(
        available=False,
        next_available_at=blocking["end_at"],
        current_booking={"end_at": blocking["end_at"], "status": blocking["status"]},
    )


def bike_availability(bike_id, now=None, use_cache=True):
    """Snapshot for one bike. Cached only for the default 'now'."""
    cacheable = use_cache and now is None
    if cacheable:
        cached = cache.get(snapshot_cache_key(bike_id))
        if cached is not None:
            return cached

    try:
        snapshot = _evaluate(bike_id, now or timezone.now())
    except DatabaseError:
        logger.warning("Availability lookup failed for bike %s; reporting available", bike_id, exc_info=True)
        return AVAILABLE

    if cacheable:
        cache.set(snapshot_cache_key(bike_id), snapshot, cache_ttl())
    return snapshot


def all_bikes_availability(now=None, use_cache=True):
    """
    {bike_id: earliest end_at of a still-running occupying booking}.
    Bikes missing from the map are available.
    """
    cacheable = use_cache and now is None
    if cacheable:
        cached = cache.get(AGGREGATE_CACHE_KEY)
        if cached is not None:
            return cached

    try:
        rows = (
            occupying_bookings(now)
            .values("bike_id")
            .annotate(next_available_at=Min("end_at"))
        )
        result = {row["bike_id"]: row["next_available_at"] for row in rows}
    except DatabaseError:
        logger.warning("Aggregate availability lookup failed; reporting all bikes available", exc_info=True)
        return {}

    if cacheable:
        cache.set(AGGREGATE_CACHE_KEY, result, cache_ttl())
    return result


def conflicting_bookings(bike_id, start, end, exclude=None):
    qs = Booking.objects.filter(
        bike_id=bike_id,
        status__in=Booking.OCCUPYING_STATUSES,
        start_at__lt=end,
        end_at__gt=start,
    )
    if exclude is not None:
        qs = qs.exclude(pk=getattr(exclude, "pk", exclude))
    return qs


def is_window_available(bike_id, start, end, exclude=None):
    return not conflicting_bookings(bike_id, start, end, exclude=exclude).exists()


def invalidate(bike_id=None):
    keys = [AGGREGATE_CACHE_KEY]
    if bike_id is not None:
        keys.append(snapshot_cache_key(bike_id))
    cache.delete_many(keys)
