"""
Feed projection.

Merges ride offers and standing passenger requests into one list for the
discovery screen. Each item gets a priority weight (lower first); inside a
weight, upcoming items come soonest-first and finished or past items come
most-recent-first. Pure read-side code: nothing here writes.
"""

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import Any, Iterable, List, Optional

from django.conf import settings
from django.utils import timezone

from passengers.models import PassengerRideRequest
from rides.models import Ride

WEIGHT_AVAILABLE = 1
WEIGHT_REQUESTED_OPEN = 2
WEIGHT_FULL_OR_PENDING = 3
WEIGHT_EXPIRED = 4
WEIGHT_COMPLETED = 5
WEIGHT_CANCELLED = 6
WEIGHT_OTHER = 7

# Weights at or below this sort soonest-first
UPCOMING_MAX_WEIGHT = WEIGHT_FULL_OR_PENDING

KIND_RIDE = "ride"
KIND_REQUEST = "request"


@dataclass
class FeedItem:
    kind: str
    obj: Any
    weight: int
    time_key: datetime
    sort_key: tuple = field(init=False, repr=False)

    def __post_init__(self):
        ts = self.time_key.timestamp()
        signed = ts if self.weight <= UPCOMING_MAX_WEIGHT else -ts
        self.sort_key = (self.weight, signed, self.kind, self.obj.pk)


def ride_weight(ride, now) -> int:
    if ride.status == Ride.STATUS_CANCELLED:
        return WEIGHT_CANCELLED
    if ride.status == Ride.STATUS_COMPLETED:
        return WEIGHT_COMPLETED
    if ride.status == Ride.STATUS_ACTIVE:
        if ride.departure_time < now:
            return WEIGHT_EXPIRED
        if ride.seats_available <= 0:
            return WEIGHT_FULL_OR_PENDING
        return WEIGHT_AVAILABLE
    return WEIGHT_OTHER


def standing_request_weight(standing, now) -> int:
    status = standing.status
    if status == PassengerRideRequest.STATUS_CANCELLED:
        return WEIGHT_CANCELLED
    if status == PassengerRideRequest.STATUS_FULFILLED:
        return WEIGHT_COMPLETED
    if status == PassengerRideRequest.STATUS_OPEN:
        if standing.departure_date < timezone.localdate(now):
            return WEIGHT_EXPIRED
        return WEIGHT_REQUESTED_OPEN
    if status == PassengerRideRequest.STATUS_PENDING_APPROVAL:
        return WEIGHT_FULL_OR_PENDING
    return WEIGHT_OTHER


def _date_key(day) -> datetime:
    """Start of `day` in the current time zone."""
    return timezone.make_aware(datetime.combine(day, time.min))


def build_feed(
    rides: Iterable[Ride],
    standing_requests: Iterable[PassengerRideRequest],
    now: Optional[datetime] = None,
) -> List[FeedItem]:
    """Weight and order rides and standing requests into one list."""
    now = now or timezone.now()

    items = [
        FeedItem(KIND_RIDE, ride, ride_weight(ride, now), ride.departure_time)
        for ride in rides
    ]
    items.extend(
        FeedItem(KIND_REQUEST, standing, standing_request_weight(standing, now), _date_key(standing.departure_date))
        for standing in standing_requests
    )

    items.sort(key=lambda item: item.sort_key)
    return items


def recent_feed(
    now: Optional[datetime] = None,
    origin: Optional[str] = None,
    destination: Optional[str] = None,
    date=None,
) -> List[FeedItem]:
    """
    Rides and standing requests dated within the configured history window
    or later, optionally narrowed by origin/destination text and a date.
    """
    now = now or timezone.now()
    cutoff = now - timedelta(days=settings.RIDESHARE["FEED_HISTORY_DAYS"])

    rides = Ride.objects.filter(departure_time__gte=cutoff).select_related('driver', 'driver__user')
    standing = PassengerRideRequest.objects.filter(
        departure_date__gte=timezone.localdate(cutoff)
    ).select_related('passenger', 'passenger__user')

    if origin:
        rides = rides.filter(origin__icontains=origin)
        standing = standing.filter(origin__icontains=origin)
    if destination:
        rides = rides.filter(destination__icontains=destination)
        standing = standing.filter(destination__icontains=destination)
    if date:
        rides = rides.filter(departure_time__date=date)
        standing = standing.filter(departure_date=date)

    return build_feed(rides, standing, now=now)
