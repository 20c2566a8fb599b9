"""
Seat ledger.

Keeps Ride.seats_available consistent with the set of accepted join requests.
apply_transition() runs inside the caller's transaction and expects the Ride
row to be locked already via select_for_update(). delete_request() is the
one standalone entry point and takes the lock itself.
"""

import logging

from django.db import transaction

from rides.models import Ride, RideRequest
from .exceptions import CapacityExceededError, InvalidStateError

logger = logging.getLogger(__name__)


def seats_for_request(ride: Ride) -> int:
    """
    Seats one accepted request occupies on this ride.

    A ride created from a standing request carries that request's whole party,
    otherwise a request is one seat. The count is copied onto the ride when it
    is created, so later edits to the standing request do not move it.
    """
    return ride.seats_per_request


def _decrement(ride: Ride, seats: int):
    if ride.seats_available - seats < 0:
        raise CapacityExceededError("Cannot accept request, the ride is full.")
    ride.seats_available -= seats


def _increment(ride: Ride, seats: int):
    if ride.seats_available + seats > ride.total_seats:
        logger.error(
            "Seat ledger for ride %s would exceed capacity (%s + %s > %s)",
            ride.id, ride.seats_available, seats, ride.total_seats
        )
        raise InvalidStateError("Seat count for this ride is inconsistent.")
    ride.seats_available += seats


def apply_transition(ride: Ride, old_status: str, new_status: str) -> int:
    """
    Adjust the locked ride's seat count for one request status change.

    Returns the signed delta applied to seats_available (0 when the change
    does not cross the accepted boundary). The ride row is saved when the
    count moves.
    """
    was_accepted = old_status == RideRequest.STATUS_ACCEPTED
    is_accepted = new_status == RideRequest.STATUS_ACCEPTED

    if was_accepted == is_accepted:
        return 0

    seats = seats_for_request(ride)
    if is_accepted:
        _decrement(ride, seats)
        delta = -seats
    else:
        _increment(ride, seats)
        delta = seats

    ride.save(update_fields=['seats_available'])
    logger.info(
        "Ride %s seats %+d (%s -> %s), now %s/%s",
        ride.id, delta, old_status, new_status, ride.seats_available, ride.total_seats
    )
    return delta


@transaction.atomic
def delete_request(join_request: RideRequest):
    """
    Delete a join request, returning its seats first if it was accepted.
    """
    ride = Ride.objects.select_for_update().get(pk=join_request.ride_id)
    join_request = RideRequest.objects.select_for_update().get(pk=join_request.pk)

    if join_request.status == RideRequest.STATUS_ACCEPTED:
        _increment(ride, seats_for_request(ride))
        ride.save(update_fields=['seats_available'])

    logger.info("Deleting request %s on ride %s (was %s)", join_request.id, ride.id, join_request.status)
    join_request.delete()
