import logging

from django.db import transaction
from django.utils import timezone

from passengers.models import PassengerRideRequest
from services.ride_management.exceptions import (
    NotFoundError,
    UnauthorizedError,
    InvalidStateError,
    RideValidationError,
)

logger = logging.getLogger(__name__)


def create_standing_request(passenger, data):
    """
    Post a standing ride request that any driver can offer to fulfil.
    Expects already-typed data (see PassengerRideRequestCreateSerializer).
    """
    origin = (data.get("origin") or "").strip()
    destination = (data.get("destination") or "").strip()
    if not origin or not destination:
        raise RideValidationError("Origin and destination are required.")
    if origin.lower() == destination.lower():
        raise RideValidationError("Origin and destination must be different.")

    departure_date = data.get("departure_date")
    if departure_date is None:
        raise RideValidationError("Departure date is required.")
    if departure_date < timezone.localdate():
        raise RideValidationError("Departure date cannot be in the past.")

    seats_needed = data.get("seats_needed", 1)
    if seats_needed < 1:
        raise RideValidationError("At least one seat is needed.")

    standing = PassengerRideRequest.objects.create(
        passenger=passenger,
        origin=origin,
        destination=destination,
        departure_date=departure_date,
        flexible_time=(data.get("flexible_time") or "flexible").strip(),
        seats_needed=seats_needed,
        notes=data.get("notes") or None,
        willing_to_split_fuel=bool(data.get("willing_to_split_fuel", False)),
    )
    logger.info("Passenger %s posted standing request %s", passenger.pk, standing.id)
    return standing


@transaction.atomic
def cancel_standing_request(passenger, request_id):
    """
    Withdraw an open standing request.
    Once a driver has made an offer the passenger answers that offer instead.
    """
    standing = PassengerRideRequest.objects.select_for_update().filter(pk=request_id).first()
    if standing is None:
        raise NotFoundError("Ride request not found.")
    if standing.passenger_id != passenger.pk:
        raise UnauthorizedError("Only the passenger can cancel this ride request.")
    if standing.status != PassengerRideRequest.STATUS_OPEN:
        raise InvalidStateError(f"Cannot cancel - ride request is {standing.status}.")

    standing.status = PassengerRideRequest.STATUS_CANCELLED
    standing.save(update_fields=["status"])
    logger.info("Passenger %s cancelled standing request %s", passenger.pk, standing.id)
    return standing


def get_my_standing_requests(passenger):
    return PassengerRideRequest.objects.filter(passenger=passenger).order_by("-created_at")
