"""
Core ride lifecycle operations.

Every state change on a Ride, a join request (RideRequest) or a standing
passenger request goes through one of the functions below. Each runs in a
single transaction, locks the rows it touches in the fixed order
ride -> join request -> standing request, keeps the seat ledger in step with
the status write, and emits the notifications for the transition.
"""

import logging
from typing import Optional, Dict, Any
from dataclasses import dataclass

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from drivers.models import Car
from notifications.emitter import notify
from notifications.models import Notification
from passengers.models import PassengerRideRequest
from rides.models import Ride, RideRequest
from . import seat_ledger
from .exceptions import (
    NotFoundError,
    UnauthorizedError,
    CapacityExceededError,
    InvalidStateError,
    RideValidationError,
)

logger = logging.getLogger(__name__)

DECISIONS = (RideRequest.STATUS_ACCEPTED, RideRequest.STATUS_REJECTED)


@dataclass
class RideResult:
    """Result object for ride operations."""
    success: bool
    ride: Optional[Ride] = None
    request: Optional[RideRequest] = None
    message: str = ""
    extra: Optional[Dict[str, Any]] = None


# ===================== Helpers =====================

def _route(ride) -> str:
    return f"from {ride.origin} to {ride.destination}"


def _lock_ride(ride_id) -> Ride:
    ride = Ride.objects.select_for_update().filter(pk=ride_id).first()
    if ride is None:
        raise NotFoundError("Ride not found.")
    return ride


def _lock_request_with_ride(request_id):
    """
    Lock a join request together with its ride, ride first.

    The ride id is read without a lock to learn which ride to lock; the
    request is then re-read under lock so its status is current.
    """
    ride_id = RideRequest.objects.filter(pk=request_id).values_list('ride_id', flat=True).first()
    if ride_id is None:
        raise NotFoundError("Request not found.")

    ride = _lock_ride(ride_id)
    join_request = RideRequest.objects.select_for_update().filter(pk=request_id).first()
    if join_request is None:
        raise NotFoundError("Request not found.")
    return ride, join_request


def _resolve_car(driver, car_id) -> Optional[Car]:
    """The driver's car by id, or their default car when no id is given."""
    if car_id is None:
        return Car.objects.filter(owner=driver, is_default=True).first()

    car = Car.objects.filter(pk=car_id, owner=driver).first()
    if car is None:
        raise NotFoundError("Car not found.")
    return car


def _validate_price(price) -> int:
    try:
        price = int(price)
    except (TypeError, ValueError):
        raise RideValidationError("Price must be a whole number.")
    if price < 0:
        raise RideValidationError("Price cannot be negative.")
    return price


def _validate_departure(departure_time):
    if departure_time is None:
        raise RideValidationError("Departure time is required.")
    if timezone.is_naive(departure_time):
        departure_time = timezone.make_aware(departure_time)
    if departure_time <= timezone.now():
        raise RideValidationError("Departure time must be in the future.")
    return departure_time


def _set_request_status(ride, join_request, new_status):
    """Write a join request status and apply the seat change for it."""
    old_status = join_request.status
    seat_ledger.apply_transition(ride, old_status, new_status)
    join_request.status = new_status
    join_request.save(update_fields=['status', 'updated_at'])
    logger.info("Request %s on ride %s: %s -> %s", join_request.id, ride.id, old_status, new_status)


# ===================== Driver Operations =====================

@transaction.atomic
def create_ride(
    driver,
    origin: str,
    destination: str,
    departure_time,
    seats: int,
    price: int = 0,
    car_id: Optional[int] = None,
) -> RideResult:
    """
    Post a new ride offer.

    Args:
        driver: Profile posting the ride
        origin: Where the ride leaves from
        destination: Where the ride goes
        departure_time: Aware datetime in the future
        seats: Number of passenger seats offered
        price: Whole currency units per seat, 0 for free
        car_id: Driver's car to snapshot; defaults to their default car

    Returns:
        RideResult with the created ride

    Raises:
        RideValidationError: On malformed input
        NotFoundError: If car_id is not one of the driver's cars
    """
    origin = (origin or "").strip()
    destination = (destination or "").strip()
    if not origin or not destination:
        raise RideValidationError("Origin and destination are required.")
    if origin.lower() == destination.lower():
        raise RideValidationError("Origin and destination must be different.")

    try:
        seats = int(seats)
    except (TypeError, ValueError):
        raise RideValidationError("Seats must be a whole number.")
    if seats < 1:
        raise RideValidationError("A ride needs at least one seat.")

    price = _validate_price(price)
    departure_time = _validate_departure(departure_time)
    car = _resolve_car(driver, car_id)

    ride = Ride.objects.create(
        driver=driver,
        origin=origin,
        destination=destination,
        departure_time=departure_time,
        total_seats=seats,
        seats_available=seats,
        price=price,
        status=Ride.STATUS_ACTIVE,
        **(car.snapshot() if car else {}),
    )
    logger.info("Driver %s posted ride %s (%s seats)", driver.pk, ride.id, seats)

    return RideResult(success=True, ride=ride, message="Ride posted.")


@transaction.atomic
def handle_request_update(driver, request_id: int, new_status: str) -> RideResult:
    """
    Driver accepts or rejects a pending join request.

    Accepting re-checks capacity against the locked ride row, so two
    concurrent accepts can never both take the last seat.

    Raises:
        RideValidationError: If new_status is not accepted/rejected
        NotFoundError: If the request does not exist
        UnauthorizedError: If the actor does not drive this ride
        InvalidStateError: If the request is not pending or the ride is not active
        CapacityExceededError: If accepting would overbook the ride
    """
    if new_status not in DECISIONS:
        raise RideValidationError("Status must be 'accepted' or 'rejected'.")

    ride, join_request = _lock_request_with_ride(request_id)

    if ride.driver_id != driver.pk:
        raise UnauthorizedError("Only the driver of this ride can respond to its requests.")
    if ride.status != Ride.STATUS_ACTIVE:
        raise InvalidStateError(f"This ride is {ride.status}.")
    if join_request.status != RideRequest.STATUS_PENDING:
        raise InvalidStateError(f"This request is already {join_request.status}.")

    _set_request_status(ride, join_request, new_status)

    if new_status == RideRequest.STATUS_ACCEPTED:
        notify(
            join_request.passenger,
            Notification.REQUEST_ACCEPTED,
            f"{ride.driver.display_name} accepted your request for the ride {_route(ride)}.",
            ride=ride,
            request=join_request,
        )
        message = "Request accepted."
    else:
        notify(
            join_request.passenger,
            Notification.REQUEST_REJECTED,
            f"{ride.driver.display_name} rejected your request for the ride {_route(ride)}.",
            ride=ride,
            request=join_request,
        )
        message = "Request rejected."

    return RideResult(success=True, ride=ride, request=join_request, message=message)


@transaction.atomic
def create_ride_from_request(
    driver,
    request_id: int,
    departure_time,
    price: int,
    car_id: Optional[int] = None,
) -> RideResult:
    """
    Offer a ride that fulfils a passenger's standing request.

    The standing request is parked in pending-passenger-approval, a ride sized
    to the party is created, and the passenger gets a join request awaiting
    their answer (see passenger_respond_to_offer).
    """
    standing = PassengerRideRequest.objects.select_for_update().filter(pk=request_id).first()
    if standing is None:
        raise NotFoundError("Ride request not found.")
    if standing.passenger_id == driver.pk:
        raise UnauthorizedError("You cannot fulfill your own ride request.")
    if standing.status != PassengerRideRequest.STATUS_OPEN:
        raise InvalidStateError("This ride request is no longer open.")

    price = _validate_price(price)
    departure_time = _validate_departure(departure_time)
    car = _resolve_car(driver, car_id)
    if car is None:
        raise RideValidationError("Choose a car before offering a ride.")

    ride = Ride.objects.create(
        driver=driver,
        origin=standing.origin,
        destination=standing.destination,
        departure_time=departure_time,
        total_seats=standing.seats_needed,
        seats_available=standing.seats_needed,
        price=price,
        status=Ride.STATUS_ACTIVE,
        fulfilled_from_request=standing,
        seats_per_request=standing.seats_needed,
        **car.snapshot(),
    )

    standing.status = PassengerRideRequest.STATUS_PENDING_APPROVAL
    standing.fulfilled_by_driver = driver
    standing.save(update_fields=['status', 'fulfilled_by_driver'])

    join_request = RideRequest.objects.create(
        ride=ride,
        passenger_id=standing.passenger_id,
        status=RideRequest.STATUS_PENDING_APPROVAL,
    )
    logger.info(
        "Driver %s offered ride %s for standing request %s", driver.pk, ride.id, standing.id
    )

    notify(
        standing.passenger,
        Notification.PASSENGER_REQUEST_ACCEPTED,
        f"{driver.display_name or 'A driver'} has made an offer for your ride request {_route(standing)}. "
        f"Please review and respond.",
        ride=ride,
        request=join_request,
    )

    return RideResult(success=True, ride=ride, request=join_request, message="Offer sent to passenger.")


@transaction.atomic
def cancel_ride(driver, ride_id: int) -> RideResult:
    """
    Driver cancels an active ride.

    Join request rows are kept as history. Every passenger holding an accepted
    seat or an unanswered offer is notified, and a standing request still
    waiting on this ride's offer is reopened.
    """
    ride = _lock_ride(ride_id)

    if ride.driver_id != driver.pk:
        raise UnauthorizedError("Only the driver can cancel this ride.")
    if ride.status != Ride.STATUS_ACTIVE:
        raise InvalidStateError(f"This ride is already {ride.status}.")

    ride.status = Ride.STATUS_CANCELLED
    ride.save(update_fields=['status'])

    affected = list(
        RideRequest.objects.select_for_update().filter(
            ride=ride,
            status__in=[RideRequest.STATUS_ACCEPTED, RideRequest.STATUS_PENDING_APPROVAL],
        )
    )

    if ride.fulfilled_from_request_id:
        standing = PassengerRideRequest.objects.select_for_update().get(pk=ride.fulfilled_from_request_id)
        if standing.status == PassengerRideRequest.STATUS_PENDING_APPROVAL:
            standing.status = PassengerRideRequest.STATUS_OPEN
            standing.fulfilled_by_driver = None
            standing.save(update_fields=['status', 'fulfilled_by_driver'])
            logger.info("Reopened standing request %s after ride %s was cancelled", standing.id, ride.id)

    for join_request in affected:
        notify(
            join_request.passenger,
            Notification.DRIVER_CANCELLED_RIDE,
            f"{ride.driver.display_name} cancelled the ride {_route(ride)}.",
            ride=ride,
            request=join_request,
        )

    logger.info("Driver %s cancelled ride %s, %s passengers notified", driver.pk, ride.id, len(affected))
    return RideResult(
        success=True,
        ride=ride,
        message="Ride cancelled.",
        extra={"notified_passengers": len(affected)},
    )


@transaction.atomic
def complete_ride(driver, ride_id: int) -> RideResult:
    """Driver marks an active ride as completed, which opens it for ratings."""
    ride = _lock_ride(ride_id)

    if ride.driver_id != driver.pk:
        raise UnauthorizedError("Only the driver can complete this ride.")
    if ride.status != Ride.STATUS_ACTIVE:
        raise InvalidStateError(f"Cannot complete - ride is {ride.status}.")
    if (
        settings.RIDESHARE["REQUIRE_DEPARTURE_BEFORE_COMPLETION"]
        and ride.departure_time > timezone.now()
    ):
        raise InvalidStateError("This ride has not departed yet.")

    ride.status = Ride.STATUS_COMPLETED
    ride.save(update_fields=['status'])
    logger.info("Ride %s completed by driver %s", ride.id, driver.pk)

    return RideResult(success=True, ride=ride, message="Ride completed.")


# ===================== Passenger Operations =====================

@transaction.atomic
def request_or_rerequest_ride(passenger, ride_id: int) -> RideResult:
    """
    Ask for a seat on a ride, or re-ask after an earlier request ended.

    The seat check here is advisory: a ride with seats left can still fill up
    before the driver answers, and the authoritative check happens on accept.

    Raises:
        NotFoundError: If the ride does not exist
        UnauthorizedError: If the passenger is the ride's driver
        InvalidStateError: If the ride is not active or an active request exists
        CapacityExceededError: If the ride currently shows no free seats
    """
    ride = _lock_ride(ride_id)

    if ride.driver_id == passenger.pk:
        raise UnauthorizedError("You cannot request to join your own ride.")
    if ride.status != Ride.STATUS_ACTIVE:
        raise InvalidStateError(f"This ride is {ride.status}.")
    if ride.seats_available <= 0:
        raise CapacityExceededError("This ride is full.")

    join_request = RideRequest.objects.select_for_update().filter(ride=ride, passenger=passenger).first()

    if join_request is not None:
        if join_request.is_active:
            raise InvalidStateError("You already have an active request for this ride.")
        _set_request_status(ride, join_request, RideRequest.STATUS_PENDING)
    else:
        try:
            with transaction.atomic():
                join_request = RideRequest.objects.create(
                    ride=ride,
                    passenger=passenger,
                    status=RideRequest.STATUS_PENDING,
                )
        except IntegrityError:
            raise InvalidStateError("You already have an active request for this ride.")
        logger.info("Passenger %s requested ride %s (request %s)", passenger.pk, ride.id, join_request.id)

    notify(
        ride.driver,
        Notification.NEW_REQUEST,
        f"{passenger.display_name} requested a seat on your ride {_route(ride)}.",
        ride=ride,
        request=join_request,
    )

    return RideResult(success=True, ride=ride, request=join_request, message="Request sent.")


@transaction.atomic
def cancel_request(actor, request_id: int) -> RideResult:
    """
    Withdraw a join request.

    The passenger may cancel while pending or accepted; the driver may cancel
    an accepted booking. Leaving accepted gives the seats back.
    """
    ride, join_request = _lock_request_with_ride(request_id)

    is_passenger = join_request.passenger_id == actor.pk
    is_driver = ride.driver_id == actor.pk
    if not (is_passenger or is_driver):
        raise UnauthorizedError("You are not part of this request.")
    if ride.status != Ride.STATUS_ACTIVE:
        raise InvalidStateError(f"This ride is {ride.status}.")

    if is_passenger:
        allowed = (RideRequest.STATUS_PENDING, RideRequest.STATUS_ACCEPTED)
    else:
        allowed = (RideRequest.STATUS_ACCEPTED,)
    if join_request.status not in allowed:
        raise InvalidStateError(f"Cannot cancel - request is {join_request.status}.")

    _set_request_status(ride, join_request, RideRequest.STATUS_CANCELLED)

    if is_passenger:
        notify(
            ride.driver,
            Notification.PASSENGER_CANCELLED,
            f"{join_request.passenger.display_name} cancelled their request for the ride {_route(ride)}.",
            ride=ride,
            request=join_request,
        )
    else:
        notify(
            join_request.passenger,
            Notification.BOOKING_CANCELLED,
            f"{ride.driver.display_name} cancelled your booking for the ride {_route(ride)}.",
            ride=ride,
            request=join_request,
        )

    return RideResult(success=True, ride=ride, request=join_request, message="Request cancelled.")


@transaction.atomic
def passenger_respond_to_offer(passenger, request_id: int, response: str) -> RideResult:
    """
    Passenger answers a driver's offer on their standing request.

    accepted: the join request takes its seats and the standing request is fulfilled.
    rejected: the offered ride is cancelled and the standing request reopens.
    """
    if response not in DECISIONS:
        raise RideValidationError("Response must be 'accepted' or 'rejected'.")

    ride, join_request = _lock_request_with_ride(request_id)

    if join_request.passenger_id != passenger.pk:
        raise UnauthorizedError("Only the passenger can respond to this offer.")
    if join_request.status != RideRequest.STATUS_PENDING_APPROVAL:
        raise InvalidStateError("This offer is not awaiting your approval.")
    if ride.status != Ride.STATUS_ACTIVE:
        raise InvalidStateError(f"This ride is {ride.status}.")

    standing = None
    if ride.fulfilled_from_request_id:
        standing = PassengerRideRequest.objects.select_for_update().get(pk=ride.fulfilled_from_request_id)

    _set_request_status(ride, join_request, response)

    if response == RideRequest.STATUS_ACCEPTED:
        if standing is not None:
            standing.status = PassengerRideRequest.STATUS_FULFILLED
            standing.save(update_fields=['status'])
        notify(
            ride.driver,
            Notification.REQUEST_ACCEPTED,
            f"{passenger.display_name} accepted your offer for the ride {_route(ride)}.",
            ride=ride,
            request=join_request,
        )
        message = "Offer accepted."
    else:
        ride.status = Ride.STATUS_CANCELLED
        ride.save(update_fields=['status'])
        if standing is not None:
            standing.status = PassengerRideRequest.STATUS_OPEN
            standing.fulfilled_by_driver = None
            standing.save(update_fields=['status', 'fulfilled_by_driver'])
        notify(
            ride.driver,
            Notification.REQUEST_REJECTED,
            f"{passenger.display_name} rejected your offer for the ride {_route(ride)}.",
            ride=ride,
            request=join_request,
        )
        message = "Offer declined."

    logger.info("Passenger %s %s offer on ride %s", passenger.pk, response, ride.id)
    return RideResult(success=True, ride=ride, request=join_request, message=message)


# ===================== Queries =====================

def get_driver_rides(driver):
    return Ride.objects.filter(driver=driver).order_by('-departure_time')


def get_incoming_requests(driver):
    """Join requests on any of the driver's rides, newest first."""
    return RideRequest.objects.filter(
        ride__driver=driver
    ).select_related('ride', 'passenger').order_by('-created_at')


def get_outgoing_requests(passenger):
    return RideRequest.objects.filter(
        passenger=passenger
    ).select_related('ride', 'ride__driver').order_by('-created_at')
