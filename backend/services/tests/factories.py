"""Small builders shared by the test modules."""

from datetime import timedelta

from django.utils import timezone

from accounts.models import User
from accounts.services import create_profile_for_user
from drivers.models import Car
from passengers.models import PassengerRideRequest
from rides.models import Ride, RideRequest


def make_profile(username, email=None, full_name=None):
    user = User.objects.create_user(
        username=username,
        email=email or f"{username}@cornell.edu",
        password="pass12345",
    )
    return create_profile_for_user(user, full_name=full_name or username.title())


def make_car(owner, plate="ABC123", is_default=True):
    return Car.objects.create(
        owner=owner,
        make="Toyota",
        model="Corolla",
        year=2018,
        color="Blue",
        license_plate=plate,
        is_insured=True,
        is_default=is_default,
    )


def make_ride(driver, seats=2, hours_ahead=24, status=Ride.STATUS_ACTIVE, **kwargs):
    fields = dict(
        driver=driver,
        origin="North Campus",
        destination="Airport",
        departure_time=timezone.now() + timedelta(hours=hours_ahead),
        total_seats=seats,
        seats_available=seats,
        price=10,
        status=status,
    )
    fields.update(kwargs)
    return Ride.objects.create(**fields)


def make_join_request(ride, passenger, status=RideRequest.STATUS_PENDING):
    return RideRequest.objects.create(ride=ride, passenger=passenger, status=status)


def make_standing_request(passenger, seats_needed=1, days_ahead=2, status=PassengerRideRequest.STATUS_OPEN):
    return PassengerRideRequest.objects.create(
        passenger=passenger,
        origin="Collegetown",
        destination="Syracuse",
        departure_date=timezone.localdate() + timedelta(days=days_ahead),
        seats_needed=seats_needed,
        status=status,
    )
