import logging

from django.db import transaction

from drivers.models import Car
from services.ride_management.exceptions import NotFoundError, RideValidationError

logger = logging.getLogger(__name__)

REQUIRED_CAR_FIELDS = ("make", "model", "license_plate")
EDITABLE_CAR_FIELDS = ("make", "model", "year", "color", "license_plate", "is_insured")


def get_owned_car(owner, car_id) -> Car:
    car = Car.objects.filter(pk=car_id, owner=owner).first()
    if car is None:
        raise NotFoundError("Car not found.")
    return car


def list_cars(owner):
    return Car.objects.filter(owner=owner)


def _clean_car_fields(data, partial=False):
    cleaned = {}
    for field in EDITABLE_CAR_FIELDS:
        if field in data:
            value = data[field]
            if isinstance(value, str):
                value = value.strip()
            cleaned[field] = value

    for field in REQUIRED_CAR_FIELDS:
        if field in cleaned or not partial:
            if not cleaned.get(field):
                raise RideValidationError(f"Car {field.replace('_', ' ')} is required.")
    return cleaned


# CAR MANAGEMENT
@transaction.atomic
def add_car(owner, data) -> Car:
    """
    Register a car for the owner.
    The first car a driver adds becomes their default.
    """
    fields = _clean_car_fields(data)
    is_first = not Car.objects.filter(owner=owner).exists()

    car = Car.objects.create(owner=owner, is_default=is_first, **fields)
    logger.info("Profile %s added car %s (default=%s)", owner.pk, car.id, is_first)
    return car


def update_car(owner, car_id, data) -> Car:
    car = get_owned_car(owner, car_id)
    fields = _clean_car_fields(data, partial=True)

    for name, value in fields.items():
        setattr(car, name, value)
    car.save(update_fields=list(fields) or None)
    return car


def delete_car(owner, car_id):
    """
    Remove a car. Rides keep their own snapshot, so nothing else changes.
    """
    car = get_owned_car(owner, car_id)
    car.delete()
    logger.info("Profile %s deleted car %s", owner.pk, car_id)


@transaction.atomic
def set_default_car(owner, car_id) -> Car:
    """
    Make `car_id` the owner's only default car.

    Unset-all-then-set-one under a row lock on the owner's cars, so calling
    it again, or concurrently, still leaves exactly one default.
    """
    cars = list(Car.objects.select_for_update().filter(owner=owner))
    car = next((c for c in cars if str(c.pk) == str(car_id)), None)
    if car is None:
        raise NotFoundError("Car not found.")

    Car.objects.filter(owner=owner, is_default=True).exclude(pk=car.pk).update(is_default=False)
    if not car.is_default:
        car.is_default = True
        car.save(update_fields=["is_default"])

    logger.info("Profile %s default car is now %s", owner.pk, car.pk)
    return car
