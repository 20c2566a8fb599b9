"""Post-ride ratings and the rating aggregates kept on Profile."""

import logging

from django.db import IntegrityError, transaction
from django.db.models import Avg, Count

from accounts.models import Profile
from rides.models import Ride, RideRequest, Rating
from .exceptions import (
    NotFoundError,
    UnauthorizedError,
    InvalidStateError,
    DuplicateConstraintError,
    RideValidationError,
)

logger = logging.getLogger(__name__)


def ride_participant_ids(ride) -> set:
    """Driver plus every passenger whose request on this ride was accepted."""
    ids = set(
        RideRequest.objects.filter(
            ride=ride, status=RideRequest.STATUS_ACCEPTED
        ).values_list('passenger_id', flat=True)
    )
    ids.add(ride.driver_id)
    return ids


def recompute_rating_aggregates(profile_id):
    """Rebuild average_rating/rating_count from every rating the profile received."""
    stats = Rating.objects.filter(ratee_id=profile_id).aggregate(avg=Avg('rating'), count=Count('id'))
    average = round(stats['avg'] or 0, 2)
    Profile.objects.filter(pk=profile_id).update(average_rating=average, rating_count=stats['count'])
    return average, stats['count']


@transaction.atomic
def submit_rating(rater, ride_id, ratee_id, rating, comment=None) -> Rating:
    """
    Rate another participant of a completed ride.

    Raises:
        RideValidationError: Rating outside 1-5 or rating yourself
        NotFoundError: Ride missing
        InvalidStateError: Ride not completed
        UnauthorizedError: Rater or ratee did not take part in the ride
        DuplicateConstraintError: This rater already rated this ratee for this ride
    """
    try:
        rating = int(rating)
    except (TypeError, ValueError):
        raise RideValidationError("Rating must be a whole number from 1 to 5.")
    if not 1 <= rating <= 5:
        raise RideValidationError("Rating must be between 1 and 5.")

    ride = Ride.objects.filter(pk=ride_id).first()
    if ride is None:
        raise NotFoundError("Ride not found.")
    if ride.status != Ride.STATUS_COMPLETED:
        raise InvalidStateError("You can only rate a completed ride.")

    if str(rater.pk) == str(ratee_id):
        raise RideValidationError("You cannot rate yourself.")

    participants = ride_participant_ids(ride)
    if rater.pk not in participants:
        raise UnauthorizedError("Only people on this ride can leave a rating.")

    # Ratee row lock serializes aggregate recomputes for this profile
    ratee = Profile.objects.select_for_update().filter(pk=ratee_id).first()
    if ratee is None or ratee.pk not in participants:
        raise UnauthorizedError("That person was not on this ride.")

    try:
        with transaction.atomic():
            created = Rating.objects.create(
                ride=ride,
                rater=rater,
                ratee=ratee,
                rating=rating,
                comment=(comment or None),
            )
    except IntegrityError:
        raise DuplicateConstraintError("You have already rated this person for this ride.")

    average, count = recompute_rating_aggregates(ratee.pk)
    logger.info(
        "Profile %s rated %s %s on ride %s (now %.2f over %s)",
        rater.pk, ratee.pk, rating, ride.id, average, count
    )
    return created


@transaction.atomic
def delete_rating(rating: Rating):
    """Remove a rating and rebuild the ratee's aggregates without it."""
    Profile.objects.select_for_update().filter(pk=rating.ratee_id).first()
    ratee_id = rating.ratee_id
    Rating.objects.filter(pk=rating.pk).delete()
    average, count = recompute_rating_aggregates(ratee_id)
    logger.info("Deleted rating %s for profile %s (now %.2f over %s)", rating.pk, ratee_id, average, count)
