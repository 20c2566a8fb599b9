import threading

from django.contrib import admin
from django.db import connection
from django.test import RequestFactory, TestCase, TransactionTestCase

from rides.admin import RatingAdmin
from rides.models import Ride, RideRequest, Rating
from services.ride_management import submit_rating, delete_rating
from services.ride_management.exceptions import (
    DuplicateConstraintError,
    InvalidStateError,
    UnauthorizedError,
    RideValidationError,
    NotFoundError,
)

from .factories import make_profile, make_ride, make_join_request


class SubmitRatingTests(TestCase):
    def setUp(self):
        self.driver = make_profile("driver")
        self.passenger = make_profile("passenger")
        self.ride = make_ride(self.driver, seats=2, seats_available=1, hours_ahead=-3, status=Ride.STATUS_COMPLETED)
        make_join_request(self.ride, self.passenger, status=RideRequest.STATUS_ACCEPTED)

    def test_duplicate_rating_is_refused(self):
        submit_rating(self.passenger, self.ride.id, self.driver.pk, 5)

        with self.assertRaises(DuplicateConstraintError):
            submit_rating(self.passenger, self.ride.id, self.driver.pk, 3)

        self.driver.refresh_from_db()
        self.assertEqual(self.driver.average_rating, 5)
        self.assertEqual(self.driver.rating_count, 1)

    def test_aggregates_cover_every_ride(self):
        other = make_profile("other")
        second = make_ride(self.driver, hours_ahead=-30, status=Ride.STATUS_COMPLETED)
        make_join_request(second, other, status=RideRequest.STATUS_ACCEPTED)

        submit_rating(self.passenger, self.ride.id, self.driver.pk, 5)
        submit_rating(other, second.id, self.driver.pk, 2)

        self.driver.refresh_from_db()
        self.assertEqual(self.driver.rating_count, 2)
        self.assertAlmostEqual(self.driver.average_rating, 3.5)

    def test_driver_can_rate_passenger(self):
        rating = submit_rating(self.driver, self.ride.id, self.passenger.pk, 4, comment="On time")
        self.assertEqual(rating.comment, "On time")
        self.passenger.refresh_from_db()
        self.assertEqual(self.passenger.rating_count, 1)

    def test_rating_out_of_range(self):
        for value in (0, 6):
            with self.assertRaises(RideValidationError):
                submit_rating(self.passenger, self.ride.id, self.driver.pk, value)
        self.assertFalse(Rating.objects.exists())

    def test_ride_must_be_completed(self):
        active = make_ride(self.driver)
        make_join_request(active, self.passenger, status=RideRequest.STATUS_ACCEPTED)
        with self.assertRaises(InvalidStateError):
            submit_rating(self.passenger, active.id, self.driver.pk, 5)

    def test_outsider_cannot_rate(self):
        outsider = make_profile("outsider")
        with self.assertRaises(UnauthorizedError):
            submit_rating(outsider, self.ride.id, self.driver.pk, 1)

    def test_pending_passenger_is_not_a_participant(self):
        pending = make_profile("pending")
        make_join_request(self.ride, pending)
        with self.assertRaises(UnauthorizedError):
            submit_rating(self.driver, self.ride.id, pending.pk, 3)

    def test_cannot_rate_self(self):
        with self.assertRaises(RideValidationError):
            submit_rating(self.driver, self.ride.id, self.driver.pk, 5)

    def test_missing_ride(self):
        with self.assertRaises(NotFoundError):
            submit_rating(self.passenger, 999999, self.driver.pk, 5)


class DeleteRatingTests(TestCase):
    def setUp(self):
        self.driver = make_profile("driver")
        self.p1 = make_profile("p1")
        self.p2 = make_profile("p2")
        self.ride = make_ride(self.driver, seats=2, seats_available=0, hours_ahead=-3, status=Ride.STATUS_COMPLETED)
        make_join_request(self.ride, self.p1, status=RideRequest.STATUS_ACCEPTED)
        make_join_request(self.ride, self.p2, status=RideRequest.STATUS_ACCEPTED)
        self.low = submit_rating(self.p1, self.ride.id, self.driver.pk, 1)
        submit_rating(self.p2, self.ride.id, self.driver.pk, 5)

    def test_delete_rebuilds_aggregates(self):
        delete_rating(self.low)

        self.driver.refresh_from_db()
        self.assertEqual(self.driver.rating_count, 1)
        self.assertEqual(self.driver.average_rating, 5)

    def test_admin_bulk_delete_rebuilds_aggregates(self):
        request = RequestFactory().post("/admin/rides/rating/")
        RatingAdmin(Rating, admin.site).delete_queryset(request, Rating.objects.filter(ratee=self.driver))

        self.driver.refresh_from_db()
        self.assertFalse(Rating.objects.exists())
        self.assertEqual(self.driver.rating_count, 0)
        self.assertEqual(self.driver.average_rating, 0)


class ConcurrentRatingTests(TransactionTestCase):
    """Two passengers rating the same driver at once, each in its own connection."""

    def test_both_ratings_reach_the_aggregates(self):
        driver = make_profile("driver")
        raters = [make_profile(f"p{i}") for i in range(2)]
        ride = make_ride(driver, seats=2, seats_available=0, hours_ahead=-3, status=Ride.STATUS_COMPLETED)
        for rater in raters:
            make_join_request(ride, rater, status=RideRequest.STATUS_ACCEPTED)

        outcomes = []
        barrier = threading.Barrier(len(raters))

        def rate(rater, score):
            try:
                barrier.wait()
                submit_rating(rater, ride.id, driver.pk, score)
                outcomes.append("ok")
            except Exception as exc:
                outcomes.append(type(exc).__name__)
            finally:
                connection.close()

        threads = [threading.Thread(target=rate, args=(r, s)) for r, s in zip(raters, (2, 4))]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        driver.refresh_from_db()
        self.assertEqual(outcomes, ["ok", "ok"])
        self.assertEqual(driver.rating_count, 2)
        self.assertEqual(driver.average_rating, 3)
