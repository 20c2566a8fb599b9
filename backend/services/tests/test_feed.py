from datetime import timedelta

from django.test import TestCase, override_settings
from django.utils import timezone

from passengers.models import PassengerRideRequest
from rides.models import Ride
from services.feed import build_feed, recent_feed, ride_weight, standing_request_weight
from services.feed.projection import KIND_RIDE, KIND_REQUEST

from .factories import make_profile, make_ride, make_standing_request


class FeedWeightTests(TestCase):
    def setUp(self):
        self.now = timezone.now()
        self.driver = make_profile("driver")
        self.passenger = make_profile("passenger")

    def test_ride_weights(self):
        cases = [
            (make_ride(self.driver, hours_ahead=2), 1),
            (make_ride(self.driver, hours_ahead=2, seats=1, seats_available=0), 3),
            (make_ride(self.driver, hours_ahead=-2), 4),
            (make_ride(self.driver, hours_ahead=-2, seats=1, seats_available=0), 4),
            (make_ride(self.driver, status=Ride.STATUS_COMPLETED), 5),
            (make_ride(self.driver, status=Ride.STATUS_CANCELLED), 6),
        ]
        for ride, expected in cases:
            self.assertEqual(ride_weight(ride, self.now), expected)

    def test_standing_request_weights(self):
        cases = [
            (make_standing_request(self.passenger, days_ahead=1), 2),
            (make_standing_request(self.passenger, days_ahead=0), 2),
            (make_standing_request(self.passenger, days_ahead=-1), 4),
            (make_standing_request(self.passenger, status=PassengerRideRequest.STATUS_PENDING_APPROVAL), 3),
            (make_standing_request(self.passenger, status=PassengerRideRequest.STATUS_FULFILLED), 5),
            (make_standing_request(self.passenger, status=PassengerRideRequest.STATUS_CANCELLED), 6),
        ]
        for standing, expected in cases:
            self.assertEqual(standing_request_weight(standing, self.now), expected)

    def test_unknown_status_sorts_last(self):
        standing = make_standing_request(self.passenger)
        standing.status = "archived"
        self.assertEqual(standing_request_weight(standing, self.now), 7)


class BuildFeedOrderTests(TestCase):
    def test_full_ordering(self):
        now = timezone.now()
        driver = make_profile("driver")
        passenger = make_profile("passenger")

        soon = make_ride(driver, hours_ahead=1)
        later = make_ride(driver, hours_ahead=5)
        open_request = make_standing_request(passenger, days_ahead=1)
        full = make_ride(driver, hours_ahead=2, seats=1, seats_available=0)
        awaiting = make_standing_request(passenger, days_ahead=3, status=PassengerRideRequest.STATUS_PENDING_APPROVAL)
        expired_ride = make_ride(driver, hours_ahead=-3)
        expired_request = make_standing_request(passenger, days_ahead=-2)
        done_recent = make_ride(driver, hours_ahead=-24, status=Ride.STATUS_COMPLETED)
        done_older = make_ride(driver, hours_ahead=-72, status=Ride.STATUS_COMPLETED)
        cancelled = make_ride(driver, hours_ahead=10, status=Ride.STATUS_CANCELLED)

        rides = [cancelled, done_older, expired_ride, full, later, done_recent, soon]
        standing = [expired_request, awaiting, open_request]

        feed = build_feed(rides, standing, now=now)

        self.assertEqual(
            [(item.kind, item.obj.pk) for item in feed],
            [
                (KIND_RIDE, soon.pk),
                (KIND_RIDE, later.pk),
                (KIND_REQUEST, open_request.pk),
                (KIND_RIDE, full.pk),
                (KIND_REQUEST, awaiting.pk),
                (KIND_RIDE, expired_ride.pk),
                (KIND_REQUEST, expired_request.pk),
                (KIND_RIDE, done_recent.pk),
                (KIND_RIDE, done_older.pk),
                (KIND_RIDE, cancelled.pk),
            ],
        )
        self.assertEqual([item.weight for item in feed], [1, 1, 2, 3, 3, 4, 4, 5, 5, 6])

    def test_empty_inputs(self):
        self.assertEqual(build_feed([], []), [])


class RecentFeedTests(TestCase):
    def setUp(self):
        self.driver = make_profile("driver")
        self.passenger = make_profile("passenger")

    @override_settings(RIDESHARE={
        "REQUIRE_DEPARTURE_BEFORE_COMPLETION": True,
        "FEED_HISTORY_DAYS": 7,
        "MAX_PAYMENT_METHODS": 3,
        "NOTIFICATION_LIST_LIMIT": 50,
        "VERIFIED_EMAIL_SUFFIX": ".edu",
    })
    def test_history_window(self):
        recent = make_ride(self.driver, hours_ahead=-24 * 3)
        ancient = make_ride(self.driver, hours_ahead=-24 * 30)
        upcoming = make_standing_request(self.passenger, days_ahead=4)
        stale = make_standing_request(self.passenger, days_ahead=-20)

        ids = {(item.kind, item.obj.pk) for item in recent_feed()}

        self.assertIn((KIND_RIDE, recent.pk), ids)
        self.assertIn((KIND_REQUEST, upcoming.pk), ids)
        self.assertNotIn((KIND_RIDE, ancient.pk), ids)
        self.assertNotIn((KIND_REQUEST, stale.pk), ids)

    def test_origin_and_destination_filters(self):
        match = make_ride(self.driver, origin="West Campus", destination="Downtown")
        make_ride(self.driver, origin="East Campus", destination="Airport")

        feed = recent_feed(origin="west", destination="down")

        self.assertEqual([(item.kind, item.obj.pk) for item in feed], [(KIND_RIDE, match.pk)])

    def test_date_filter(self):
        target = timezone.localdate() + timedelta(days=5)
        standing = make_standing_request(self.passenger, days_ahead=5)
        make_standing_request(self.passenger, days_ahead=6)

        feed = recent_feed(date=target)

        self.assertEqual([(item.kind, item.obj.pk) for item in feed], [(KIND_REQUEST, standing.pk)])
