from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from passengers.models import PassengerRideRequest
from passengers.services import request_services
from rides.models import RideRequest
from services.ride_management.exceptions import InvalidStateError, UnauthorizedError, RideValidationError
from services.tests.factories import make_profile, make_car, make_standing_request


class StandingRequestServiceTests(TestCase):
    def setUp(self):
        self.passenger = make_profile("passenger")

    def test_create_defaults(self):
        standing = request_services.create_standing_request(self.passenger, {
            "origin": "Collegetown",
            "destination": "JFK",
            "departure_date": timezone.localdate() + timedelta(days=3),
        })
        self.assertEqual(standing.status, PassengerRideRequest.STATUS_OPEN)
        self.assertEqual(standing.seats_needed, 1)
        self.assertEqual(standing.flexible_time, "flexible")

    def test_past_date_refused(self):
        with self.assertRaises(RideValidationError):
            request_services.create_standing_request(self.passenger, {
                "origin": "A",
                "destination": "B",
                "departure_date": timezone.localdate() - timedelta(days=1),
            })

    def test_cancel_open_request(self):
        standing = make_standing_request(self.passenger)
        request_services.cancel_standing_request(self.passenger, standing.id)
        standing.refresh_from_db()
        self.assertEqual(standing.status, PassengerRideRequest.STATUS_CANCELLED)

    def test_only_owner_cancels(self):
        standing = make_standing_request(self.passenger)
        with self.assertRaises(UnauthorizedError):
            request_services.cancel_standing_request(make_profile("other"), standing.id)

    def test_cannot_cancel_while_offer_pending(self):
        standing = make_standing_request(self.passenger, status=PassengerRideRequest.STATUS_PENDING_APPROVAL)
        with self.assertRaises(InvalidStateError):
            request_services.cancel_standing_request(self.passenger, standing.id)


class StandingRequestAPITests(TestCase):
    def setUp(self):
        self.passenger = make_profile("passenger")
        self.driver = make_profile("driver")
        self.client = APIClient()

    def test_post_and_list(self):
        self.client.force_authenticate(self.passenger.user)
        response = self.client.post("/api/passengers/requests/", {
            "origin": "North Campus",
            "destination": "Rochester",
            "departure_date": (timezone.localdate() + timedelta(days=2)).isoformat(),
            "seats_needed": 2,
            "willing_to_split_fuel": True,
        }, format="json")

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["seats_needed"], 2)

        listing = self.client.get("/api/passengers/requests/")
        self.assertEqual(len(listing.data), 1)

    def test_fulfill_then_respond(self):
        standing = make_standing_request(self.passenger, seats_needed=2)
        car = make_car(self.driver)

        self.client.force_authenticate(self.driver.user)
        response = self.client.post(f"/api/passengers/requests/{standing.id}/fulfill/", {
            "departure_time": (timezone.now() + timedelta(days=2)).isoformat(),
            "price": 12,
            "car_id": car.id,
        }, format="json")

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["ride"]["seats_available"], 2)
        request_id = response.data["request"]["id"]
        self.assertEqual(response.data["request"]["status"], RideRequest.STATUS_PENDING_APPROVAL)

        self.client.force_authenticate(self.passenger.user)
        answer = self.client.post(
            f"/api/rides/requests/{request_id}/offer-response/", {"status": "accepted"}, format="json"
        )

        self.assertEqual(answer.status_code, 200)
        self.assertEqual(answer.data["ride"]["seats_available"], 0)
        standing.refresh_from_db()
        self.assertEqual(standing.status, PassengerRideRequest.STATUS_FULFILLED)

    def test_fulfil_own_request_is_forbidden(self):
        standing = make_standing_request(self.passenger)
        make_car(self.passenger)
        self.client.force_authenticate(self.passenger.user)

        response = self.client.post(f"/api/passengers/requests/{standing.id}/fulfill/", {
            "departure_time": (timezone.now() + timedelta(days=2)).isoformat(),
            "price": 0,
        }, format="json")

        self.assertEqual(response.status_code, 403)
