from django.test import TestCase

from rides.models import Ride, RideRequest
from services.ride_management import seat_ledger
from services.ride_management.exceptions import CapacityExceededError, InvalidStateError

from .factories import make_profile, make_ride, make_join_request, make_standing_request


class SeatLedgerTests(TestCase):
    def setUp(self):
        self.driver = make_profile("driver")
        self.passenger = make_profile("passenger")

    def test_plain_ride_uses_one_seat_per_request(self):
        ride = make_ride(self.driver, seats=3)
        self.assertEqual(seat_ledger.seats_for_request(ride), 1)

    def test_ride_from_standing_request_uses_party_size(self):
        standing = make_standing_request(self.passenger, seats_needed=3)
        ride = make_ride(self.driver, seats=3, fulfilled_from_request=standing, seats_per_request=3)
        self.assertEqual(seat_ledger.seats_for_request(ride), 3)

    def test_party_size_is_read_from_the_ride(self):
        standing = make_standing_request(self.passenger, seats_needed=3)
        ride = make_ride(self.driver, seats=3, seats_available=0, fulfilled_from_request=standing, seats_per_request=3)
        standing.seats_needed = 1
        standing.save()

        delta = seat_ledger.apply_transition(ride, RideRequest.STATUS_ACCEPTED, RideRequest.STATUS_CANCELLED)

        self.assertEqual(delta, 3)
        ride.refresh_from_db()
        self.assertEqual(ride.seats_available, 3)

    def test_entering_and_leaving_accepted_moves_seats(self):
        ride = make_ride(self.driver, seats=2)

        delta = seat_ledger.apply_transition(ride, RideRequest.STATUS_PENDING, RideRequest.STATUS_ACCEPTED)
        self.assertEqual(delta, -1)
        ride.refresh_from_db()
        self.assertEqual(ride.seats_available, 1)

        delta = seat_ledger.apply_transition(ride, RideRequest.STATUS_ACCEPTED, RideRequest.STATUS_CANCELLED)
        self.assertEqual(delta, 1)
        ride.refresh_from_db()
        self.assertEqual(ride.seats_available, 2)

    def test_transitions_outside_accepted_do_nothing(self):
        ride = make_ride(self.driver, seats=2)
        for old, new in [
            (RideRequest.STATUS_PENDING, RideRequest.STATUS_REJECTED),
            (RideRequest.STATUS_CANCELLED, RideRequest.STATUS_PENDING),
            (RideRequest.STATUS_PENDING_APPROVAL, RideRequest.STATUS_REJECTED),
            (RideRequest.STATUS_ACCEPTED, RideRequest.STATUS_ACCEPTED),
        ]:
            self.assertEqual(seat_ledger.apply_transition(ride, old, new), 0)
        ride.refresh_from_db()
        self.assertEqual(ride.seats_available, 2)

    def test_decrement_below_zero_raises_capacity_exceeded(self):
        ride = make_ride(self.driver, seats=1, seats_available=0)
        with self.assertRaises(CapacityExceededError):
            seat_ledger.apply_transition(ride, RideRequest.STATUS_PENDING, RideRequest.STATUS_ACCEPTED)
        ride.refresh_from_db()
        self.assertEqual(ride.seats_available, 0)

    def test_increment_above_capacity_raises_invalid_state(self):
        ride = make_ride(self.driver, seats=2)
        with self.assertRaises(InvalidStateError):
            seat_ledger.apply_transition(ride, RideRequest.STATUS_ACCEPTED, RideRequest.STATUS_CANCELLED)

    def test_party_larger_than_remaining_seats_is_rejected(self):
        standing = make_standing_request(self.passenger, seats_needed=3)
        ride = make_ride(self.driver, seats=3, seats_available=2, fulfilled_from_request=standing, seats_per_request=3)
        with self.assertRaises(CapacityExceededError):
            seat_ledger.apply_transition(ride, RideRequest.STATUS_PENDING_APPROVAL, RideRequest.STATUS_ACCEPTED)

    def test_deleting_accepted_request_returns_seat(self):
        ride = make_ride(self.driver, seats=2, seats_available=1)
        join_request = make_join_request(ride, self.passenger, status=RideRequest.STATUS_ACCEPTED)

        seat_ledger.delete_request(join_request)

        ride.refresh_from_db()
        self.assertEqual(ride.seats_available, 2)
        self.assertFalse(RideRequest.objects.filter(pk=join_request.pk).exists())

    def test_deleting_pending_request_leaves_seats(self):
        ride = make_ride(self.driver, seats=2)
        join_request = make_join_request(ride, self.passenger)

        seat_ledger.delete_request(join_request)

        ride.refresh_from_db()
        self.assertEqual(ride.seats_available, 2)

    def test_database_rejects_negative_seats(self):
        from django.db import IntegrityError, transaction

        ride = make_ride(self.driver, seats=1)
        with self.assertRaises(IntegrityError), transaction.atomic():
            Ride.objects.filter(pk=ride.pk).update(seats_available=-1)
