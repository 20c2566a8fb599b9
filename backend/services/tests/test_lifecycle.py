import threading
from datetime import timedelta
from unittest.mock import patch

from django.conf import settings
from django.db import connection
from django.test import TestCase, TransactionTestCase, override_settings
from django.utils import timezone

from notifications.models import Notification
from passengers.models import PassengerRideRequest
from rides.models import Ride, RideRequest
from services import ride_management
from services.ride_management.exceptions import (
    NotFoundError,
    UnauthorizedError,
    CapacityExceededError,
    InvalidStateError,
    RideValidationError,
)

from .factories import (
    make_profile,
    make_car,
    make_ride,
    make_join_request,
    make_standing_request,
)


class CreateRideTests(TestCase):
    def setUp(self):
        self.driver = make_profile("driver")

    def test_snapshots_default_car(self):
        make_car(self.driver, plate="XYZ789")
        result = ride_management.create_ride(
            self.driver, "Ithaca", "NYC", timezone.now() + timedelta(days=1), seats=3, price=25
        )
        ride = result.ride
        self.assertEqual(ride.total_seats, 3)
        self.assertEqual(ride.seats_available, 3)
        self.assertEqual(ride.car_license_plate, "XYZ789")
        self.assertEqual(ride.status, Ride.STATUS_ACTIVE)

    def test_snapshot_survives_car_edit(self):
        car = make_car(self.driver, plate="OLD1")
        ride = ride_management.create_ride(
            self.driver, "Ithaca", "NYC", timezone.now() + timedelta(days=1), seats=1, car_id=car.id
        ).ride
        car.license_plate = "NEW1"
        car.save()
        ride.refresh_from_db()
        self.assertEqual(ride.car_license_plate, "OLD1")

    def test_rejects_bad_input(self):
        future = timezone.now() + timedelta(days=1)
        with self.assertRaises(RideValidationError):
            ride_management.create_ride(self.driver, "Ithaca", "ithaca", future, seats=1)
        with self.assertRaises(RideValidationError):
            ride_management.create_ride(self.driver, "Ithaca", "NYC", future, seats=0)
        with self.assertRaises(RideValidationError):
            ride_management.create_ride(self.driver, "Ithaca", "NYC", future, seats=1, price=-5)
        with self.assertRaises(RideValidationError):
            ride_management.create_ride(self.driver, "Ithaca", "NYC", timezone.now() - timedelta(hours=1), seats=1)

    def test_someone_elses_car_is_not_found(self):
        other = make_profile("other")
        car = make_car(other)
        with self.assertRaises(NotFoundError):
            ride_management.create_ride(
                self.driver, "Ithaca", "NYC", timezone.now() + timedelta(days=1), seats=1, car_id=car.id
            )


class RequestRideTests(TestCase):
    def setUp(self):
        self.driver = make_profile("driver")
        self.passenger = make_profile("passenger")
        self.ride = make_ride(self.driver, seats=2)

    def test_creates_pending_request_and_notifies_driver(self):
        result = ride_management.request_or_rerequest_ride(self.passenger, self.ride.id)

        self.assertEqual(result.request.status, RideRequest.STATUS_PENDING)
        note = Notification.objects.get(recipient=self.driver)
        self.assertEqual(note.type, Notification.NEW_REQUEST)
        self.assertEqual(note.request_id, result.request.id)

    def test_missing_ride(self):
        with self.assertRaises(NotFoundError):
            ride_management.request_or_rerequest_ride(self.passenger, 999999)

    def test_driver_cannot_request_own_ride(self):
        with self.assertRaises(UnauthorizedError):
            ride_management.request_or_rerequest_ride(self.driver, self.ride.id)

    def test_full_ride_is_refused_up_front(self):
        full = make_ride(self.driver, seats=1, seats_available=0)
        with self.assertRaisesMessage(CapacityExceededError, "This ride is full."):
            ride_management.request_or_rerequest_ride(self.passenger, full.id)

    def test_inactive_ride_is_refused(self):
        cancelled = make_ride(self.driver, status=Ride.STATUS_CANCELLED)
        with self.assertRaises(InvalidStateError):
            ride_management.request_or_rerequest_ride(self.passenger, cancelled.id)

    def test_duplicate_active_request(self):
        ride_management.request_or_rerequest_ride(self.passenger, self.ride.id)
        with self.assertRaisesMessage(InvalidStateError, "You already have an active request for this ride."):
            ride_management.request_or_rerequest_ride(self.passenger, self.ride.id)

    def test_rerequest_after_cancel_reuses_row(self):
        first = ride_management.request_or_rerequest_ride(self.passenger, self.ride.id).request
        ride_management.cancel_request(self.passenger, first.id)
        first.refresh_from_db()
        self.assertEqual(first.status, RideRequest.STATUS_CANCELLED)

        again = ride_management.request_or_rerequest_ride(self.passenger, self.ride.id).request

        self.assertEqual(again.id, first.id)
        self.assertEqual(again.status, RideRequest.STATUS_PENDING)
        self.assertEqual(RideRequest.objects.filter(ride=self.ride, passenger=self.passenger).count(), 1)

    def test_rerequest_after_rejection(self):
        join_request = make_join_request(self.ride, self.passenger, status=RideRequest.STATUS_REJECTED)
        result = ride_management.request_or_rerequest_ride(self.passenger, self.ride.id)
        self.assertEqual(result.request.id, join_request.id)
        self.assertEqual(result.request.status, RideRequest.STATUS_PENDING)


class HandleRequestUpdateTests(TestCase):
    def setUp(self):
        self.driver = make_profile("driver")
        self.p1 = make_profile("p1")
        self.p2 = make_profile("p2")
        self.p3 = make_profile("p3")

    def test_two_seats_fill_then_cancel_notifies_accepted_passengers(self):
        ride = make_ride(self.driver, seats=2)

        r1 = ride_management.request_or_rerequest_ride(self.p1, ride.id).request
        ride_management.handle_request_update(self.driver, r1.id, RideRequest.STATUS_ACCEPTED)
        ride.refresh_from_db()
        self.assertEqual(ride.seats_available, 1)

        r2 = ride_management.request_or_rerequest_ride(self.p2, ride.id).request
        ride_management.handle_request_update(self.driver, r2.id, RideRequest.STATUS_ACCEPTED)
        ride.refresh_from_db()
        self.assertEqual(ride.seats_available, 0)

        with self.assertRaises(CapacityExceededError):
            ride_management.request_or_rerequest_ride(self.p3, ride.id)

        ride_management.cancel_ride(self.driver, ride.id)
        ride.refresh_from_db()
        self.assertEqual(ride.status, Ride.STATUS_CANCELLED)

        cancelled_notes = Notification.objects.filter(type=Notification.DRIVER_CANCELLED_RIDE, ride=ride)
        self.assertEqual(
            set(cancelled_notes.values_list("recipient_id", flat=True)),
            {self.p1.pk, self.p2.pk},
        )
        # History rows are kept
        self.assertEqual(RideRequest.objects.filter(ride=ride).count(), 2)

    def test_accept_revalidates_capacity(self):
        ride = make_ride(self.driver, seats=1)
        r1 = make_join_request(ride, self.p1)
        r2 = make_join_request(ride, self.p2)

        ride_management.handle_request_update(self.driver, r1.id, RideRequest.STATUS_ACCEPTED)
        with self.assertRaises(CapacityExceededError):
            ride_management.handle_request_update(self.driver, r2.id, RideRequest.STATUS_ACCEPTED)

        r2.refresh_from_db()
        ride.refresh_from_db()
        self.assertEqual(r2.status, RideRequest.STATUS_PENDING)
        self.assertEqual(ride.seats_available, 0)

    def test_reject_notifies_passenger_and_keeps_seats(self):
        ride = make_ride(self.driver, seats=2)
        r1 = make_join_request(ride, self.p1)

        ride_management.handle_request_update(self.driver, r1.id, RideRequest.STATUS_REJECTED)

        ride.refresh_from_db()
        self.assertEqual(ride.seats_available, 2)
        note = Notification.objects.get(recipient=self.p1)
        self.assertEqual(note.type, Notification.REQUEST_REJECTED)

    def test_only_driver_may_respond(self):
        ride = make_ride(self.driver)
        r1 = make_join_request(ride, self.p1)
        with self.assertRaises(UnauthorizedError):
            ride_management.handle_request_update(self.p2, r1.id, RideRequest.STATUS_ACCEPTED)

    def test_invalid_status_value(self):
        ride = make_ride(self.driver)
        r1 = make_join_request(ride, self.p1)
        with self.assertRaises(RideValidationError):
            ride_management.handle_request_update(self.driver, r1.id, RideRequest.STATUS_CANCELLED)

    def test_request_must_be_pending(self):
        ride = make_ride(self.driver, seats=2, seats_available=1)
        r1 = make_join_request(ride, self.p1, status=RideRequest.STATUS_ACCEPTED)
        with self.assertRaises(InvalidStateError):
            ride_management.handle_request_update(self.driver, r1.id, RideRequest.STATUS_ACCEPTED)

    def test_missing_request(self):
        with self.assertRaises(NotFoundError):
            ride_management.handle_request_update(self.driver, 424242, RideRequest.STATUS_ACCEPTED)


class CancelRequestTests(TestCase):
    def setUp(self):
        self.driver = make_profile("driver")
        self.passenger = make_profile("passenger")
        self.ride = make_ride(self.driver, seats=2, seats_available=1)

    def test_passenger_cancel_of_accepted_releases_seat(self):
        join_request = make_join_request(self.ride, self.passenger, status=RideRequest.STATUS_ACCEPTED)

        ride_management.cancel_request(self.passenger, join_request.id)

        self.ride.refresh_from_db()
        self.assertEqual(self.ride.seats_available, 2)
        note = Notification.objects.get(recipient=self.driver)
        self.assertEqual(note.type, Notification.PASSENGER_CANCELLED)

    def test_driver_cancel_of_booking_notifies_passenger(self):
        join_request = make_join_request(self.ride, self.passenger, status=RideRequest.STATUS_ACCEPTED)

        ride_management.cancel_request(self.driver, join_request.id)

        note = Notification.objects.get(recipient=self.passenger)
        self.assertEqual(note.type, Notification.BOOKING_CANCELLED)

    def test_driver_cannot_cancel_pending(self):
        join_request = make_join_request(self.ride, self.passenger)
        with self.assertRaises(InvalidStateError):
            ride_management.cancel_request(self.driver, join_request.id)

    def test_stranger_cannot_cancel(self):
        stranger = make_profile("stranger")
        join_request = make_join_request(self.ride, self.passenger)
        with self.assertRaises(UnauthorizedError):
            ride_management.cancel_request(stranger, join_request.id)


class StandingRequestOfferTests(TestCase):
    def setUp(self):
        self.driver = make_profile("driver")
        self.passenger = make_profile("passenger")
        self.car = make_car(self.driver)
        self.standing = make_standing_request(self.passenger, seats_needed=3)

    def _offer(self):
        return ride_management.create_ride_from_request(
            self.driver,
            self.standing.id,
            departure_time=timezone.now() + timedelta(days=2),
            price=15,
            car_id=self.car.id,
        )

    def test_offer_creates_ride_and_pending_approval_request(self):
        result = self._offer()

        self.standing.refresh_from_db()
        self.assertEqual(self.standing.status, PassengerRideRequest.STATUS_PENDING_APPROVAL)
        self.assertEqual(self.standing.fulfilled_by_driver_id, self.driver.pk)
        self.assertEqual(result.ride.seats_available, 3)
        self.assertEqual(result.ride.fulfilled_from_request_id, self.standing.id)
        self.assertEqual(result.ride.seats_per_request, 3)
        self.assertEqual(result.ride.car_make, "Toyota")
        self.assertEqual(result.request.status, RideRequest.STATUS_PENDING_APPROVAL)
        self.assertEqual(result.request.passenger_id, self.passenger.pk)

        note = Notification.objects.get(recipient=self.passenger)
        self.assertEqual(note.type, Notification.PASSENGER_REQUEST_ACCEPTED)

    def test_passenger_accepting_offer_takes_party_seats(self):
        result = self._offer()

        ride_management.passenger_respond_to_offer(self.passenger, result.request.id, "accepted")

        result.request.refresh_from_db()
        result.ride.refresh_from_db()
        self.standing.refresh_from_db()
        self.assertEqual(result.request.status, RideRequest.STATUS_ACCEPTED)
        self.assertEqual(result.ride.seats_available, 0)
        self.assertEqual(self.standing.status, PassengerRideRequest.STATUS_FULFILLED)
        self.assertTrue(
            Notification.objects.filter(recipient=self.driver, type=Notification.REQUEST_ACCEPTED).exists()
        )

    def test_passenger_rejecting_offer_cancels_ride_and_reopens_request(self):
        result = self._offer()

        ride_management.passenger_respond_to_offer(self.passenger, result.request.id, "rejected")

        result.request.refresh_from_db()
        result.ride.refresh_from_db()
        self.standing.refresh_from_db()
        self.assertEqual(result.request.status, RideRequest.STATUS_REJECTED)
        self.assertEqual(result.ride.status, Ride.STATUS_CANCELLED)
        self.assertEqual(self.standing.status, PassengerRideRequest.STATUS_OPEN)
        self.assertIsNone(self.standing.fulfilled_by_driver_id)
        self.assertTrue(
            Notification.objects.filter(recipient=self.driver, type=Notification.REQUEST_REJECTED).exists()
        )

    def test_cancel_releases_party_seats_after_standing_request_is_edited(self):
        result = self._offer()
        ride_management.passenger_respond_to_offer(self.passenger, result.request.id, "accepted")
        PassengerRideRequest.objects.filter(pk=self.standing.pk).update(seats_needed=4)

        ride_management.cancel_request(self.passenger, result.request.id)

        result.ride.refresh_from_db()
        self.assertEqual(result.ride.seats_per_request, 3)
        self.assertEqual(result.ride.seats_available, 3)

    def test_cancel_releases_party_seats_after_standing_request_is_deleted(self):
        result = self._offer()
        ride_management.passenger_respond_to_offer(self.passenger, result.request.id, "accepted")
        self.standing.delete()

        ride_management.cancel_request(self.passenger, result.request.id)

        result.ride.refresh_from_db()
        self.assertIsNone(result.ride.fulfilled_from_request_id)
        self.assertEqual(result.ride.seats_available, 3)

    def test_cannot_fulfil_own_request(self):
        make_car(self.passenger, plate="PAX1")
        with self.assertRaises(UnauthorizedError):
            ride_management.create_ride_from_request(
                self.passenger, self.standing.id, timezone.now() + timedelta(days=1), 0
            )

    def test_request_must_be_open(self):
        self._offer()
        other_driver = make_profile("other")
        other_car = make_car(other_driver, plate="OTH1")
        with self.assertRaises(InvalidStateError):
            ride_management.create_ride_from_request(
                other_driver, self.standing.id, timezone.now() + timedelta(days=1), 0, other_car.id
            )

    def test_car_must_belong_to_driver(self):
        other_car = make_car(make_profile("other"), plate="OTH2")
        with self.assertRaises(NotFoundError):
            ride_management.create_ride_from_request(
                self.driver, self.standing.id, timezone.now() + timedelta(days=1), 0, other_car.id
            )
        self.standing.refresh_from_db()
        self.assertEqual(self.standing.status, PassengerRideRequest.STATUS_OPEN)

    def test_only_the_passenger_can_respond(self):
        result = self._offer()
        with self.assertRaises(UnauthorizedError):
            ride_management.passenger_respond_to_offer(self.driver, result.request.id, "accepted")

    def test_response_must_be_pending_approval(self):
        result = self._offer()
        ride_management.passenger_respond_to_offer(self.passenger, result.request.id, "accepted")
        with self.assertRaises(InvalidStateError):
            ride_management.passenger_respond_to_offer(self.passenger, result.request.id, "rejected")

    def test_invalid_response_value(self):
        result = self._offer()
        with self.assertRaises(RideValidationError):
            ride_management.passenger_respond_to_offer(self.passenger, result.request.id, "maybe")

    def test_cancelling_offered_ride_reopens_standing_request(self):
        result = self._offer()

        ride_management.cancel_ride(self.driver, result.ride.id)

        self.standing.refresh_from_db()
        self.assertEqual(self.standing.status, PassengerRideRequest.STATUS_OPEN)
        self.assertIsNone(self.standing.fulfilled_by_driver_id)
        self.assertTrue(
            Notification.objects.filter(recipient=self.passenger, type=Notification.DRIVER_CANCELLED_RIDE).exists()
        )


class CancelAndCompleteRideTests(TestCase):
    def setUp(self):
        self.driver = make_profile("driver")
        self.passenger = make_profile("passenger")

    def test_only_owner_can_cancel(self):
        ride = make_ride(self.driver)
        with self.assertRaises(UnauthorizedError):
            ride_management.cancel_ride(self.passenger, ride.id)

    def test_cancel_skips_pending_and_rejected_passengers(self):
        ride = make_ride(self.driver, seats=3, seats_available=2)
        make_join_request(ride, self.passenger, status=RideRequest.STATUS_ACCEPTED)
        make_join_request(ride, make_profile("pending"))
        make_join_request(ride, make_profile("rejected"), status=RideRequest.STATUS_REJECTED)

        result = ride_management.cancel_ride(self.driver, ride.id)

        self.assertEqual(result.extra["notified_passengers"], 1)
        self.assertEqual(Notification.objects.filter(type=Notification.DRIVER_CANCELLED_RIDE).count(), 1)

    def test_cannot_cancel_twice(self):
        ride = make_ride(self.driver)
        ride_management.cancel_ride(self.driver, ride.id)
        with self.assertRaises(InvalidStateError):
            ride_management.cancel_ride(self.driver, ride.id)

    def test_complete_after_departure(self):
        ride = make_ride(self.driver, hours_ahead=-2)
        ride_management.complete_ride(self.driver, ride.id)
        ride.refresh_from_db()
        self.assertEqual(ride.status, Ride.STATUS_COMPLETED)

    def test_complete_before_departure_is_refused(self):
        ride = make_ride(self.driver, hours_ahead=5)
        with self.assertRaises(InvalidStateError):
            ride_management.complete_ride(self.driver, ride.id)

    def test_departure_gate_can_be_switched_off(self):
        ride = make_ride(self.driver, hours_ahead=5)
        with override_settings(RIDESHARE={**settings.RIDESHARE, "REQUIRE_DEPARTURE_BEFORE_COMPLETION": False}):
            ride_management.complete_ride(self.driver, ride.id)
        ride.refresh_from_db()
        self.assertEqual(ride.status, Ride.STATUS_COMPLETED)

    def test_only_owner_can_complete(self):
        ride = make_ride(self.driver, hours_ahead=-2)
        with self.assertRaises(UnauthorizedError):
            ride_management.complete_ride(self.passenger, ride.id)

    def test_cancelled_ride_cannot_complete(self):
        ride = make_ride(self.driver, hours_ahead=-2, status=Ride.STATUS_CANCELLED)
        with self.assertRaises(InvalidStateError):
            ride_management.complete_ride(self.driver, ride.id)


class TransitionRollbackTests(TestCase):
    def test_failed_accept_leaves_no_partial_writes(self):
        driver = make_profile("driver")
        passenger = make_profile("passenger")
        ride = make_ride(driver, seats=1, seats_available=0)
        join_request = make_join_request(ride, passenger)

        with self.assertRaises(CapacityExceededError):
            ride_management.handle_request_update(driver, join_request.id, RideRequest.STATUS_ACCEPTED)

        join_request.refresh_from_db()
        self.assertEqual(join_request.status, RideRequest.STATUS_PENDING)
        self.assertFalse(Notification.objects.exists())

    def test_push_waits_for_commit(self):
        driver = make_profile("driver")
        passenger = make_profile("passenger")
        ride = make_ride(driver)

        with patch("notifications.emitter.push_notification") as push:
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                ride_management.request_or_rerequest_ride(passenger, ride.id)
                push.assert_not_called()

        self.assertEqual(len(callbacks), 1)
        push.assert_called_once()
        self.assertEqual(push.call_args.args[0].type, Notification.NEW_REQUEST)


class ConcurrentAcceptTests(TransactionTestCase):
    """Two driver sessions racing for the last seat, each in its own connection."""

    def test_last_seat_goes_to_exactly_one_request(self):
        driver = make_profile("driver")
        ride = make_ride(driver, seats=1)
        requests = [make_join_request(ride, make_profile(f"p{i}")) for i in range(2)]

        outcomes = []
        barrier = threading.Barrier(len(requests))

        def accept(request_id):
            try:
                barrier.wait()
                ride_management.handle_request_update(driver, request_id, RideRequest.STATUS_ACCEPTED)
                outcomes.append("ok")
            except CapacityExceededError:
                outcomes.append("full")
            except Exception as exc:
                outcomes.append(type(exc).__name__)
            finally:
                connection.close()

        threads = [threading.Thread(target=accept, args=(r.id,)) for r in requests]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        ride.refresh_from_db()
        self.assertEqual(sorted(outcomes), ["full", "ok"])
        self.assertEqual(ride.seats_available, 0)
        self.assertEqual(
            RideRequest.objects.filter(ride=ride, status=RideRequest.STATUS_ACCEPTED).count(), 1
        )
