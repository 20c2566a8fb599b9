from unittest.mock import AsyncMock, patch

from django.test import TestCase
from rest_framework.test import APIClient

from notifications.emitter import notify
from notifications.models import Notification
from notifications import services
from services.ride_management.exceptions import RideValidationError
from services.tests.factories import make_profile, make_ride, make_join_request


class EmitterTests(TestCase):
    def setUp(self):
        self.driver = make_profile("driver")
        self.passenger = make_profile("passenger")
        self.ride = make_ride(self.driver)

    def test_inserts_unread_row_with_refs(self):
        join_request = make_join_request(self.ride, self.passenger)

        note = notify(self.passenger, Notification.REQUEST_ACCEPTED, "Accepted", ride=self.ride, request=join_request)

        self.assertFalse(note.is_read)
        self.assertEqual(note.ride_id, self.ride.id)
        self.assertEqual(note.request_id, join_request.id)

    def test_unknown_type_is_refused(self):
        with self.assertRaises(ValueError):
            notify(self.passenger, "SOMETHING_ELSE", "nope")
        self.assertFalse(Notification.objects.exists())

    def test_push_runs_on_commit(self):
        with patch("notifications.emitter.push_notification") as push:
            with self.captureOnCommitCallbacks(execute=True):
                note = notify(self.passenger, Notification.NEW_REQUEST, "Hi")
        push.assert_called_once_with(note)

    def test_push_failure_does_not_raise(self):
        with patch("realtime.push.get_channel_layer") as get_layer:
            get_layer.return_value.group_send = AsyncMock(side_effect=RuntimeError("layer down"))
            with self.captureOnCommitCallbacks(execute=True):
                notify(self.passenger, Notification.NEW_REQUEST, "Hi")
        self.assertEqual(Notification.objects.count(), 1)

    def test_history_survives_ride_deletion(self):
        note = notify(self.passenger, Notification.DRIVER_CANCELLED_RIDE, "Gone", ride=self.ride)
        self.ride.delete()
        note.refresh_from_db()
        self.assertIsNone(note.ride_id)


class MarkReadTests(TestCase):
    def setUp(self):
        self.me = make_profile("me")
        self.other = make_profile("other")
        ride = make_ride(self.other)
        self.join_request = make_join_request(ride, self.me)

        self.accepted = notify(self.me, Notification.REQUEST_ACCEPTED, "a", request=self.join_request)
        self.rejected = notify(self.me, Notification.REQUEST_REJECTED, "r", request=self.join_request)
        self.cancelled = notify(self.me, Notification.DRIVER_CANCELLED_RIDE, "c")
        self.not_mine = notify(self.other, Notification.REQUEST_ACCEPTED, "x", request=self.join_request)

    def _unread(self):
        return set(Notification.objects.filter(is_read=False).values_list("id", flat=True))

    def test_mark_all_only_touches_actor(self):
        self.assertEqual(services.mark_all_as_read(self.me), 3)
        self.assertEqual(self._unread(), {self.not_mine.id})

    def test_mark_by_types(self):
        services.mark_as_read_by_types(self.me, [Notification.REQUEST_ACCEPTED, Notification.REQUEST_REJECTED])
        self.assertEqual(self._unread(), {self.cancelled.id, self.not_mine.id})

    def test_mark_by_types_empty_list_is_noop(self):
        self.assertEqual(services.mark_as_read_by_types(self.me, []), 0)
        self.assertEqual(len(self._unread()), 4)

    def test_mark_request_notification(self):
        updated = services.mark_request_notification_as_read(
            self.me, self.join_request.id, Notification.REQUEST_ACCEPTED
        )
        self.assertEqual(updated, 1)
        self.assertEqual(self._unread(), {self.rejected.id, self.cancelled.id, self.not_mine.id})

    def test_unknown_type(self):
        with self.assertRaises(RideValidationError):
            services.mark_as_read_by_types(self.me, ["BOGUS"])

    def test_list_is_newest_first_and_limited(self):
        listed = services.list_notifications(self.me, limit=2)
        self.assertEqual([n.id for n in listed], [self.cancelled.id, self.rejected.id])


class NotificationAPITests(TestCase):
    def setUp(self):
        self.me = make_profile("me")
        self.client = APIClient()
        self.client.force_authenticate(self.me.user)
        notify(self.me, Notification.NEW_REQUEST, "one")
        notify(self.me, Notification.PASSENGER_CANCELLED, "two")

    def test_list(self):
        response = self.client.get("/api/notifications/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["unread_count"], 2)
        self.assertEqual(response.data["results"][0]["message"], "two")

    def test_read_by_type(self):
        response = self.client.post(
            "/api/notifications/read-by-type/", {"types": [Notification.NEW_REQUEST]}, format="json"
        )
        self.assertEqual(response.data["updated"], 1)

    def test_read_all(self):
        response = self.client.post("/api/notifications/read-all/")
        self.assertEqual(response.data["updated"], 2)
        self.assertEqual(services.unread_count(self.me), 0)
