from channels.db import database_sync_to_async
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser
from django.test import TransactionTestCase
from rest_framework_simplejwt.tokens import AccessToken

from notifications.emitter import notify
from notifications.models import Notification
from realtime.consumers import NotificationConsumer
from realtime.middleware import JWTOrCookieAuthMiddleware
from realtime.push import push_to_user
from services.tests.factories import make_profile


class NotificationConsumerTests(TransactionTestCase):

    async def _connect(self, user):
        communicator = WebsocketCommunicator(NotificationConsumer.as_asgi(), "/ws/notifications/")
        communicator.scope["user"] = user
        connected, _ = await communicator.connect()
        return communicator, connected

    async def test_anonymous_connection_is_closed(self):
        communicator, connected = await self._connect(AnonymousUser())
        self.assertFalse(connected)

    async def test_connect_reports_unread_count(self):
        profile = await database_sync_to_async(make_profile)("amy")
        await database_sync_to_async(notify)(profile, Notification.NEW_REQUEST, "hello")

        communicator, connected = await self._connect(profile.user)
        self.assertTrue(connected)

        hello = await communicator.receive_json_from()
        self.assertEqual(hello["type"], "connection_established")
        self.assertEqual(hello["unread_count"], 1)
        await communicator.disconnect()

    async def test_committed_notification_is_pushed(self):
        profile = await database_sync_to_async(make_profile)("bob")
        communicator, _ = await self._connect(profile.user)
        await communicator.receive_json_from()

        note = await database_sync_to_async(notify)(profile, Notification.REQUEST_ACCEPTED, "You're in")

        event = await communicator.receive_json_from(timeout=2)
        self.assertEqual(event["type"], "notification")
        self.assertEqual(event["notification"]["id"], note.id)
        self.assertEqual(event["notification"]["type"], Notification.REQUEST_ACCEPTED)
        await communicator.disconnect()

    async def test_ping(self):
        profile = await database_sync_to_async(make_profile)("cat")
        communicator, _ = await self._connect(profile.user)
        await communicator.receive_json_from()

        await communicator.send_json_to({"type": "ping"})
        self.assertEqual(await communicator.receive_json_from(), {"type": "pong"})

        await communicator.send_json_to({"type": "dance"})
        error = await communicator.receive_json_from()
        self.assertEqual(error["type"], "error")
        await communicator.disconnect()


class JWTMiddlewareTests(TransactionTestCase):

    async def test_valid_token_authenticates(self):
        profile = await database_sync_to_async(make_profile)("dan")
        token = str(AccessToken.for_user(profile.user))

        app = JWTOrCookieAuthMiddleware(NotificationConsumer.as_asgi())
        communicator = WebsocketCommunicator(app, f"/ws/notifications/?token={token}")
        connected, _ = await communicator.connect()

        self.assertTrue(connected)
        hello = await communicator.receive_json_from()
        self.assertEqual(hello["user_id"], profile.user.id)
        await communicator.disconnect()

    async def test_bad_token_is_anonymous(self):
        app = JWTOrCookieAuthMiddleware(NotificationConsumer.as_asgi())
        communicator = WebsocketCommunicator(app, "/ws/notifications/?token=not-a-jwt")
        connected, _ = await communicator.connect()
        self.assertFalse(connected)


class PushHelperTests(TransactionTestCase):
    def test_missing_user_is_not_sent(self):
        self.assertFalse(push_to_user(None, "notification_created", {}))
