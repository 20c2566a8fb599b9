"""Per-user notification socket."""

from channels.db import database_sync_to_async

from .base import BaseConsumer


class NotificationConsumer(BaseConsumer):
    """
    ws/notifications/

    Server -> client:
        {"type": "notification", "notification": {...}}
    Client -> server:
        {"type": "ping"}          -> {"type": "pong"}
        {"type": "unread_count"}  -> {"type": "unread_count", "count": n}
    """

    client_messages = ("ping", "unread_count")

    async def connection_extras(self):
        return {"unread_count": await self._unread_count()}

    async def on_ping(self, data):
        await self.send_json({"type": "pong"})

    async def on_unread_count(self, data):
        await self.send_json({"type": "unread_count", "count": await self._unread_count()})

    @database_sync_to_async
    def _unread_count(self):
        from notifications.models import Notification
        return Notification.objects.filter(recipient_id=self.user_id, is_read=False).count()

    # ---------------------- Group Event Handlers ----------------------

    async def notification_created(self, event):
        """Sent by realtime.push after a notification row commits."""
        await self.send_json({
            "type": "notification",
            "notification": event.get("data", {}),
        })
