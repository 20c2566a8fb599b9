"""Per-user WebSocket plumbing shared by the realtime consumers."""

import logging
from typing import Dict, Any, Optional

from channels.generic.websocket import AsyncJsonWebsocketConsumer

from realtime.push import user_group

logger = logging.getLogger(__name__)


class BaseConsumer(AsyncJsonWebsocketConsumer):
    """
    A socket bound to one signed-in user.

    On connect the socket joins the user's personal group (`user_<id>`), so
    anything sent with realtime.push reaches every tab the user has open.
    Anonymous sockets are refused.

    Client messages are JSON objects with a "type". A message of type "x" is
    answered by `on_x(data)` when "x" is listed in `client_messages`;
    anything else gets an error frame back.
    """

    client_messages = ()

    async def connect(self):
        self.user = self.scope.get("user")
        self.group_name: Optional[str] = None

        if self.user is None or self.user.is_anonymous:
            await self.close()
            return

        self.user_id = self.user.id
        self.group_name = user_group(self.user_id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)

        await self.accept()
        await self.send_json({
            "type": "connection_established",
            "user_id": self.user_id,
            **await self.connection_extras(),
        })
        logger.debug("WS connect user %s", self.user_id)

    async def connection_extras(self) -> Dict[str, Any]:
        """Extra fields for the connection_established frame."""
        return {}

    async def disconnect(self, close_code):
        if getattr(self, "group_name", None):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)
            logger.debug("WS disconnect user %s (%s)", self.user_id, close_code)

    async def receive_json(self, data: Dict[str, Any]):
        msg_type = data.get("type") if isinstance(data, dict) else None
        if not msg_type:
            await self.send_error("Message type is required")
            return

        if msg_type not in self.client_messages:
            await self.send_error(f"Unknown message type: {msg_type}")
            return

        try:
            await getattr(self, f"on_{msg_type}")(data)
        except Exception:
            logger.exception("Error handling message type %s", msg_type)
            await self.send_error(f"Error processing {msg_type}")

    async def send_error(self, message: str):
        await self.send_json({
            "type": "error",
            "message": message,
        })
