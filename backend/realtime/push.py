"""
Server -> client push over the channel layer.

Each connected user sits in a personal group `user_<user_id>`; server-side
code sends events there and the NotificationConsumer forwards them.
Delivery is best effort: the notification row is the source of truth, so a
push failure is logged and never raised.
"""

import logging
from typing import Dict, Any

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


def user_group(user_id) -> str:
    return f"user_{user_id}"


def notification_payload(notification) -> Dict[str, Any]:
    return {
        "id": notification.id,
        "type": notification.type,
        "message": notification.message,
        "ride_id": notification.ride_id,
        "request_id": notification.request_id,
        "is_read": notification.is_read,
        "created_at": notification.created_at.isoformat() if notification.created_at else None,
    }


def push_to_user(user_id, event_type: str, data: Dict[str, Any]) -> bool:
    """
    Send an event to one user's personal group.

    Args:
        user_id: Target user (== profile) id
        event_type: Handler name in the consumer, e.g. notification_created
        data: JSON-serialisable payload

    Returns:
        True if handed to the channel layer, False otherwise
    """
    if not user_id:
        return False

    channel_layer = get_channel_layer()
    if channel_layer is None:
        return False

    try:
        async_to_sync(channel_layer.group_send)(
            user_group(user_id),
            {"type": event_type, "data": data},
        )
    except Exception:
        logger.exception("Push of %s to user %s failed", event_type, user_id)
        return False

    logger.debug("WS -> user_%s: %s", user_id, event_type)
    return True


def push_notification(notification) -> bool:
    """Forward a stored Notification to its recipient's open sockets."""
    return push_to_user(
        notification.recipient_id,
        "notification_created",
        notification_payload(notification),
    )
