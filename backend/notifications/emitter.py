"""
Notification emitter.

The only writer of Notification rows. Lifecycle operations call notify()
inside their transaction; the realtime push is deferred until that
transaction commits, so a rolled-back transition never reaches a client.
"""

import logging
from functools import partial

from django.db import transaction

from realtime.push import push_notification
from .models import Notification

logger = logging.getLogger(__name__)

VALID_TYPES = {choice for choice, _ in Notification.TYPE_CHOICES}


def notify(recipient, type, message, ride=None, request=None) -> Notification:
    """
    Append one unread notification for `recipient` and schedule its push.

    Args:
        recipient: Profile receiving the notification
        type: One of the Notification type constants
        message: Pre-rendered, human-readable text
        ride: Optional Ride the notification refers to
        request: Optional RideRequest the notification refers to
    """
    if type not in VALID_TYPES:
        raise ValueError(f"Unknown notification type: {type}")

    notification = Notification.objects.create(
        recipient=recipient,
        type=type,
        message=message,
        ride=ride,
        request=request,
    )
    logger.info(
        "Notification %s (%s) -> profile %s [ride=%s request=%s]",
        notification.id, type, notification.recipient_id,
        notification.ride_id, notification.request_id
    )

    transaction.on_commit(partial(push_notification, notification))
    return notification
