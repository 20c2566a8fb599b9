"""Read-side notification operations. Each only ever touches the actor's own rows."""

import logging

from django.conf import settings

from services.ride_management.exceptions import RideValidationError
from .models import Notification

logger = logging.getLogger(__name__)


def _validate_types(types):
    valid = {choice for choice, _ in Notification.TYPE_CHOICES}
    unknown = [t for t in types if t not in valid]
    if unknown:
        raise RideValidationError(f"Unknown notification type(s): {', '.join(unknown)}")


def list_notifications(profile, limit=None):
    """Most recent notifications for the profile, newest first."""
    if limit is None:
        limit = settings.RIDESHARE["NOTIFICATION_LIST_LIMIT"]
    return list(
        Notification.objects.filter(recipient=profile)
        .select_related('ride')
        .order_by('-created_at', '-id')[:limit]
    )


def unread_count(profile) -> int:
    return Notification.objects.filter(recipient=profile, is_read=False).count()


def mark_all_as_read(profile) -> int:
    updated = Notification.objects.filter(recipient=profile, is_read=False).update(is_read=True)
    logger.info("Marked %s notifications read for profile %s", updated, profile.pk)
    return updated


def mark_request_notification_as_read(profile, request_id, type) -> int:
    """Mark the profile's unread notifications of `type` about one request as read."""
    _validate_types([type])
    return Notification.objects.filter(
        recipient=profile,
        request_id=request_id,
        type=type,
        is_read=False,
    ).update(is_read=True)


def mark_as_read_by_types(profile, types) -> int:
    """Mark every unread notification whose type is in `types`. An empty list does nothing."""
    if not types:
        return 0
    _validate_types(types)
    return Notification.objects.filter(
        recipient=profile,
        type__in=types,
        is_read=False,
    ).update(is_read=True)
