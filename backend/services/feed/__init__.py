"""
Feed service - discovery list of rides and standing ride requests.
"""

from .projection import (
    FeedItem,
    ride_weight,
    standing_request_weight,
    build_feed,
    recent_feed,
)

__all__ = [
    "FeedItem",
    "ride_weight",
    "standing_request_weight",
    "build_feed",
    "recent_feed",
]
