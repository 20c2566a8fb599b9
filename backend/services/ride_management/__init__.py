"""
Ride management service - Core ride lifecycle operations.

This module handles:
    - Posting rides and offering rides for standing requests
    - Requesting, accepting, rejecting and cancelling seats
    - Cancelling and completing rides
    - Ratings after completion
"""

from .ride_lifecycle import (
    RideResult,
    create_ride,
    request_or_rerequest_ride,
    handle_request_update,
    cancel_request,
    create_ride_from_request,
    passenger_respond_to_offer,
    cancel_ride,
    complete_ride,
    get_driver_rides,
    get_incoming_requests,
    get_outgoing_requests,
)
from .ratings import submit_rating, delete_rating

from .exceptions import (
    RideshareError,
    NotFoundError,
    UnauthorizedError,
    CapacityExceededError,
    InvalidStateError,
    DuplicateConstraintError,
    RideValidationError,
)

__all__ = [
    # Lifecycle operations
    "RideResult",
    "create_ride",
    "request_or_rerequest_ride",
    "handle_request_update",
    "cancel_request",
    "create_ride_from_request",
    "passenger_respond_to_offer",
    "cancel_ride",
    "complete_ride",
    "get_driver_rides",
    "get_incoming_requests",
    "get_outgoing_requests",
    "submit_rating",
    "delete_rating",
    # Exceptions
    "RideshareError",
    "NotFoundError",
    "UnauthorizedError",
    "CapacityExceededError",
    "InvalidStateError",
    "DuplicateConstraintError",
    "RideValidationError",
]
