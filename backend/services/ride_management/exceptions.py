"""Custom exceptions for ride management."""


class RideshareError(Exception):
    """Base class for lifecycle failures surfaced to the caller."""
    error_code = "rideshare_error"
    status_code = 400


class NotFoundError(RideshareError):
    """Raised when a ride, request, car or profile cannot be found for the actor."""
    error_code = "not_found"
    status_code = 404


class UnauthorizedError(RideshareError):
    """Raised when the actor lacks the role required for the operation."""
    error_code = "unauthorized"
    status_code = 403


class CapacityExceededError(RideshareError):
    """Raised when a ride has no seats left for the transition."""
    error_code = "capacity_exceeded"
    status_code = 409


class InvalidStateError(RideshareError):
    """Raised when a ride or request is not in a state that permits the operation."""
    error_code = "invalid_state"
    status_code = 409


class DuplicateConstraintError(RideshareError):
    """Raised when a uniqueness rule is violated (e.g. rating the same person twice)."""
    error_code = "duplicate"
    status_code = 409


class RideValidationError(RideshareError):
    """Raised on malformed input."""
    error_code = "validation_error"
    status_code = 400
