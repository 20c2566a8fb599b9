"""Maps lifecycle errors onto API responses."""

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from services.ride_management.exceptions import RideshareError

logger = logging.getLogger(__name__)


def rideshare_exception_handler(exc, context):
    """
    Render `RideshareError` subclasses as
    `{"success": false, "error": <code>, "message": <text>}` with the status
    code the error class carries. Everything else falls through to DRF.
    """
    if isinstance(exc, RideshareError):
        view = context.get("view")
        logger.info(
            "%s rejected: %s (%s)",
            view.__class__.__name__ if view else "request",
            exc.error_code,
            exc,
        )
        return Response(
            {
                "success": False,
                "error": exc.error_code,
                "message": str(exc),
            },
            status=exc.status_code,
        )

    return exception_handler(exc, context)
