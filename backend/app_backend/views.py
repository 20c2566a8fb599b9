import logging

from django.db import connection
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework import status
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


def _probe_database():
    with connection.cursor() as cursor:
        cursor.execute("SELECT 1")


def _probe_channel_layer():
    if get_channel_layer() is None:
        raise RuntimeError("no channel layer configured")


HEALTH_PROBES = (
    ("database", _probe_database),
    ("channels", _probe_channel_layer),
)


@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def health_check(request):
    """
    Liveness probe for load balancers.
    200 when every dependency answers, 503 otherwise, with a per-service breakdown.
    """
    services = {}
    healthy = True

    for name, probe in HEALTH_PROBES:
        try:
            probe()
            services[name] = "healthy"
        except Exception as e:
            logger.warning("Health probe %s failed: %s", name, e)
            services[name] = f"unhealthy: {e}"
            healthy = False

    return Response(
        {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
    )
