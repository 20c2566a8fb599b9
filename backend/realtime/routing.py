"""WebSocket URL routing for the realtime app."""

from django.urls import re_path

from .consumers import NotificationConsumer

websocket_urlpatterns = [
    # Personal notification stream
    # URL: ws://localhost:8000/ws/notifications/?token=<access>
    re_path(
        r"ws/notifications/$",
        NotificationConsumer.as_asgi(),
        name="notifications-ws"
    ),
]
