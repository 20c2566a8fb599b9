"""
Realtime app: WebSocket delivery of notifications.

Key Components:
    - consumers/: NotificationConsumer on ws/notifications/
    - middleware.py: JWT (query string) or session auth for WebSocket connections
    - push.py: server -> user group_send helpers used after commit

Usage:
    from realtime.push import push_notification, push_to_user
"""
