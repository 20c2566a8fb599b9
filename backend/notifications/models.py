from django.db import models

from accounts.models import Profile


class Notification(models.Model):
    """An addressed, pre-rendered message produced by a lifecycle transition"""

    NEW_REQUEST = 'NEW_REQUEST'
    REQUEST_ACCEPTED = 'REQUEST_ACCEPTED'
    REQUEST_REJECTED = 'REQUEST_REJECTED'
    PASSENGER_CANCELLED = 'PASSENGER_CANCELLED'
    DRIVER_CANCELLED_RIDE = 'DRIVER_CANCELLED_RIDE'
    BOOKING_CANCELLED = 'BOOKING_CANCELLED'
    PASSENGER_REQUEST_ACCEPTED = 'PASSENGER_REQUEST_ACCEPTED'

    TYPE_CHOICES = [
        (NEW_REQUEST, 'New request'),
        (REQUEST_ACCEPTED, 'Request accepted'),
        (REQUEST_REJECTED, 'Request rejected'),
        (PASSENGER_CANCELLED, 'Passenger cancelled'),
        (DRIVER_CANCELLED_RIDE, 'Driver cancelled ride'),
        (BOOKING_CANCELLED, 'Booking cancelled'),
        (PASSENGER_REQUEST_ACCEPTED, 'Offer on passenger request'),
    ]

    recipient = models.ForeignKey(
        Profile,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    type = models.CharField(max_length=40, choices=TYPE_CHOICES)
    message = models.TextField()

    ride = models.ForeignKey(
        'rides.Ride',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notifications'
    )
    request = models.ForeignKey(
        'rides.RideRequest',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notifications'
    )

    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['recipient', 'is_read'], name='notif_recipient_read_idx'),
        ]

    def __str__(self):
        return f"{self.type} -> {self.recipient} ({'read' if self.is_read else 'unread'})"
