from django.db import models

from accounts.models import Profile


class PassengerRideRequest(models.Model):
    """A standing request: a passenger looking for any driver going their way"""

    STATUS_OPEN = 'open'
    STATUS_PENDING_APPROVAL = 'pending-passenger-approval'
    STATUS_FULFILLED = 'fulfilled'
    STATUS_CANCELLED = 'cancelled'

    STATUS_CHOICES = [
        (STATUS_OPEN, 'Open'),
        (STATUS_PENDING_APPROVAL, 'Pending Passenger Approval'),
        (STATUS_FULFILLED, 'Fulfilled'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    passenger = models.ForeignKey(
        Profile,
        on_delete=models.CASCADE,
        related_name='standing_requests'
    )

    origin = models.CharField(max_length=120)
    destination = models.CharField(max_length=120)
    departure_date = models.DateField()
    # "flexible" or a free-text time preference such as "after 5pm"
    flexible_time = models.CharField(max_length=60, default='flexible')
    seats_needed = models.PositiveIntegerField(default=1)
    notes = models.TextField(null=True, blank=True)
    willing_to_split_fuel = models.BooleanField(default=False)

    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default=STATUS_OPEN)

    fulfilled_by_driver = models.ForeignKey(
        Profile,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='fulfilled_standing_requests'
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'passenger_ride_requests'
        ordering = ['departure_date', 'created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(seats_needed__gte=1),
                name='standing_request_seats_needed_positive'
            ),
        ]

    def __str__(self):
        return f"Standing request #{self.id} {self.origin} -> {self.destination} ({self.status})"
