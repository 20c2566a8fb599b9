from django.db import models

from accounts.models import Profile
from passengers.models import PassengerRideRequest


class Ride(models.Model):
    """A driver's ride offer with a fixed capacity and price"""

    STATUS_ACTIVE = 'active'
    STATUS_CANCELLED = 'cancelled'
    STATUS_COMPLETED = 'completed'

    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_COMPLETED, 'Completed'),
    ]

    driver = models.ForeignKey(
        Profile,
        on_delete=models.CASCADE,
        related_name='rides_offered'
    )

    origin = models.CharField(max_length=120)
    destination = models.CharField(max_length=120)
    departure_time = models.DateTimeField()

    # Capacity at creation; seats_available moves only through the seat ledger
    total_seats = models.PositiveIntegerField()
    seats_available = models.IntegerField()

    # Whole currency units, 0 = free
    price = models.PositiveIntegerField(default=0)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    # Snapshot of the car at posting time, not a live reference
    car_make = models.CharField(max_length=60, null=True, blank=True)
    car_model = models.CharField(max_length=60, null=True, blank=True)
    car_year = models.PositiveIntegerField(null=True, blank=True)
    car_color = models.CharField(max_length=30, null=True, blank=True)
    car_license_plate = models.CharField(max_length=20, null=True, blank=True)
    car_is_insured = models.BooleanField(null=True, blank=True)

    fulfilled_from_request = models.ForeignKey(
        PassengerRideRequest,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='offered_rides'
    )
    # Seats one accepted request takes; fixed when the ride is created
    seats_per_request = models.PositiveIntegerField(default=1)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'rides'
        ordering = ['departure_time']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(seats_available__gte=0),
                name='ride_seats_available_non_negative'
            ),
            models.CheckConstraint(
                condition=models.Q(seats_available__lte=models.F('total_seats')),
                name='ride_seats_available_within_capacity'
            ),
            models.CheckConstraint(
                condition=models.Q(seats_per_request__gte=1),
                name='ride_seats_per_request_positive'
            ),
        ]

    def __str__(self):
        return f"Ride #{self.id} {self.origin} -> {self.destination} ({self.status})"


class RideRequest(models.Model):
    """A passenger's request to occupy a seat on a specific ride"""

    STATUS_PENDING = 'pending'
    STATUS_ACCEPTED = 'accepted'
    STATUS_REJECTED = 'rejected'
    STATUS_CANCELLED = 'cancelled'
    STATUS_PENDING_APPROVAL = 'pending-passenger-approval'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACCEPTED, 'Accepted'),
        (STATUS_REJECTED, 'Rejected'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_PENDING_APPROVAL, 'Pending Passenger Approval'),
    ]

    ACTIVE_STATUSES = (STATUS_PENDING, STATUS_ACCEPTED, STATUS_PENDING_APPROVAL)
    TERMINAL_STATUSES = (STATUS_REJECTED, STATUS_CANCELLED)

    ride = models.ForeignKey(Ride, on_delete=models.CASCADE, related_name='requests')
    passenger = models.ForeignKey(
        Profile,
        on_delete=models.CASCADE,
        related_name='ride_requests'
    )

    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default=STATUS_PENDING)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'requests'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['ride', 'passenger'],
                name='unique_ride_passenger'
            )
        ]

    def __str__(self):
        return f"Request #{self.id} - Ride {self.ride_id} - {self.passenger} - {self.status}"

    @property
    def is_active(self):
        return self.status in self.ACTIVE_STATUSES


class Rating(models.Model):
    """One-directional score from rater to ratee for a single ride"""

    ride = models.ForeignKey(Ride, on_delete=models.CASCADE, related_name='ratings')
    rater = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name='ratings_given')
    ratee = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name='ratings_received')

    rating = models.PositiveSmallIntegerField()
    comment = models.TextField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'ratings'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['rater', 'ratee', 'ride'],
                name='rater_ratee_ride_unique'
            ),
            models.CheckConstraint(
                condition=models.Q(rating__gte=1) & models.Q(rating__lte=5),
                name='rating_between_1_and_5'
            ),
        ]

    def __str__(self):
        return f"{self.rater} -> {self.ratee}: {self.rating} (ride {self.ride_id})"
