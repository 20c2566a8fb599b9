from django.db import models

from accounts.models import Profile


class Car(models.Model):
    """A vehicle a driver can attach to the rides they post"""

    owner = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name='cars')

    make = models.CharField(max_length=60)
    model = models.CharField(max_length=60)
    year = models.PositiveIntegerField(null=True, blank=True)
    color = models.CharField(max_length=30, null=True, blank=True)
    license_plate = models.CharField(max_length=20)
    is_insured = models.BooleanField(default=False)

    # At most one per owner; maintained by services.set_default_car
    is_default = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'cars'
        ordering = ['-is_default', 'created_at']

    def __str__(self):
        return f"{self.make} {self.model} ({self.license_plate})"

    def snapshot(self):
        """Field values copied onto a Ride when it is created."""
        return {
            "car_make": self.make,
            "car_model": self.model,
            "car_year": self.year,
            "car_color": self.color,
            "car_license_plate": self.license_plate,
            "car_is_insured": self.is_insured,
        }
