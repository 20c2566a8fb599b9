from rest_framework import serializers

from accounts.serializers import PublicProfileSerializer
from passengers.models import PassengerRideRequest


class PassengerRideRequestSerializer(serializers.ModelSerializer):
    """
    A standing ride request as shown in the feed and to its owner.
    """
    passenger = PublicProfileSerializer(read_only=True)
    fulfilled_by_driver = PublicProfileSerializer(read_only=True)

    class Meta:
        model = PassengerRideRequest
        fields = [
            'id', 'passenger', 'origin', 'destination', 'departure_date',
            'flexible_time', 'seats_needed', 'notes', 'willing_to_split_fuel',
            'status', 'fulfilled_by_driver', 'created_at'
        ]
        read_only_fields = fields


class PassengerRideRequestCreateSerializer(serializers.Serializer):
    """
    Expected body:
    {
        "origin": "North Campus",
        "destination": "Airport",
        "departure_date": "2025-05-01",
        "flexible_time": "after 5pm",
        "seats_needed": 2,
        "notes": "two suitcases",
        "willing_to_split_fuel": true
    }
    """
    origin = serializers.CharField(max_length=120)
    destination = serializers.CharField(max_length=120)
    departure_date = serializers.DateField()
    flexible_time = serializers.CharField(max_length=60, required=False, allow_blank=True)
    seats_needed = serializers.IntegerField(min_value=1, default=1)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    willing_to_split_fuel = serializers.BooleanField(default=False)


class FulfillRequestSerializer(serializers.Serializer):
    """Driver's offer for a standing request."""
    departure_time = serializers.DateTimeField()
    price = serializers.IntegerField(min_value=0)
    car_id = serializers.IntegerField(required=False, allow_null=True)
