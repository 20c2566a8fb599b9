from rest_framework import serializers

from accounts.serializers import PublicProfileSerializer
from .models import Ride, RideRequest, Rating


class CarSnapshotField(serializers.Field):
    """Renders the car columns copied onto a ride as one nested object (or null)."""

    def __init__(self, **kwargs):
        kwargs['source'] = '*'
        kwargs['read_only'] = True
        super().__init__(**kwargs)

    def to_representation(self, ride):
        if not ride.car_make:
            return None
        return {
            'make': ride.car_make,
            'model': ride.car_model,
            'year': ride.car_year,
            'color': ride.car_color,
            'license_plate': ride.car_license_plate,
            'is_insured': ride.car_is_insured,
        }


class RideSerializer(serializers.ModelSerializer):
    """Serializer for Ride offers"""
    driver = PublicProfileSerializer(read_only=True)
    car = CarSnapshotField()

    class Meta:
        model = Ride
        fields = ['id', 'driver', 'origin', 'destination', 'departure_time',
                  'total_seats', 'seats_available', 'price', 'status', 'car',
                  'fulfilled_from_request', 'created_at']
        read_only_fields = fields


class RideCreateSerializer(serializers.Serializer):
    """Input for posting a ride; business rules are enforced by the lifecycle service"""
    origin = serializers.CharField(max_length=120)
    destination = serializers.CharField(max_length=120)
    departure_time = serializers.DateTimeField()
    seats = serializers.IntegerField(min_value=1)
    price = serializers.IntegerField(min_value=0, default=0)
    car_id = serializers.IntegerField(required=False, allow_null=True)


class RideRequestSerializer(serializers.ModelSerializer):
    """Serializer for join requests, with the ride and passenger embedded"""
    ride = RideSerializer(read_only=True)
    passenger = PublicProfileSerializer(read_only=True)

    class Meta:
        model = RideRequest
        fields = ['id', 'ride', 'passenger', 'status', 'created_at', 'updated_at']
        read_only_fields = fields


class RequestDecisionSerializer(serializers.Serializer):
    """Body for driver responses and passenger offer responses"""
    status = serializers.CharField()


class RatingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Rating
        fields = ['id', 'ride', 'rater', 'ratee', 'rating', 'comment', 'created_at']
        read_only_fields = fields


class RatingCreateSerializer(serializers.Serializer):
    ratee_id = serializers.IntegerField()
    rating = serializers.IntegerField()
    comment = serializers.CharField(required=False, allow_blank=True, allow_null=True)
