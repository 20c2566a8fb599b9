from rest_framework import serializers
from drivers.models import Car


class CarSerializer(serializers.ModelSerializer):
    """
    A driver's car as shown to its owner
    """

    class Meta:
        model = Car
        fields = [
            "id",
            "make",
            "model",
            "year",
            "color",
            "license_plate",
            "is_insured",
            "is_default",
            "created_at",
        ]
        read_only_fields = ["id", "is_default", "created_at"]


class CarWriteSerializer(serializers.Serializer):
    """
    Input shape for add/update; business rules live in drivers.services
    """
    make = serializers.CharField(max_length=60, required=False)
    model = serializers.CharField(max_length=60, required=False)
    year = serializers.IntegerField(required=False, allow_null=True, min_value=1900, max_value=2100)
    color = serializers.CharField(max_length=30, required=False, allow_blank=True, allow_null=True)
    license_plate = serializers.CharField(max_length=20, required=False)
    is_insured = serializers.BooleanField(required=False)
