from rest_framework import serializers

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    ride_origin = serializers.CharField(source='ride.origin', read_only=True, default=None)
    ride_destination = serializers.CharField(source='ride.destination', read_only=True, default=None)

    class Meta:
        model = Notification
        fields = ['id', 'type', 'message', 'ride', 'ride_origin', 'ride_destination',
                  'request', 'is_read', 'created_at']
        read_only_fields = fields


class MarkByTypesSerializer(serializers.Serializer):
    types = serializers.ListField(child=serializers.CharField(), allow_empty=True)


class MarkRequestSerializer(serializers.Serializer):
    request_id = serializers.IntegerField()
    type = serializers.CharField()
