"""Tells what to show in the Django admin interface for rides app"""

from django.contrib import admin, messages

from services.ride_management import seat_ledger, ratings
from services.ride_management.exceptions import RideshareError
from .models import Ride, RideRequest, Rating


@admin.register(Ride)
class RideAdmin(admin.ModelAdmin):
    """Ride offer admin"""
    list_display = ['id', 'driver', 'origin', 'destination', 'departure_time',
                    'seats_available', 'total_seats', 'price', 'status']
    list_filter = ['status', 'departure_time']
    search_fields = ['driver__full_name', 'driver__user__username', 'origin', 'destination']
    readonly_fields = ['seats_available', 'seats_per_request', 'created_at']
    date_hierarchy = 'departure_time'


@admin.register(RideRequest)
class RideRequestAdmin(admin.ModelAdmin):
    """
    Join request admin.

    Status is read-only here; deletes go through the seat ledger so an
    accepted request gives its seats back.
    """
    list_display = ['id', 'ride', 'passenger', 'status', 'created_at', 'updated_at']
    list_filter = ['status', 'created_at']
    search_fields = ['passenger__full_name', 'passenger__user__username', 'ride__id']
    readonly_fields = ['status', 'created_at', 'updated_at']

    def delete_model(self, request, obj):
        try:
            seat_ledger.delete_request(obj)
        except RideshareError as exc:
            self.message_user(request, str(exc), level=messages.ERROR)

    def delete_queryset(self, request, queryset):
        for obj in queryset:
            self.delete_model(request, obj)


@admin.register(Rating)
class RatingAdmin(admin.ModelAdmin):
    """Deletes rebuild the ratee's average through the ratings service."""
    list_display = ("ride", "rater", "ratee", "rating", "created_at")
    list_filter = ("rating",)
    search_fields = ("ride__id", "rater__full_name", "ratee__full_name")

    def delete_model(self, request, obj):
        ratings.delete_rating(obj)

    def delete_queryset(self, request, queryset):
        for obj in queryset:
            self.delete_model(request, obj)
