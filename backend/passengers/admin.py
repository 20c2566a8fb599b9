from django.contrib import admin

from passengers.models import PassengerRideRequest


@admin.register(PassengerRideRequest)
class PassengerRideRequestAdmin(admin.ModelAdmin):
    list_display = ["id", "passenger", "origin", "destination", "departure_date", "seats_needed", "status"]
    list_filter = ["status", "departure_date"]
    search_fields = ["passenger__full_name", "passenger__user__username", "origin", "destination"]
    readonly_fields = ["fulfilled_by_driver", "created_at"]
