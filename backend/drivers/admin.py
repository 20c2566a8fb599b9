from django.contrib import admin
from drivers.models import Car


@admin.register(Car)
class CarAdmin(admin.ModelAdmin):
    """Admin panel for managing drivers' cars"""

    list_display = [
        "owner",
        "make",
        "model",
        "license_plate",
        "is_insured",
        "is_default",
        "created_at",
    ]

    list_filter = [
        "is_insured",
        "is_default",
    ]

    search_fields = [
        "owner__full_name",
        "owner__user__username",
        "license_plate",
    ]

    readonly_fields = [
        "created_at",
    ]

    ordering = ("owner", "-is_default")
