from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """Read-only view of emitted notifications"""
    list_display = ("id", "recipient", "type", "is_read", "ride", "request", "created_at")
    list_filter = ("type", "is_read")
    search_fields = ("recipient__full_name", "recipient__user__username", "message")
    readonly_fields = ("recipient", "type", "message", "ride", "request", "created_at")
