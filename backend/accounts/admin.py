from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from accounts.models import User, Profile


class ProfileInline(admin.StackedInline):
    model = Profile
    can_delete = False
    readonly_fields = ["average_rating", "rating_count", "is_verified_student", "updated_at"]


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin panel for custom User model"""

    inlines = [ProfileInline]

    list_display = [
        "username",
        "email",
        "is_active",
        "is_staff",
        "date_joined",
    ]

    list_filter = [
        "is_active",
        "is_staff",
        "date_joined",
    ]

    search_fields = [
        "username",
        "email",
        "profile__full_name",
    ]

    ordering = ("username",)


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ["user", "full_name", "phone_number", "average_rating", "rating_count", "is_verified_student"]
    list_filter = ["is_verified_student"]
    search_fields = ["full_name", "user__username", "user__email", "phone_number"]
    readonly_fields = ["average_rating", "rating_count", "is_verified_student", "updated_at"]
