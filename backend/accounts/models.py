from django.db import models
from django.contrib.auth.models import AbstractUser

from .storage import AvatarStorage, avatar_upload_to


class User(AbstractUser):
    """Identity record used for authentication; public data lives on Profile."""
    email = models.EmailField(unique=True)

    class Meta:
        db_table = 'users'

    def __str__(self):
        return self.username


class Profile(models.Model):
    """A user's public identity, shared with counterparties on rides."""

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name='profile'
    )

    full_name = models.CharField(max_length=150, blank=True)
    avatar = models.ImageField(
        upload_to=avatar_upload_to,
        storage=AvatarStorage(),
        null=True,
        blank=True,
    )
    phone_number = models.CharField(max_length=20, null=True, blank=True)

    # [{"method": "Venmo", "handle": "@alex"}, ...]
    payment_methods = models.JSONField(default=list, blank=True)

    average_rating = models.FloatField(default=0)
    rating_count = models.IntegerField(default=0)

    # Derived once from the email suffix at creation time
    is_verified_student = models.BooleanField(default=False)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'profiles'

    def __str__(self):
        return self.full_name or self.user.username

    @property
    def display_name(self):
        return self.full_name or self.user.username
