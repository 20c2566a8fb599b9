"""
Profile services: the identity-provider side of the core.

Every authenticated actor needs a Profile before it can take part in a ride.
Profiles are created explicitly here (no signal handlers), and a racing
duplicate insert is treated as success.
"""

import logging

from django.conf import settings
from django.db import IntegrityError, transaction

from services.ride_management.exceptions import RideValidationError
from .models import Profile

logger = logging.getLogger(__name__)


def is_verified_student_email(email) -> bool:
    """True when the address ends with the configured academic suffix (case-insensitive)."""
    if not email:
        return False
    suffix = settings.RIDESHARE["VERIFIED_EMAIL_SUFFIX"].lower()
    return email.strip().lower().endswith(suffix)


def create_profile_for_user(user, full_name=None, phone_number=None) -> Profile:
    """
    Create the default profile for a newly registered user.

    The verified-student flag is derived here, once, from the email address.
    """
    if not full_name:
        full_name = (user.email or "").split("@")[0] or user.username

    try:
        with transaction.atomic():
            profile = Profile.objects.create(
                user=user,
                full_name=full_name,
                phone_number=phone_number or None,
                is_verified_student=is_verified_student_email(user.email),
            )
    except IntegrityError:
        # Another request created it first; that is the state we wanted
        logger.warning("Profile for user %s already exists, continuing", user.pk)
        return Profile.objects.get(pk=user.pk)

    logger.info("Created profile for user %s (verified_student=%s)", user.pk, profile.is_verified_student)
    return profile


def get_actor_profile(user) -> Profile:
    """Resolve the acting user's profile, creating it on first use."""
    try:
        return Profile.objects.get(pk=user.pk)
    except Profile.DoesNotExist:
        return create_profile_for_user(user)


def validate_payment_methods(payment_methods):
    """Return a cleaned list of `{method, handle}` dicts or raise RideValidationError."""
    if payment_methods is None:
        return []
    if not isinstance(payment_methods, list):
        raise RideValidationError("Payment methods must be a list.")

    limit = settings.RIDESHARE["MAX_PAYMENT_METHODS"]
    if len(payment_methods) > limit:
        raise RideValidationError(f"You can add at most {limit} payment methods.")

    cleaned = []
    for entry in payment_methods:
        if not isinstance(entry, dict):
            raise RideValidationError("Each payment method needs a method and a handle.")
        method = str(entry.get("method") or "").strip()
        handle = str(entry.get("handle") or "").strip()
        if not method:
            raise RideValidationError("Payment method name cannot be empty.")
        if not handle:
            raise RideValidationError(f"Payment handle for {method} cannot be empty.")
        cleaned.append({"method": method, "handle": handle})
    return cleaned


def update_profile(profile: Profile, full_name=None, phone_number=None, payment_methods=None) -> Profile:
    """Partial update by the profile owner. Only fields passed as non-None change."""
    update_fields = ["updated_at"]

    if full_name is not None:
        full_name = full_name.strip()
        if not full_name:
            raise RideValidationError("Name cannot be empty.")
        profile.full_name = full_name
        update_fields.append("full_name")

    if phone_number is not None:
        profile.phone_number = phone_number.strip() or None
        update_fields.append("phone_number")

    if payment_methods is not None:
        profile.payment_methods = validate_payment_methods(payment_methods)
        update_fields.append("payment_methods")

    profile.save(update_fields=update_fields)
    return profile


def store_avatar(profile: Profile, uploaded_file) -> str:
    """
    Store avatar bytes at the profile's deterministic key and return the public URL.

    Re-uploading with the same extension overwrites the object; a different
    extension removes the previous object.
    """
    previous = profile.avatar.name if profile.avatar else None

    profile.avatar.save(uploaded_file.name, uploaded_file, save=False)
    profile.save(update_fields=["avatar", "updated_at"])

    if previous and previous != profile.avatar.name:
        profile.avatar.storage.delete(previous)

    logger.info("Stored avatar for profile %s at %s", profile.pk, profile.avatar.name)
    return profile.avatar.url
