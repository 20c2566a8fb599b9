import io
import shutil
import tempfile

from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import IntegrityError
from django.test import TestCase, override_settings
from PIL import Image
from rest_framework.test import APIClient
from unittest.mock import patch

from accounts.models import User, Profile
from accounts import services
from services.ride_management.exceptions import RideValidationError


def png_upload(name="me.png"):
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color="red").save(buf, format="PNG")
    return SimpleUploadedFile(name, buf.getvalue(), content_type="image/png")


class ProfileCreationTests(TestCase):
    def _user(self, username, email):
        return User.objects.create_user(username=username, email=email, password="pass12345")

    def test_edu_email_marks_verified_student(self):
        profile = services.create_profile_for_user(self._user("amy", "amy@Cornell.EDU"))
        self.assertTrue(profile.is_verified_student)

    def test_other_email_is_not_verified(self):
        profile = services.create_profile_for_user(self._user("bob", "bob@gmail.com"))
        self.assertFalse(profile.is_verified_student)
        self.assertEqual(profile.full_name, "bob")

    def test_duplicate_creation_returns_existing_profile(self):
        user = self._user("cat", "cat@cornell.edu")
        first = services.create_profile_for_user(user, full_name="Cat")
        second = services.create_profile_for_user(user, full_name="Other")
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Profile.objects.filter(pk=user.pk).count(), 1)
        self.assertEqual(second.full_name, "Cat")

    def test_racing_insert_is_swallowed(self):
        user = self._user("dan", "dan@cornell.edu")
        Profile.objects.create(user=user, full_name="Dan")

        with patch.object(Profile.objects, "create", side_effect=IntegrityError("duplicate key")):
            profile = services.create_profile_for_user(user)

        self.assertEqual(profile.full_name, "Dan")

    def test_get_actor_profile_creates_on_first_use(self):
        user = self._user("eve", "eve@cornell.edu")
        profile = services.get_actor_profile(user)
        self.assertEqual(profile.pk, user.pk)


class PaymentMethodTests(TestCase):
    def test_valid_methods_are_cleaned(self):
        cleaned = services.validate_payment_methods([{"method": " Venmo ", "handle": " @amy "}])
        self.assertEqual(cleaned, [{"method": "Venmo", "handle": "@amy"}])

    def test_at_most_three(self):
        methods = [{"method": f"m{i}", "handle": "h"} for i in range(4)]
        with self.assertRaises(RideValidationError):
            services.validate_payment_methods(methods)

    def test_empty_handle_or_method(self):
        with self.assertRaises(RideValidationError):
            services.validate_payment_methods([{"method": "Venmo", "handle": "  "}])
        with self.assertRaises(RideValidationError):
            services.validate_payment_methods([{"method": "", "handle": "@amy"}])


class AvatarStorageTests(TestCase):
    def setUp(self):
        self.media = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.media, ignore_errors=True)
        user = User.objects.create_user(username="amy", email="amy@cornell.edu", password="pass12345")
        self.profile = services.create_profile_for_user(user)

    def test_deterministic_key_is_overwritten(self):
        with override_settings(MEDIA_ROOT=self.media):
            services.store_avatar(self.profile, png_upload("first.png"))
            first_name = self.profile.avatar.name
            services.store_avatar(self.profile, png_upload("second.png"))

            self.assertEqual(first_name, f"avatars/{self.profile.pk}.png")
            self.assertEqual(self.profile.avatar.name, first_name)
            self.assertTrue(self.profile.avatar.storage.exists(first_name))
            _, files = self.profile.avatar.storage.listdir("avatars")
            self.assertEqual(files, [f"{self.profile.pk}.png"])

    def test_new_extension_removes_old_object(self):
        with override_settings(MEDIA_ROOT=self.media):
            services.store_avatar(self.profile, png_upload("me.png"))
            url = services.store_avatar(self.profile, png_upload("me.JPG"))

            storage = self.profile.avatar.storage
            self.assertFalse(storage.exists(f"avatars/{self.profile.pk}.png"))
            self.assertTrue(storage.exists(f"avatars/{self.profile.pk}.jpg"))
            self.assertTrue(url.endswith(f"avatars/{self.profile.pk}.jpg"))


class AuthAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_register_creates_profile_and_tokens(self):
        response = self.client.post("/api/auth/register/", {
            "username": "amy",
            "email": "amy@cornell.edu",
            "password": "password123",
            "full_name": "Amy Adams",
        }, format="json")

        self.assertEqual(response.status_code, 201)
        self.assertIn("access", response.data["tokens"])
        self.assertTrue(response.data["profile"]["is_verified_student"])
        self.assertEqual(response.data["profile"]["full_name"], "Amy Adams")

    def test_login_and_profile_roundtrip(self):
        User.objects.create_user(username="bob", email="bob@gmail.com", password="password123")

        login = self.client.post("/api/auth/login/", {"username": "bob", "password": "password123"}, format="json")
        self.assertEqual(login.status_code, 200)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.data['tokens']['access']}")
        response = self.client.patch("/api/auth/profile/", {
            "full_name": "Bob B",
            "payment_methods": [{"method": "Venmo", "handle": "@bob"}],
        }, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["full_name"], "Bob B")
        self.assertEqual(response.data["payment_methods"], [{"method": "Venmo", "handle": "@bob"}])

    def test_too_many_payment_methods_uses_error_envelope(self):
        user = User.objects.create_user(username="cat", email="cat@cornell.edu", password="password123")
        self.client.force_authenticate(user)

        response = self.client.patch("/api/auth/profile/", {
            "payment_methods": [{"method": f"m{i}", "handle": "h"} for i in range(4)],
        }, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["success"], False)
        self.assertEqual(response.data["error"], "validation_error")

    def test_avatar_upload(self):
        media = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, media, ignore_errors=True)
        user = User.objects.create_user(username="dan", email="dan@cornell.edu", password="password123")
        self.client.force_authenticate(user)

        with override_settings(MEDIA_ROOT=media):
            response = self.client.post("/api/auth/profile/avatar/", {"avatar": png_upload()}, format="multipart")

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["avatar_url"].endswith(f"/media/avatars/{user.pk}.png"))

    def test_profile_requires_auth(self):
        response = self.client.get("/api/auth/profile/")
        self.assertEqual(response.status_code, 401)
