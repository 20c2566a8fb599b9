from rest_framework import serializers
from django.contrib.auth import authenticate

from .models import User, Profile
from .services import create_profile_for_user


class ProfileSerializer(serializers.ModelSerializer):
    """Owner's view of their own profile, including contact and payment details."""
    id = serializers.IntegerField(source="pk", read_only=True)
    username = serializers.CharField(source="user.username", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)
    avatar_url = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Profile
        fields = [
            "id",
            "username",
            "email",
            "full_name",
            "avatar_url",
            "phone_number",
            "payment_methods",
            "average_rating",
            "rating_count",
            "is_verified_student",
            "updated_at",
        ]
        read_only_fields = fields

    def get_avatar_url(self, obj):
        """
        Generate absolute URL for clients.
        Relative media paths break on mobile clients.
        """
        if obj.avatar:
            request = self.context.get("request")
            if request:
                return request.build_absolute_uri(obj.avatar.url)
            return obj.avatar.url
        return None


class PublicProfileSerializer(serializers.ModelSerializer):
    """Counterparty view embedded in rides and requests; no contact details."""
    id = serializers.IntegerField(source="pk", read_only=True)
    name = serializers.CharField(source="display_name", read_only=True)

    class Meta:
        model = Profile
        fields = ["id", "name", "average_rating", "rating_count", "is_verified_student"]


class ProfileUpdateSerializer(serializers.Serializer):
    full_name = serializers.CharField(required=False, max_length=150)
    phone_number = serializers.CharField(required=False, allow_blank=True, max_length=20)
    payment_methods = serializers.ListField(
        child=serializers.DictField(child=serializers.CharField(allow_blank=True)),
        required=False,
    )


class AvatarUploadSerializer(serializers.Serializer):
    avatar = serializers.ImageField()


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, data):
        user = authenticate(username=data["username"], password=data["password"])
        if not user:
            raise serializers.ValidationError("Invalid username or password")
        return user


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=8)
    full_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    phone_number = serializers.CharField(required=False, allow_blank=True, max_length=20)

    class Meta:
        model = User
        fields = ['username', 'password', 'email', 'full_name', 'phone_number']

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email already exists")
        return value

    def create(self, validated_data):
        full_name = validated_data.pop('full_name', None)
        phone_number = validated_data.pop('phone_number', None)

        user = User.objects.create_user(
            username=validated_data['username'],
            email=validated_data['email'],
            password=validated_data['password'],
        )
        create_profile_for_user(user, full_name=full_name, phone_number=phone_number)
        return user
