from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.exceptions import TokenError

from .serializers import (
    RegisterSerializer,
    LoginSerializer,
    ProfileSerializer,
    ProfileUpdateSerializer,
    AvatarUploadSerializer,
)
from . import services


def _tokens_for(user):
    refresh = RefreshToken.for_user(user)
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


class RegisterView(APIView):
    """
    Register a new user and create their profile

    POST Body:
    {
        "username": "jane",
        "email": "jane@cornell.edu",
        "password": "password123",
        "full_name": "Jane Doe",
        "phone_number": "+1234567890"
    }
    """
    permission_classes = (AllowAny,)
    authentication_classes = []

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        return Response({
            'message': 'User registered successfully',
            'profile': ProfileSerializer(user.profile, context={'request': request}).data,
            'tokens': _tokens_for(user),
        }, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    Login with username and password to get JWT tokens
    """
    permission_classes = (AllowAny,)
    authentication_classes = []

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = serializer.validated_data
        profile = services.get_actor_profile(user)

        return Response({
            "message": "Login successful",
            "profile": ProfileSerializer(profile, context={'request': request}).data,
            "tokens": _tokens_for(user),
        }, status=status.HTTP_200_OK)


class RefreshTokenView(APIView):
    """
    Refresh JWT access token

    POST Body:
    {
        "refresh": "your_refresh_token"
    }
    """
    permission_classes = (AllowAny,)
    authentication_classes = []

    def post(self, request):
        refresh_token = request.data.get('refresh')

        if not refresh_token:
            return Response(
                {'error': 'Refresh token is required'},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            refresh = RefreshToken(refresh_token)
        except TokenError:
            return Response(
                {'error': 'Invalid refresh token'},
                status=status.HTTP_401_UNAUTHORIZED
            )
        return Response({'access': str(refresh.access_token)})


class ProfileView(APIView):
    """
    GET   -> the authenticated user's profile
    PATCH -> update name, phone number or payment methods
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        profile = services.get_actor_profile(request.user)
        return Response(ProfileSerializer(profile, context={'request': request}).data)

    def patch(self, request):
        serializer = ProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        profile = services.update_profile(
            services.get_actor_profile(request.user),
            **serializer.validated_data
        )
        return Response(ProfileSerializer(profile, context={'request': request}).data)


class AvatarUploadView(APIView):
    """POST multipart `avatar` -> stores the image and returns its public URL."""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = AvatarUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        profile = services.get_actor_profile(request.user)
        url = services.store_avatar(profile, serializer.validated_data['avatar'])

        return Response({'avatar_url': request.build_absolute_uri(url)}, status=status.HTTP_200_OK)
