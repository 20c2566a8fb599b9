from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from accounts.services import get_actor_profile
from . import services
from .serializers import NotificationSerializer, MarkByTypesSerializer, MarkRequestSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def list_notifications(request):
    """Latest notifications for the current user plus the unread count"""
    profile = get_actor_profile(request.user)
    notifications = services.list_notifications(profile)
    return Response({
        'unread_count': services.unread_count(profile),
        'results': NotificationSerializer(notifications, many=True).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_all_read(request):
    updated = services.mark_all_as_read(get_actor_profile(request.user))
    return Response({'success': True, 'updated': updated})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_read_by_type(request):
    """Body: {"types": ["REQUEST_ACCEPTED", ...]}"""
    serializer = MarkByTypesSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    updated = services.mark_as_read_by_types(
        get_actor_profile(request.user),
        serializer.validated_data['types'],
    )
    return Response({'success': True, 'updated': updated})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_request_read(request):
    """Body: {"request_id": 12, "type": "NEW_REQUEST"}"""
    serializer = MarkRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    updated = services.mark_request_notification_as_read(
        get_actor_profile(request.user),
        serializer.validated_data['request_id'],
        serializer.validated_data['type'],
    )
    return Response({'success': True, 'updated': updated})
