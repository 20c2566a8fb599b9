from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.utils.dateparse import parse_date

from accounts.services import get_actor_profile
from passengers.serializers import PassengerRideRequestSerializer
from services import ride_management
from services.feed import recent_feed
from services.feed.projection import KIND_RIDE
from services.ride_management.exceptions import RideValidationError
from .serializers import (
    RideSerializer,
    RideCreateSerializer,
    RideRequestSerializer,
    RequestDecisionSerializer,
    RatingSerializer,
    RatingCreateSerializer,
)


def _result_response(result, status_code=status.HTTP_200_OK):
    payload = {
        'success': result.success,
        'message': result.message,
    }
    if result.ride is not None:
        payload['ride'] = RideSerializer(result.ride).data
    if result.request is not None:
        payload['request'] = RideRequestSerializer(result.request).data
    if result.extra:
        payload.update(result.extra)
    return Response(payload, status=status_code)


# ==================== Ride Offers (driver) ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def create_ride(request):
    """Driver posts a new ride offer"""
    serializer = RideCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = ride_management.create_ride(
        get_actor_profile(request.user),
        **serializer.validated_data
    )
    return _result_response(result, status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_rides(request):
    """Rides the current user is driving, latest departure first"""
    rides = ride_management.get_driver_rides(get_actor_profile(request.user))
    return Response(RideSerializer(rides, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cancel_ride(request, ride_id):
    """Driver cancels a ride; passengers holding seats or offers are notified"""
    result = ride_management.cancel_ride(get_actor_profile(request.user), ride_id)
    return _result_response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def complete_ride(request, ride_id):
    """Driver marks the ride as completed"""
    result = ride_management.complete_ride(get_actor_profile(request.user), ride_id)
    return _result_response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def respond_to_request(request, request_id):
    """Driver accepts or rejects a pending join request. Body: {"status": "accepted" | "rejected"}"""
    serializer = RequestDecisionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = ride_management.handle_request_update(
        get_actor_profile(request.user),
        request_id,
        serializer.validated_data['status'],
    )
    return _result_response(result)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def incoming_requests(request):
    """Join requests on the current user's rides"""
    requests_qs = ride_management.get_incoming_requests(get_actor_profile(request.user))
    return Response(RideRequestSerializer(requests_qs, many=True).data)


# ==================== Join Requests (passenger) ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def request_ride(request, ride_id):
    """Passenger asks for a seat, or asks again after a rejection or cancellation"""
    result = ride_management.request_or_rerequest_ride(get_actor_profile(request.user), ride_id)
    return _result_response(result, status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cancel_request(request, request_id):
    """Either party withdraws a join request"""
    result = ride_management.cancel_request(get_actor_profile(request.user), request_id)
    return _result_response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def respond_to_offer(request, request_id):
    """Passenger answers a driver's offer on their standing request"""
    serializer = RequestDecisionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = ride_management.passenger_respond_to_offer(
        get_actor_profile(request.user),
        request_id,
        serializer.validated_data['status'],
    )
    return _result_response(result)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def outgoing_requests(request):
    """The current user's own join requests"""
    requests_qs = ride_management.get_outgoing_requests(get_actor_profile(request.user))
    return Response(RideRequestSerializer(requests_qs, many=True).data)


# ==================== Ratings ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def submit_rating(request, ride_id):
    """Rate another participant of a completed ride"""
    serializer = RatingCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    rating = ride_management.submit_rating(
        get_actor_profile(request.user),
        ride_id,
        serializer.validated_data['ratee_id'],
        serializer.validated_data['rating'],
        serializer.validated_data.get('comment'),
    )
    return Response(
        {'success': True, 'rating': RatingSerializer(rating).data},
        status=status.HTTP_201_CREATED
    )


# ==================== Feed ====================

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def feed(request):
    """
    Rides and standing requests for discovery.
    Optional query params: origin, destination, date (YYYY-MM-DD).
    """
    date = None
    raw_date = request.query_params.get('date')
    if raw_date:
        date = parse_date(raw_date)
        if date is None:
            raise RideValidationError("Date must be in YYYY-MM-DD format.")

    items = recent_feed(
        origin=request.query_params.get('origin') or None,
        destination=request.query_params.get('destination') or None,
        date=date,
    )

    data = []
    for item in items:
        if item.kind == KIND_RIDE:
            body = RideSerializer(item.obj).data
        else:
            body = PassengerRideRequestSerializer(item.obj).data
        data.append({
            'kind': item.kind,
            'weight': item.weight,
            'time': item.time_key.isoformat(),
            'item': body,
        })
    return Response(data)
