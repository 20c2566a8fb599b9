# passengers/views/requests.py

from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from accounts.services import get_actor_profile
from passengers.serializers import (
    PassengerRideRequestSerializer,
    PassengerRideRequestCreateSerializer,
    FulfillRequestSerializer,
)
from passengers.services import request_services
from rides.serializers import RideSerializer, RideRequestSerializer
from services.ride_management import create_ride_from_request


class StandingRequestListCreateView(APIView):
    """
    GET:  the passenger's own standing requests, newest first.
    POST: post a new standing request.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        profile = get_actor_profile(request.user)
        standing = request_services.get_my_standing_requests(profile)
        return Response(PassengerRideRequestSerializer(standing, many=True).data)

    def post(self, request):
        create_ser = PassengerRideRequestCreateSerializer(data=request.data)
        create_ser.is_valid(raise_exception=True)

        profile = get_actor_profile(request.user)
        standing = request_services.create_standing_request(profile, create_ser.validated_data)
        return Response(PassengerRideRequestSerializer(standing).data, status=status.HTTP_201_CREATED)


class StandingRequestCancelView(APIView):
    """
    POST: passenger withdraws an open standing request.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, request_id):
        profile = get_actor_profile(request.user)
        standing = request_services.cancel_standing_request(profile, request_id)
        return Response({
            "success": True,
            "message": "Ride request cancelled.",
            "request": PassengerRideRequestSerializer(standing).data,
        })


class FulfillStandingRequestView(APIView):
    """
    POST: a driver offers a ride for someone else's standing request.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, request_id):
        offer_ser = FulfillRequestSerializer(data=request.data)
        offer_ser.is_valid(raise_exception=True)

        driver = get_actor_profile(request.user)
        result = create_ride_from_request(
            driver,
            request_id,
            departure_time=offer_ser.validated_data["departure_time"],
            price=offer_ser.validated_data["price"],
            car_id=offer_ser.validated_data.get("car_id"),
        )
        return Response({
            "success": result.success,
            "message": result.message,
            "ride": RideSerializer(result.ride).data,
            "request": RideRequestSerializer(result.request).data,
        }, status=status.HTTP_201_CREATED)
