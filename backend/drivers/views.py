from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from accounts.services import get_actor_profile
from drivers.serializers import CarSerializer, CarWriteSerializer
from drivers import services


class CarListView(APIView):
    """
    GET  -> the driver's cars, default first
    POST -> add a car (the first car becomes the default)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        profile = get_actor_profile(request.user)
        serializer = CarSerializer(services.list_cars(profile), many=True)
        return Response(serializer.data)

    def post(self, request):
        profile = get_actor_profile(request.user)
        write = CarWriteSerializer(data=request.data)
        write.is_valid(raise_exception=True)

        car = services.add_car(profile, write.validated_data)
        return Response(CarSerializer(car).data, status=status.HTTP_201_CREATED)


class CarDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request, car_id):
        profile = get_actor_profile(request.user)
        write = CarWriteSerializer(data=request.data, partial=True)
        write.is_valid(raise_exception=True)

        car = services.update_car(profile, car_id, write.validated_data)
        return Response(CarSerializer(car).data)

    def delete(self, request, car_id):
        profile = get_actor_profile(request.user)
        services.delete_car(profile, car_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class SetDefaultCarView(APIView):
    """POST: make this car the driver's default. Safe to repeat."""
    permission_classes = [IsAuthenticated]

    def post(self, request, car_id):
        profile = get_actor_profile(request.user)
        car = services.set_default_car(profile, car_id)
        return Response({"success": True, "car": CarSerializer(car).data})
