from django.urls import path
from .views import (
    CarListView,
    CarDetailView,
    SetDefaultCarView,
)

urlpatterns = [
    path("cars/", CarListView.as_view(), name="driver-cars"),
    path("cars/<int:car_id>/", CarDetailView.as_view(), name="driver-car-detail"),
    path("cars/<int:car_id>/default/", SetDefaultCarView.as_view(), name="driver-car-default"),
]
