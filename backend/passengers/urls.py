# passengers/urls.py

from django.urls import path

from .views.requests import (
    StandingRequestListCreateView,
    StandingRequestCancelView,
    FulfillStandingRequestView,
)

app_name = "passengers"

urlpatterns = [
    path("requests/", StandingRequestListCreateView.as_view(), name="standing-requests"),
    path("requests/<int:request_id>/cancel/", StandingRequestCancelView.as_view(), name="cancel-standing-request"),
    path("requests/<int:request_id>/fulfill/", FulfillStandingRequestView.as_view(), name="fulfill-standing-request"),
]
