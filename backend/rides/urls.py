from django.urls import path
from . import views

app_name = 'rides'

urlpatterns = [
    # Driver ride offers
    path('', views.create_ride, name='create-ride'),
    path('mine/', views.my_rides, name='my-rides'),
    path('<int:ride_id>/cancel/', views.cancel_ride, name='cancel-ride'),
    path('<int:ride_id>/complete/', views.complete_ride, name='complete-ride'),

    # Join requests
    path('<int:ride_id>/request/', views.request_ride, name='request-ride'),
    path('requests/incoming/', views.incoming_requests, name='incoming-requests'),
    path('requests/outgoing/', views.outgoing_requests, name='outgoing-requests'),
    path('requests/<int:request_id>/respond/', views.respond_to_request, name='respond-request'),
    path('requests/<int:request_id>/cancel/', views.cancel_request, name='cancel-request'),
    path('requests/<int:request_id>/offer-response/', views.respond_to_offer, name='offer-response'),

    # Ratings
    path('<int:ride_id>/ratings/', views.submit_rating, name='submit-rating'),
]
