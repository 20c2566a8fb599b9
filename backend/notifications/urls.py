from django.urls import path
from . import views

app_name = 'notifications'

urlpatterns = [
    path('', views.list_notifications, name='list'),
    path('read-all/', views.mark_all_read, name='read-all'),
    path('read-by-type/', views.mark_read_by_type, name='read-by-type'),
    path('read-request/', views.mark_request_read, name='read-request'),
]
