from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

from .views import health_check
from rides.views import feed

urlpatterns = [
    path('admin/', admin.site.urls),
    path("health/", health_check), # Health check endpoint

    # Authentication and profile endpoints (at /api/auth/)
    path('api/auth/', include('accounts.urls')),

    # Driver car management
    path('api/driver/', include('drivers.urls')),

    # Standing passenger ride requests
    path('api/passengers/', include('passengers.urls')),

    # Ride offers, join requests, ratings (at /api/rides/)
    path('api/rides/', include('rides.urls')),

    path('api/notifications/', include('notifications.urls')),

    # Combined discovery feed
    path('api/feed/', feed, name='feed'),
]

# Serve media files in development
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
