"""
RxBridge — Root URL Configuration

All API endpoints are namespaced under /api/v1/.
The DRF browsable API is available for route inspection in development.

@file config/urls.py
"""

from django.contrib import admin
from django.urls import include, path
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.reverse import reverse

admin.site.site_header = 'RxBridge Administration'
admin.site.site_title = 'RxBridge'
admin.site.index_title = 'Facility Stock Redistribution'


@api_view(['GET'])
@permission_classes([AllowAny])
def api_root(request, format=None):
    """RxBridge API v1 — endpoint directory."""
    return Response({
        'redistributions': reverse(
            'api-v1:redistribution:redistribution-list', request=request, format=format,
        ),
        'inventory': {
            'lots': reverse('api-v1:inventory:lot-list', request=request, format=format),
            'dispensations': reverse(
                'api-v1:inventory:dispensation-list', request=request, format=format,
            ),
        },
        'notifications': reverse(
            'api-v1:notifications:notification-list', request=request, format=format,
        ),
        'activity_logs': reverse('api-v1:core:activity-log-list', request=request, format=format),
    })


api_v1_patterns = [
    path('', api_root, name='api-root'),
    path('redistributions/', include('redistribution.urls', namespace='redistribution')),
    path('inventory/', include('inventory.urls', namespace='inventory')),
    path('notifications/', include('notifications.urls', namespace='notifications')),
    path('activity-logs/', include('core.urls', namespace='core')),
]

urlpatterns = [
    path('admin/', admin.site.urls),

    # DRF session auth (powers the "Log in" button on the browsable API)
    path('api/auth/', include('rest_framework.urls', namespace='rest_framework')),

    # Versioned API
    path('api/v1/', include((api_v1_patterns, 'api-v1'))),
]
