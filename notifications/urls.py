"""
Notifications — URL Configuration

@file notifications/urls.py
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import NotificationViewSet

app_name = 'notifications'

router = SimpleRouter()
router.register('', NotificationViewSet, basename='notification')

urlpatterns = [
    path('', include(router.urls)),
]
