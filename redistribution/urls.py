"""
Redistribution — URL Configuration

@file redistribution/urls.py
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import RedistributionViewSet

app_name = 'redistribution'

router = SimpleRouter()
router.register('', RedistributionViewSet, basename='redistribution')

urlpatterns = [
    path('', include(router.urls)),
]
