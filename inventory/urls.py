"""
Inventory — URL Configuration

@file inventory/urls.py
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import DispensationViewSet, InventoryLotViewSet

app_name = 'inventory'

router = SimpleRouter()
router.register('lots', InventoryLotViewSet, basename='lot')
router.register('dispensations', DispensationViewSet, basename='dispensation')

urlpatterns = [
    path('', include(router.urls)),
]
