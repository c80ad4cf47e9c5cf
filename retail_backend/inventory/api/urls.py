# inventory/api/urls.py

"""
INVENTORY URLS

Registered under /api/inventory/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from inventory.api.views import BatchViewSet, ProductInventoryViewSet, ProductMovementViewSet

router = DefaultRouter()

router.register(r"batches", BatchViewSet, basename="inventory-batches")
router.register(r"products", ProductInventoryViewSet, basename="inventory-products")
router.register(r"movements", ProductMovementViewSet, basename="inventory-movements")

urlpatterns = [
    path("", include(router.urls)),
]
