# inventory/services.py

"""
INVENTORY SERVICE FACTORY

Views, admin and management commands get the engine from here so they all
share one configuration (retry budget, clock, expiry horizon).
"""

from __future__ import annotations

from django.conf import settings
from django.utils import timezone

from inventory.engine import InventoryService
from inventory.repositories import DjangoUnitOfWork


def get_inventory_service() -> InventoryService:
    return InventoryService(
        DjangoUnitOfWork,
        max_retries=int(getattr(settings, "INVENTORY_MAX_CONFLICT_RETRIES", 3)),
        clock=timezone.now,
        expiry_alert_days=int(getattr(settings, "INVENTORY_EXPIRY_ALERT_DAYS", 30)),
    )
