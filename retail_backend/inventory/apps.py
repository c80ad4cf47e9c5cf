# inventory/apps.py

"""
INVENTORY APP CONFIG

Batch-tracked inventory:
- Batch ledger + FIFO consumption (inventory.engine)
- Aggregate stock counter on products.Product
- Immutable movement ledger (product + batch level)
"""

from django.apps import AppConfig


class InventoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "inventory"
    verbose_name = "Batch Inventory"
