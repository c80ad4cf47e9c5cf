# inventory/engine/errors.py

"""
INVENTORY ENGINE ERRORS

Centralized domain errors for the batch inventory engine.

Every error is recoverable by the caller and leaves state exactly as it was
before the failed call. `code` is stable and used by the HTTP adapter.
"""

from __future__ import annotations

from decimal import Decimal


class InventoryError(Exception):
    """Base exception for all inventory engine failures."""

    code = "inventory_error"


class ValidationError(InventoryError):
    """Raised on malformed or out-of-range input (non-positive quantity, negative cost)."""

    code = "validation_error"

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field


class NotFoundError(InventoryError):
    """Raised when a referenced product or batch does not exist."""

    code = "not_found"

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InsufficientStockError(InventoryError):
    """Raised when an outbound request exceeds the active-batch total."""

    code = "insufficient_stock"

    def __init__(self, product_id, *, requested: Decimal, available: Decimal):
        super().__init__(
            f"Insufficient stock for product {product_id}. "
            f"Requested: {requested}, Available: {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class NegativeStockError(InventoryError):
    """Raised when a mutation would drive a batch (or aggregate) below zero."""

    code = "negative_stock"

    def __init__(self, entity_id, *, current: Decimal, delta: Decimal):
        super().__init__(
            f"Stock change would result in negative stock for {entity_id}. "
            f"Remaining={current}, delta={delta}"
        )
        self.entity_id = entity_id
        self.current = current
        self.delta = delta


class ConcurrencyConflictError(InventoryError):
    """Raised when the unit of work could not commit because of a write conflict."""

    code = "concurrency_conflict"
