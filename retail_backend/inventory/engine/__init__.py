# inventory/engine/__init__.py

"""
Batch inventory engine.

Pure Python: no Django imports in this package. Storage is injected through
`AbstractUnitOfWork` (see inventory.repositories for the ORM implementation
and inventory.engine.memory for the in-memory one).
"""

from .errors import (
    ConcurrencyConflictError,
    InsufficientStockError,
    InventoryError,
    NegativeStockError,
    NotFoundError,
    ValidationError,
)
from .service import InventoryService
from .types import (
    AdjustmentResult,
    AggregateMismatch,
    BatchAllocation,
    BatchMovementRecord,
    BatchRecord,
    ConsumptionResult,
    InboundResult,
    InventoryValuation,
    MovementKind,
    ProductMovementRecord,
    ProductRecord,
    ProductValuation,
)
from .unit_of_work import AbstractUnitOfWork

__all__ = [
    "AbstractUnitOfWork",
    "AdjustmentResult",
    "AggregateMismatch",
    "BatchAllocation",
    "BatchMovementRecord",
    "BatchRecord",
    "ConcurrencyConflictError",
    "ConsumptionResult",
    "InboundResult",
    "InsufficientStockError",
    "InventoryError",
    "InventoryService",
    "InventoryValuation",
    "MovementKind",
    "NegativeStockError",
    "NotFoundError",
    "ProductMovementRecord",
    "ProductRecord",
    "ProductValuation",
    "ValidationError",
]
