# inventory/models/__init__.py

from .batch import Batch as Batch
from .movement import BatchMovement as BatchMovement
from .movement import MovementKind as MovementKind
from .movement import ProductMovement as ProductMovement

__all__ = ["Batch", "BatchMovement", "MovementKind", "ProductMovement"]
