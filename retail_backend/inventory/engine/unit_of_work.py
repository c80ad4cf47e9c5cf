# inventory/engine/unit_of_work.py

"""
UNIT OF WORK + REPOSITORY CONTRACTS

The engine never reaches for a global data client. Every operation receives
an opened unit of work and talks to storage only through these repositories.

Usage:

    with uow_factory() as uow:
        result = consume(uow, product_id, quantity)
        uow.commit()

Rules:
- Leaving the block without commit() rolls everything back (also on error).
- get(..., lock=True) / list_for_product(..., lock=True) hold the row(s) until
  the unit of work ends. Writers always lock the product first, then batches.
- Implementations translate storage write conflicts into
  ConcurrencyConflictError.
"""

from __future__ import annotations

import abc
import uuid
from collections.abc import Sequence
from decimal import Decimal

from inventory.engine.types import (
    BatchMovementRecord,
    BatchRecord,
    ProductMovementRecord,
    ProductRecord,
)


class ProductRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, product_id: uuid.UUID, *, lock: bool = False) -> ProductRecord | None:
        """Return the product, or None."""

    @abc.abstractmethod
    def set_aggregate_stock(self, product_id: uuid.UUID, value: Decimal) -> ProductRecord:
        """Persist a new aggregate counter and return the updated product."""

    @abc.abstractmethod
    def list_all(self) -> Sequence[ProductRecord]:
        """Every product, in a stable order."""

    @abc.abstractmethod
    def list_below_minimum(self) -> Sequence[ProductRecord]:
        """Products with a minimum_stock set and aggregate_stock <= minimum_stock."""


class BatchRepository(abc.ABC):
    @abc.abstractmethod
    def add(self, batch: BatchRecord) -> BatchRecord:
        """Insert a new batch."""

    @abc.abstractmethod
    def get(self, batch_id: uuid.UUID, *, lock: bool = False) -> BatchRecord | None:
        """Return the batch, or None."""

    @abc.abstractmethod
    def list_for_product(
        self,
        product_id: uuid.UUID,
        *,
        active_only: bool = True,
        lock: bool = False,
    ) -> Sequence[BatchRecord]:
        """Batches of one product ordered by (purchase_date, id) ascending."""

    @abc.abstractmethod
    def list_active(self, product_id: uuid.UUID | None = None) -> Sequence[BatchRecord]:
        """Active batches (all products when product_id is None), FIFO-ordered."""

    @abc.abstractmethod
    def list_all(self, product_id: uuid.UUID | None = None) -> Sequence[BatchRecord]:
        """All batches including exhausted ones, FIFO-ordered."""

    @abc.abstractmethod
    def save(self, batch: BatchRecord) -> BatchRecord:
        """Persist mutable fields (quantity_remaining, expiry_date, supplier_id)."""

    @abc.abstractmethod
    def delete(self, batch_id: uuid.UUID) -> None:
        """Remove the batch row. Movement history is kept."""


class MovementRepository(abc.ABC):
    @abc.abstractmethod
    def add_product_movement(self, movement: ProductMovementRecord) -> ProductMovementRecord:
        """Append; returns the record with its storage-assigned id."""

    @abc.abstractmethod
    def add_batch_movement(self, movement: BatchMovementRecord) -> BatchMovementRecord:
        """Append; returns the record with its storage-assigned id."""

    @abc.abstractmethod
    def list_product_movements(
        self, product_id: uuid.UUID | None = None
    ) -> Sequence[ProductMovementRecord]:
        """Newest first: (created_at desc, id desc)."""

    @abc.abstractmethod
    def list_batch_movements(self, batch_id: uuid.UUID) -> Sequence[BatchMovementRecord]:
        """Newest first: (created_at desc, id desc)."""


class AbstractUnitOfWork(abc.ABC):
    products: ProductRepository
    batches: BatchRepository
    movements: MovementRepository

    def __enter__(self) -> "AbstractUnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.rollback()

    @abc.abstractmethod
    def commit(self) -> None:
        """Make every write of this unit visible atomically."""

    @abc.abstractmethod
    def rollback(self) -> None:
        """Discard every uncommitted write. Safe to call after commit()."""
