# inventory/engine/memory.py

"""
IN-MEMORY STORAGE

A thread-safe implementation of the unit-of-work contract used by the engine
tests (including the threaded concurrency tests) and by anything that needs
the engine without a database.

Semantics mirror the Django implementation:
- writes are staged per unit of work and published on commit()
- lock=True takes a per-product lock, held until commit()/rollback()
- a lock that cannot be taken within `lock_timeout` is a
  ConcurrencyConflictError (the service retries)
- movement ids come from a store-wide counter (gaps after rollback are fine)
"""

from __future__ import annotations

import itertools
import threading
import uuid
from dataclasses import replace
from decimal import Decimal

from inventory.engine import quantities as q
from inventory.engine.errors import ConcurrencyConflictError
from inventory.engine.types import (
    BatchMovementRecord,
    BatchRecord,
    ProductMovementRecord,
    ProductRecord,
)
from inventory.engine.unit_of_work import (
    AbstractUnitOfWork,
    BatchRepository,
    MovementRepository,
    ProductRepository,
)

_DELETED = object()


class InMemoryStore:
    """Committed state shared by every unit of work opened on it."""

    def __init__(self, *, lock_timeout: float = 5.0):
        self.lock_timeout = lock_timeout

        self.products: dict[uuid.UUID, ProductRecord] = {}
        self.batches: dict[uuid.UUID, BatchRecord] = {}
        self.product_movements: list[ProductMovementRecord] = []
        self.batch_movements: list[BatchMovementRecord] = []

        self._guard = threading.RLock()
        self._product_locks: dict[uuid.UUID, threading.Lock] = {}
        self._movement_ids = itertools.count(1)

    # ------------------------------------------------------------------
    # Catalog seeding (products are owned by the catalog, not the engine)
    # ------------------------------------------------------------------
    def add_product(
        self,
        *,
        name: str,
        product_id: uuid.UUID | None = None,
        minimum_stock=None,
        aggregate_stock=q.ZERO,
    ) -> ProductRecord:
        product = ProductRecord(
            id=product_id or uuid.uuid4(),
            name=name,
            aggregate_stock=q.quantity(aggregate_stock),
            minimum_stock=None if minimum_stock is None else q.quantity(minimum_stock),
        )
        with self._guard:
            self.products[product.id] = product
        return product

    def unit_of_work(self) -> "InMemoryUnitOfWork":
        return InMemoryUnitOfWork(self)

    # ------------------------------------------------------------------
    # Internals used by InMemoryUnitOfWork
    # ------------------------------------------------------------------
    def product_lock(self, product_id) -> threading.Lock:
        with self._guard:
            lock = self._product_locks.get(product_id)
            if lock is None:
                lock = threading.Lock()
                self._product_locks[product_id] = lock
            return lock

    def next_movement_id(self) -> int:
        with self._guard:
            return next(self._movement_ids)


class _InMemoryProducts(ProductRepository):
    def __init__(self, uow: "InMemoryUnitOfWork"):
        self._uow = uow

    def get(self, product_id, *, lock=False):
        if lock:
            self._uow.acquire(product_id)
        staged = self._uow.staged_products.get(product_id)
        if staged is not None:
            return staged
        with self._uow.store._guard:
            return self._uow.store.products.get(product_id)

    def set_aggregate_stock(self, product_id, value: Decimal):
        product = self.get(product_id)
        updated = replace(product, aggregate_stock=q.quantity(value))
        self._uow.staged_products[product_id] = updated
        return updated

    def list_all(self):
        with self._uow.store._guard:
            ids = list(self._uow.store.products)
        products = [self.get(pid) for pid in ids]
        return sorted(products, key=lambda p: (p.name, str(p.id)))

    def list_below_minimum(self):
        return [p for p in self.list_all() if p.is_low_stock]


class _InMemoryBatches(BatchRepository):
    def __init__(self, uow: "InMemoryUnitOfWork"):
        self._uow = uow

    def _visible(self) -> dict:
        with self._uow.store._guard:
            merged = dict(self._uow.store.batches)
        for batch_id, staged in self._uow.staged_batches.items():
            if staged is _DELETED:
                merged.pop(batch_id, None)
            else:
                merged[batch_id] = staged
        return merged

    def add(self, batch):
        self._uow.staged_batches[batch.id] = batch
        return batch

    def get(self, batch_id, *, lock=False):
        batch = self._visible().get(batch_id)
        if batch is not None and lock:
            # batch rows are guarded by their product's lock
            self._uow.acquire(batch.product_id)
            batch = self._visible().get(batch_id)
        return batch

    def list_for_product(self, product_id, *, active_only=True, lock=False):
        if lock:
            self._uow.acquire(product_id)
        batches = [b for b in self._visible().values() if b.product_id == product_id]
        if active_only:
            batches = [b for b in batches if b.is_active]
        return sorted(batches, key=lambda b: b.fifo_key)

    def list_active(self, product_id=None):
        batches = [b for b in self.list_all(product_id) if b.is_active]
        return batches

    def list_all(self, product_id=None):
        batches = self._visible().values()
        if product_id is not None:
            batches = [b for b in batches if b.product_id == product_id]
        return sorted(batches, key=lambda b: b.fifo_key)

    def save(self, batch):
        self._uow.staged_batches[batch.id] = batch
        return batch

    def delete(self, batch_id):
        self._uow.staged_batches[batch_id] = _DELETED


class _InMemoryMovements(MovementRepository):
    def __init__(self, uow: "InMemoryUnitOfWork"):
        self._uow = uow

    def add_product_movement(self, movement):
        stored = replace(movement, id=self._uow.store.next_movement_id())
        self._uow.staged_product_movements.append(stored)
        return stored

    def add_batch_movement(self, movement):
        stored = replace(movement, id=self._uow.store.next_movement_id())
        self._uow.staged_batch_movements.append(stored)
        return stored

    def list_product_movements(self, product_id=None):
        with self._uow.store._guard:
            rows = list(self._uow.store.product_movements)
        rows.extend(self._uow.staged_product_movements)
        if product_id is not None:
            rows = [m for m in rows if m.product_id == product_id]
        return sorted(rows, key=lambda m: (m.created_at, m.id), reverse=True)

    def list_batch_movements(self, batch_id):
        with self._uow.store._guard:
            rows = list(self._uow.store.batch_movements)
        rows.extend(self._uow.staged_batch_movements)
        rows = [m for m in rows if m.batch_id == batch_id]
        return sorted(rows, key=lambda m: (m.created_at, m.id), reverse=True)


class InMemoryUnitOfWork(AbstractUnitOfWork):
    def __init__(self, store: InMemoryStore):
        self.store = store
        self.products = _InMemoryProducts(self)
        self.batches = _InMemoryBatches(self)
        self.movements = _InMemoryMovements(self)
        self._reset()

    def _reset(self) -> None:
        self.staged_products: dict = {}
        self.staged_batches: dict = {}
        self.staged_product_movements: list = []
        self.staged_batch_movements: list = []
        self._held: dict = {}

    def acquire(self, product_id) -> None:
        if product_id in self._held:
            return
        lock = self.store.product_lock(product_id)
        if not lock.acquire(timeout=self.store.lock_timeout):
            raise ConcurrencyConflictError(f"Timed out waiting for the lock on product {product_id}")
        self._held[product_id] = lock

    def _release(self) -> None:
        for lock in self._held.values():
            lock.release()
        self._held = {}

    def commit(self) -> None:
        with self.store._guard:
            self.store.products.update(self.staged_products)
            for batch_id, staged in self.staged_batches.items():
                if staged is _DELETED:
                    self.store.batches.pop(batch_id, None)
                else:
                    self.store.batches[batch_id] = staged
            self.store.product_movements.extend(self.staged_product_movements)
            self.store.batch_movements.extend(self.staged_batch_movements)

        self._release()
        self._reset()

    def rollback(self) -> None:
        self._release()
        self._reset()
