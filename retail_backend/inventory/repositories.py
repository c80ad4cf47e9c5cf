# inventory/repositories.py

"""
DJANGO ORM UNIT OF WORK

Implements inventory.engine.unit_of_work on top of the ORM.

TRANSACTION MODEL:
- __enter__ opens transaction.atomic() (a savepoint when already inside one,
  e.g. django.test.TestCase)
- commit() marks the unit as successful; the atomic block commits on exit
- leaving without commit(), or with an exception, rolls back
- lock=True -> SELECT ... FOR UPDATE (no-op on SQLite, which serializes writers)
- OperationalError (deadlock, serialization failure, "database is locked")
  -> ConcurrencyConflictError, so the service can retry the whole unit
"""

from __future__ import annotations

import logging
import uuid

from django.db import DEFAULT_DB_ALIAS, OperationalError, transaction
from django.db.models import F
from django.utils import timezone

from inventory.engine.errors import ConcurrencyConflictError
from inventory.engine.types import (
    BatchMovementRecord,
    BatchRecord,
    MovementKind,
    ProductMovementRecord,
    ProductRecord,
)
from inventory.engine.unit_of_work import (
    AbstractUnitOfWork,
    BatchRepository,
    MovementRepository,
    ProductRepository,
)
from inventory.models import Batch, BatchMovement, ProductMovement
from products.models import Product

logger = logging.getLogger(__name__)


# =====================================================
# HELPERS
# =====================================================

def _as_uuid(value) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def _product_record(obj: Product) -> ProductRecord:
    return ProductRecord(
        id=obj.id,
        name=obj.name,
        aggregate_stock=obj.aggregate_stock,
        minimum_stock=obj.minimum_stock,
    )


def _batch_record(obj: Batch) -> BatchRecord:
    return BatchRecord(
        id=obj.id,
        product_id=obj.product_id,
        supplier_id=obj.supplier_id,
        unit_cost=obj.unit_cost,
        quantity_purchased=obj.quantity_purchased,
        quantity_remaining=obj.quantity_remaining,
        purchase_date=obj.purchase_date,
        expiry_date=obj.expiry_date,
        created_at=obj.created_at,
    )


def _product_movement_record(obj: ProductMovement) -> ProductMovementRecord:
    return ProductMovementRecord(
        id=obj.id,
        product_id=obj.product_id,
        kind=MovementKind(obj.kind),
        quantity=obj.quantity,
        note=obj.note,
        created_at=obj.created_at,
    )


def _batch_movement_record(obj: BatchMovement) -> BatchMovementRecord:
    return BatchMovementRecord(
        id=obj.id,
        batch_id=obj.batch_id,
        product_id=obj.product_id,
        kind=MovementKind(obj.kind),
        quantity=obj.quantity,
        unit_cost_snapshot=obj.unit_cost_snapshot,
        created_at=obj.created_at,
    )


# =====================================================
# REPOSITORIES
# =====================================================

class DjangoProductRepository(ProductRepository):
    def __init__(self, using: str):
        self.using = using

    def _qs(self, *, lock: bool = False):
        qs = Product.objects.using(self.using)
        return qs.select_for_update() if lock else qs

    def get(self, product_id, *, lock=False):
        pk = _as_uuid(product_id)
        if pk is None:
            return None
        obj = self._qs(lock=lock).filter(pk=pk).first()
        return _product_record(obj) if obj is not None else None

    def set_aggregate_stock(self, product_id, value):
        self._qs().filter(pk=product_id).update(aggregate_stock=value, updated_at=timezone.now())
        return self.get(product_id)

    def list_all(self):
        return [_product_record(p) for p in self._qs().order_by("name", "id")]

    def list_below_minimum(self):
        qs = self._qs().filter(
            minimum_stock__isnull=False,
            aggregate_stock__lte=F("minimum_stock"),
        )
        return [_product_record(p) for p in qs.order_by("name", "id")]


class DjangoBatchRepository(BatchRepository):
    def __init__(self, using: str):
        self.using = using

    def _qs(self, *, lock: bool = False):
        qs = Batch.objects.using(self.using)
        return qs.select_for_update() if lock else qs

    def add(self, batch):
        obj = Batch(
            id=batch.id,
            product_id=batch.product_id,
            supplier_id=batch.supplier_id,
            unit_cost=batch.unit_cost,
            quantity_purchased=batch.quantity_purchased,
            quantity_remaining=batch.quantity_remaining,
            purchase_date=batch.purchase_date,
            expiry_date=batch.expiry_date,
        )
        obj.save(using=self.using, force_insert=True)
        return _batch_record(obj)

    def get(self, batch_id, *, lock=False):
        pk = _as_uuid(batch_id)
        if pk is None:
            return None
        obj = self._qs(lock=lock).filter(pk=pk).first()
        return _batch_record(obj) if obj is not None else None

    def list_for_product(self, product_id, *, active_only=True, lock=False):
        qs = self._qs(lock=lock).filter(product_id=product_id)
        if active_only:
            qs = qs.active()
        return [_batch_record(b) for b in qs.fifo()]

    def list_active(self, product_id=None):
        qs = self._qs().active()
        if product_id is not None:
            qs = qs.filter(product_id=product_id)
        return [_batch_record(b) for b in qs.fifo()]

    def list_all(self, product_id=None):
        qs = self._qs()
        if product_id is not None:
            qs = qs.filter(product_id=product_id)
        return [_batch_record(b) for b in qs.fifo()]

    def save(self, batch):
        obj = self._qs().get(pk=batch.id)
        obj.quantity_remaining = batch.quantity_remaining
        obj.expiry_date = batch.expiry_date
        obj.supplier_id = batch.supplier_id
        obj.save(
            using=self.using,
            update_fields=["quantity_remaining", "expiry_date", "supplier_id", "updated_at"],
        )
        return _batch_record(obj)

    def delete(self, batch_id):
        self._qs().get(pk=batch_id).delete()


class DjangoMovementRepository(MovementRepository):
    def __init__(self, using: str):
        self.using = using

    def add_product_movement(self, movement):
        obj = ProductMovement(
            product_id=movement.product_id,
            kind=movement.kind.value,
            quantity=movement.quantity,
            note=movement.note,
            created_at=movement.created_at,
        )
        obj.save(using=self.using)
        return _product_movement_record(obj)

    def add_batch_movement(self, movement):
        obj = BatchMovement(
            batch_id=movement.batch_id,
            product_id=movement.product_id,
            kind=movement.kind.value,
            quantity=movement.quantity,
            unit_cost_snapshot=movement.unit_cost_snapshot,
            created_at=movement.created_at,
        )
        obj.save(using=self.using)
        return _batch_movement_record(obj)

    def list_product_movements(self, product_id=None):
        qs = ProductMovement.objects.using(self.using)
        if product_id is not None:
            pk = _as_uuid(product_id)
            if pk is None:
                return []
            qs = qs.filter(product_id=pk)
        return [_product_movement_record(m) for m in qs.order_by("-created_at", "-id")]

    def list_batch_movements(self, batch_id):
        qs = BatchMovement.objects.using(self.using).filter(batch_id=batch_id)
        return [_batch_movement_record(m) for m in qs.order_by("-created_at", "-id")]


# =====================================================
# UNIT OF WORK
# =====================================================

class DjangoUnitOfWork(AbstractUnitOfWork):
    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using
        self.products = DjangoProductRepository(using)
        self.batches = DjangoBatchRepository(using)
        self.movements = DjangoMovementRepository(using)
        self._atomic = None
        self._committed = False

    def __enter__(self):
        self._committed = False
        self._atomic = transaction.atomic(using=self.using)
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None or not self._committed:
            transaction.set_rollback(True, using=self.using)

        atomic, self._atomic = self._atomic, None
        try:
            atomic.__exit__(exc_type, exc, tb)
        except OperationalError as commit_exc:
            logger.warning("Inventory commit failed: %s", commit_exc)
            raise ConcurrencyConflictError(str(commit_exc)) from commit_exc

        if exc_type is not None and issubclass(exc_type, OperationalError):
            raise ConcurrencyConflictError(str(exc)) from exc
        return False

    def commit(self):
        self._committed = True

    def rollback(self):
        self._committed = False
        if self._atomic is not None:
            transaction.set_rollback(True, using=self.using)
