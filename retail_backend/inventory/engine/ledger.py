# inventory/engine/ledger.py

"""
BATCH LEDGER

Owns the purchase batches ("lotes") of a product:
- create (purchase-led only; called by the inbound operation)
- lookup / FIFO-ordered listing (fresh query per call, never a live cursor)
- quantity mutation (never below zero)
- metadata edits (expiry_date, supplier_id only)
- deletion (aggregate reversal is the caller's job, see service.delete_batch)

quantity_purchased, unit_cost and purchase_date are immutable once created.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

from inventory.engine import quantities as q
from inventory.engine.errors import NegativeStockError, NotFoundError, ValidationError
from inventory.engine.types import BatchRecord, ProductRecord
from inventory.engine.unit_of_work import AbstractUnitOfWork

UNSET = object()


def _as_date(value) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def require_product(uow: AbstractUnitOfWork, product_id, *, lock: bool = False) -> ProductRecord:
    product = uow.products.get(product_id, lock=lock)
    if product is None:
        raise NotFoundError("Product", product_id)
    return product


def require_batch(uow: AbstractUnitOfWork, batch_id, *, lock: bool = False) -> BatchRecord:
    batch = uow.batches.get(batch_id, lock=lock)
    if batch is None:
        raise NotFoundError("Batch", batch_id)
    return batch


def create_batch(
    uow: AbstractUnitOfWork,
    *,
    product_id,
    unit_cost,
    quantity_purchased,
    purchase_date: datetime,
    supplier_id=None,
    expiry_date: date | None = None,
    batch_id: uuid.UUID | None = None,
    created_at: datetime | None = None,
) -> BatchRecord:
    """
    Insert a new batch with quantity_remaining = quantity_purchased.

    Does NOT touch the product aggregate or write movements; the inbound
    operation does both inside the same unit of work.
    """
    qty = q.to_positive_quantity(quantity_purchased, field_name="quantity_purchased")
    cost = q.to_unit_cost(unit_cost)

    if purchase_date is None:
        raise ValidationError("purchase_date is required", field="purchase_date")

    expiry = _as_date(expiry_date)
    if expiry is not None and expiry < _as_date(purchase_date):
        raise ValidationError("expiry_date cannot be before purchase_date", field="expiry_date")

    batch = BatchRecord(
        id=batch_id or uuid.uuid4(),
        product_id=product_id,
        supplier_id=supplier_id,
        unit_cost=cost,
        quantity_purchased=qty,
        quantity_remaining=qty,
        purchase_date=purchase_date,
        expiry_date=expiry,
        created_at=created_at,
    )
    return uow.batches.add(batch)


def list_active_batches(uow: AbstractUnitOfWork, product_id, *, lock: bool = False) -> list[BatchRecord]:
    """Active batches, oldest purchase first, ties broken by batch id."""
    batches = uow.batches.list_for_product(product_id, active_only=True, lock=lock)
    # storage already orders; re-sorting keeps the contract independent of it
    return sorted((b for b in batches if b.is_active), key=lambda b: b.fifo_key)


def mutate_quantity(uow: AbstractUnitOfWork, batch: BatchRecord, delta: Decimal) -> BatchRecord:
    """Apply delta to quantity_remaining. Never clamps: below zero is an error."""
    delta = q.to_quantity(delta, field_name="delta")
    current = batch.quantity_remaining
    new_quantity = q.quantity(current + delta)

    if new_quantity < q.ZERO:
        raise NegativeStockError(batch.id, current=current, delta=delta)
    if new_quantity > q.MAX_QUANTITY:
        raise ValidationError(f"batch quantity would exceed {q.MAX_QUANTITY}", field="quantity_delta")

    return uow.batches.save(replace(batch, quantity_remaining=new_quantity))


def update_batch_details(
    uow: AbstractUnitOfWork,
    batch: BatchRecord,
    *,
    expiry_date=UNSET,
    supplier_id=UNSET,
) -> BatchRecord:
    """Metadata-only edit. Quantities, cost and purchase date stay immutable."""
    changes = {}

    if expiry_date is not UNSET:
        expiry = _as_date(expiry_date)
        if expiry is not None and expiry < _as_date(batch.purchase_date):
            raise ValidationError("expiry_date cannot be before purchase_date", field="expiry_date")
        changes["expiry_date"] = expiry

    if supplier_id is not UNSET:
        changes["supplier_id"] = supplier_id

    if not changes:
        return batch

    return uow.batches.save(replace(batch, **changes))


def delete_batch(uow: AbstractUnitOfWork, batch: BatchRecord) -> None:
    uow.batches.delete(batch.id)
