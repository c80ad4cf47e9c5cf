# inventory/engine/synchronizer.py

"""
AGGREGATE STOCK SYNCHRONIZER

Keeps Product.aggregate_stock == sum(batch.quantity_remaining).

- adjust_aggregate() is only ever called inside the engine's unit of work,
  next to the batch mutation that justifies the delta.
- It knows nothing about *why* the delta happened.
- audit/reconcile are operational repair tools (management command).
"""

from __future__ import annotations

from decimal import Decimal

from inventory.engine import quantities as q
from inventory.engine.errors import NegativeStockError, ValidationError
from inventory.engine.ledger import require_product
from inventory.engine.types import AggregateMismatch, ProductRecord
from inventory.engine.unit_of_work import AbstractUnitOfWork


def adjust_aggregate(uow: AbstractUnitOfWork, product_id, delta: Decimal) -> ProductRecord:
    product = require_product(uow, product_id, lock=True)
    delta = q.to_quantity(delta, field_name="delta")
    new_value = q.quantity(product.aggregate_stock + delta)

    if new_value < q.ZERO:
        raise NegativeStockError(product.id, current=product.aggregate_stock, delta=delta)
    if new_value > q.MAX_QUANTITY:
        raise ValidationError(
            f"aggregate stock of product {product.id} would exceed {q.MAX_QUANTITY}",
            field="quantity",
        )

    return uow.products.set_aggregate_stock(product.id, new_value)


def batch_total(uow: AbstractUnitOfWork, product_id) -> Decimal:
    batches = uow.batches.list_for_product(product_id, active_only=False)
    return q.quantity(sum((b.quantity_remaining for b in batches), q.ZERO))


def audit_aggregates(uow: AbstractUnitOfWork, product_id=None) -> list[AggregateMismatch]:
    """Products whose counter drifted from their batches. Read-only."""
    if product_id is not None:
        products = [require_product(uow, product_id)]
    else:
        products = list(uow.products.list_all())

    mismatches = []
    for product in products:
        total = batch_total(uow, product.id)
        if total != product.aggregate_stock:
            mismatches.append(
                AggregateMismatch(
                    product_id=product.id,
                    aggregate_stock=product.aggregate_stock,
                    batch_total=total,
                )
            )
    return mismatches


def reconcile_aggregate(uow: AbstractUnitOfWork, product_id) -> ProductRecord:
    """Reset the counter from the batches (batches are the source of truth)."""
    product = require_product(uow, product_id, lock=True)
    uow.batches.list_for_product(product.id, active_only=False, lock=True)
    total = batch_total(uow, product.id)
    if total == product.aggregate_stock:
        return product
    return uow.products.set_aggregate_stock(product.id, total)
