# inventory/engine/valuation.py

"""
VALUATION CALCULATOR (READ-ONLY)

- Weighted average cost over ACTIVE batches only
- Total value = sum(quantity_remaining * unit_cost), money scale
- Exhausted batches contribute nothing
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from inventory.engine import quantities as q
from inventory.engine.ledger import list_active_batches, require_product
from inventory.engine.types import BatchRecord, InventoryValuation, ProductValuation
from inventory.engine.unit_of_work import AbstractUnitOfWork


def _summarize(batches: Iterable[BatchRecord]) -> tuple[Decimal, Decimal, int]:
    quantity_on_hand = q.ZERO
    value = q.ZERO
    count = 0
    for batch in batches:
        if not batch.is_active:
            continue
        quantity_on_hand += batch.quantity_remaining
        value += batch.remaining_value
        count += 1
    return quantity_on_hand, value, count


def weighted_average_cost(batches: Iterable[BatchRecord]) -> Decimal:
    quantity_on_hand, value, _ = _summarize(batches)
    if quantity_on_hand == q.ZERO:
        return q.average_cost(q.ZERO)
    return q.average_cost(value / quantity_on_hand)


def total_inventory_value(batches: Iterable[BatchRecord]) -> Decimal:
    _, value, _ = _summarize(batches)
    return q.money(value)


def product_valuation(uow: AbstractUnitOfWork, product_id) -> ProductValuation:
    product = require_product(uow, product_id)
    batches = list_active_batches(uow, product.id)
    quantity_on_hand, _, count = _summarize(batches)

    return ProductValuation(
        product_id=product.id,
        average_cost=weighted_average_cost(batches),
        total_value=total_inventory_value(batches),
        quantity_on_hand=q.quantity(quantity_on_hand),
        batch_count=count,
    )


def inventory_valuation(uow: AbstractUnitOfWork) -> InventoryValuation:
    batches = list(uow.batches.list_active())
    _, _, count = _summarize(batches)
    products = {b.product_id for b in batches if b.is_active}

    return InventoryValuation(
        total=total_inventory_value(batches),
        batch_count=count,
        distinct_product_count=len(products),
    )
