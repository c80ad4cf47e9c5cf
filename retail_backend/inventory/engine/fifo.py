# inventory/engine/fifo.py

"""
FIFO CONSUMPTION ENGINE

HARD RULES:
- Oldest purchase first, ties by batch id (BatchRecord.fifo_key)
- All-or-nothing: an unsatisfiable request persists NOTHING
- Lock order: product row, then its active batch rows
- One BatchMovement(OUTBOUND) per batch touched,
  one ProductMovement(OUTBOUND) per request

plan_allocation() is pure so ordering can be checked without storage.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal

from inventory.engine import quantities as q
from inventory.engine import ledger, recorder, synchronizer
from inventory.engine.errors import InsufficientStockError
from inventory.engine.types import (
    BatchAllocation,
    BatchRecord,
    ConsumptionResult,
    MovementKind,
)
from inventory.engine.unit_of_work import AbstractUnitOfWork


def plan_allocation(
    batches: Iterable[BatchRecord],
    requested: Decimal,
    *,
    product_id=None,
) -> list[BatchAllocation]:
    """
    Split `requested` across active batches, oldest first.

    Raises InsufficientStockError when the batches cannot cover the request.
    """
    requested = q.to_positive_quantity(requested)
    active = sorted((b for b in batches if b.is_active), key=lambda b: b.fifo_key)

    available = q.quantity(sum((b.quantity_remaining for b in active), q.ZERO))
    if available < requested:
        raise InsufficientStockError(product_id, requested=requested, available=available)

    allocations: list[BatchAllocation] = []
    left = requested

    for batch in active:
        if left <= q.ZERO:
            break

        take = min(batch.quantity_remaining, left)
        allocations.append(
            BatchAllocation(batch_id=batch.id, quantity_taken=take, unit_cost=batch.unit_cost)
        )
        left = q.quantity(left - take)

    return allocations


def consume(
    uow: AbstractUnitOfWork,
    *,
    product_id,
    requested,
    at: datetime,
    note: str | None = None,
) -> ConsumptionResult:
    """
    Deplete `requested` units of a product FIFO inside the given unit of work.

    The caller commits. Any exception leaves the unit of work uncommitted.
    """
    requested = q.to_positive_quantity(requested)

    # LOCK: product first, then batches
    product = ledger.require_product(uow, product_id, lock=True)
    batches = ledger.list_active_batches(uow, product.id, lock=True)

    plan = plan_allocation(batches, requested, product_id=product.id)
    by_id = {b.id: b for b in batches}

    for allocation in plan:
        batch = ledger.mutate_quantity(uow, by_id[allocation.batch_id], -allocation.quantity_taken)
        recorder.append_batch_movement(
            uow,
            batch=batch,
            kind=MovementKind.OUTBOUND,
            quantity=allocation.quantity_taken,
            at=at,
        )

    synchronizer.adjust_aggregate(uow, product.id, -requested)

    movement = recorder.append_product_movement(
        uow,
        product_id=product.id,
        kind=MovementKind.OUTBOUND,
        quantity=requested,
        at=at,
        note=note,
    )

    return ConsumptionResult(product_movement=movement, batch_allocations=tuple(plan))
