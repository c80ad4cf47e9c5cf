# inventory/engine/recorder.py

"""
MOVEMENT RECORDER

Append-only audit trail at two levels:
- ProductMovement: one summary row per operation
- BatchMovement:   one row per batch touched (with unit cost snapshot)

There is no update/delete here. A wrong entry is corrected with
a compensating ADJUSTMENT, never by editing history.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from inventory.engine import quantities as q
from inventory.engine.ledger import require_batch
from inventory.engine.types import (
    BatchMovementRecord,
    BatchRecord,
    MovementKind,
    ProductMovementRecord,
)
from inventory.engine.unit_of_work import AbstractUnitOfWork


def _stored_quantity(kind: MovementKind, quantity: Decimal) -> Decimal:
    """INBOUND/OUTBOUND keep the magnitude, ADJUSTMENT keeps the sign."""
    qty = q.to_quantity(quantity)
    if kind is MovementKind.INBOUND or kind is MovementKind.OUTBOUND:
        return abs(qty)
    if kind is MovementKind.ADJUSTMENT:
        return qty
    raise ValueError(f"Unhandled movement kind: {kind!r}")


def append_product_movement(
    uow: AbstractUnitOfWork,
    *,
    product_id,
    kind: MovementKind,
    quantity: Decimal,
    at: datetime,
    note: str | None = None,
) -> ProductMovementRecord:
    kind = MovementKind.parse(kind)
    movement = ProductMovementRecord(
        product_id=product_id,
        kind=kind,
        quantity=_stored_quantity(kind, quantity),
        note=(note or "").strip(),
        created_at=at,
    )
    return uow.movements.add_product_movement(movement)


def append_batch_movement(
    uow: AbstractUnitOfWork,
    *,
    batch: BatchRecord,
    kind: MovementKind,
    quantity: Decimal,
    at: datetime,
) -> BatchMovementRecord:
    kind = MovementKind.parse(kind)
    movement = BatchMovementRecord(
        batch_id=batch.id,
        product_id=batch.product_id,
        kind=kind,
        quantity=_stored_quantity(kind, quantity),
        unit_cost_snapshot=batch.unit_cost,
        created_at=at,
    )
    return uow.movements.add_batch_movement(movement)


def list_movements(uow: AbstractUnitOfWork, product_id=None) -> list[ProductMovementRecord]:
    """Newest first. Pure read."""
    return list(uow.movements.list_product_movements(product_id))


def list_batch_movements(uow: AbstractUnitOfWork, batch_id) -> list[BatchMovementRecord]:
    """Newest first. NotFoundError if the batch does not exist (anymore)."""
    require_batch(uow, batch_id)
    return list(uow.movements.list_batch_movements(batch_id))
