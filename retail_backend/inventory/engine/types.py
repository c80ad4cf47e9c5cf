# inventory/engine/types.py

"""
ENGINE RECORDS

Storage-neutral snapshots exchanged between the engine and its repositories.

- Records are frozen; a change produces a new record (dataclasses.replace).
- Identity of products/batches is a UUID. Movement ids are assigned by storage
  (monotonic integers), so a freshly built movement carries id=None.
- MovementKind is closed: every consumer handles all three kinds explicitly.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from inventory.engine import quantities as q


class MovementKind(str, Enum):
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"
    ADJUSTMENT = "ADJUSTMENT"

    def signed(self, quantity: Decimal) -> Decimal:
        """
        Stock delta a movement of this kind represents.

        INBOUND / OUTBOUND rows store the magnitude; ADJUSTMENT rows store the
        signed delta already.
        """
        if self is MovementKind.INBOUND:
            return abs(quantity)
        if self is MovementKind.OUTBOUND:
            return -abs(quantity)
        if self is MovementKind.ADJUSTMENT:
            return quantity
        raise ValueError(f"Unhandled movement kind: {self!r}")

    @classmethod
    def parse(cls, value) -> "MovementKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown movement kind: {value!r}") from None


@dataclass(frozen=True)
class ProductRecord:
    id: uuid.UUID
    name: str
    aggregate_stock: Decimal
    minimum_stock: Decimal | None = None

    @property
    def is_low_stock(self) -> bool:
        if self.minimum_stock is None:
            return False
        return self.aggregate_stock <= self.minimum_stock


@dataclass(frozen=True)
class BatchRecord:
    id: uuid.UUID
    product_id: uuid.UUID
    unit_cost: Decimal
    quantity_purchased: Decimal
    quantity_remaining: Decimal
    purchase_date: datetime
    supplier_id: uuid.UUID | None = None
    expiry_date: date | None = None
    created_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.quantity_remaining > q.ZERO

    @property
    def fifo_key(self) -> tuple:
        """Total, deterministic consumption order: oldest purchase first, then id."""
        return (self.purchase_date, self.id)

    @property
    def remaining_value(self) -> Decimal:
        return q.line_value(self.quantity_remaining, self.unit_cost)


@dataclass(frozen=True)
class ProductMovementRecord:
    product_id: uuid.UUID
    kind: MovementKind
    quantity: Decimal
    created_at: datetime
    note: str = ""
    id: int | None = None

    @property
    def stock_delta(self) -> Decimal:
        return self.kind.signed(self.quantity)


@dataclass(frozen=True)
class BatchMovementRecord:
    batch_id: uuid.UUID
    product_id: uuid.UUID
    kind: MovementKind
    quantity: Decimal
    unit_cost_snapshot: Decimal
    created_at: datetime
    id: int | None = None

    @property
    def stock_delta(self) -> Decimal:
        return self.kind.signed(self.quantity)


@dataclass(frozen=True)
class BatchAllocation:
    batch_id: uuid.UUID
    quantity_taken: Decimal
    unit_cost: Decimal

    @property
    def total_cost(self) -> Decimal:
        return q.line_value(self.quantity_taken, self.unit_cost)


@dataclass(frozen=True)
class InboundResult:
    batch: BatchRecord
    product_movement: ProductMovementRecord


@dataclass(frozen=True)
class ConsumptionResult:
    product_movement: ProductMovementRecord
    batch_allocations: tuple[BatchAllocation, ...] = field(default_factory=tuple)

    @property
    def total_cost(self) -> Decimal:
        """Cost of goods taken, at FIFO batch costs (money scale)."""
        return q.money(sum((a.total_cost for a in self.batch_allocations), q.ZERO))


@dataclass(frozen=True)
class AdjustmentResult:
    batch: BatchRecord
    product_movement: ProductMovementRecord
    batch_movement: BatchMovementRecord
    quantity_delta: Decimal


@dataclass(frozen=True)
class ProductValuation:
    product_id: uuid.UUID
    average_cost: Decimal
    total_value: Decimal
    quantity_on_hand: Decimal
    batch_count: int


@dataclass(frozen=True)
class InventoryValuation:
    total: Decimal
    batch_count: int
    distinct_product_count: int


@dataclass(frozen=True)
class AggregateMismatch:
    product_id: uuid.UUID
    aggregate_stock: Decimal
    batch_total: Decimal

    @property
    def difference(self) -> Decimal:
        return self.batch_total - self.aggregate_stock
