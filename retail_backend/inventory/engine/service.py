# inventory/engine/service.py

"""
INVENTORY SERVICE (PUBLIC ENTRY POINT)

Every write:
- opens ONE unit of work
- locks the product row first, then the batch rows it touches
- mutates batches, syncs the aggregate, appends movements
- commits, or leaves nothing behind

ConcurrencyConflictError restarts the whole unit of work, at most
`max_retries` extra times. Every other error propagates unchanged.

Reads (valuation, history, listings) open a unit of work that is never
committed.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone

from inventory.engine import fifo, ledger, recorder, synchronizer, valuation
from inventory.engine import quantities as q
from inventory.engine.errors import ConcurrencyConflictError, ValidationError
from inventory.engine.types import (
    AdjustmentResult,
    AggregateMismatch,
    BatchMovementRecord,
    BatchRecord,
    ConsumptionResult,
    InboundResult,
    InventoryValuation,
    MovementKind,
    ProductMovementRecord,
    ProductRecord,
    ProductValuation,
)
from inventory.engine.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)

UNSET = ledger.UNSET


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InventoryService:
    def __init__(
        self,
        uow_factory: Callable[[], AbstractUnitOfWork],
        *,
        max_retries: int = 3,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], uuid.UUID] = uuid.uuid4,
        expiry_alert_days: int = 30,
    ):
        if max_retries < 0:
            raise ValueError("max_retries cannot be negative")

        self._uow_factory = uow_factory
        self.max_retries = max_retries
        self._clock = clock
        self._id_factory = id_factory
        self.expiry_alert_days = expiry_alert_days

    # =====================================================
    # UNIT OF WORK PLUMBING
    # =====================================================
    def _write(self, action: str, work, **context):
        attempt = 0
        while True:
            attempt += 1
            try:
                with self._uow_factory() as uow:
                    result = work(uow)
                    uow.commit()
                return result
            except ConcurrencyConflictError:
                if attempt > self.max_retries:
                    logger.error(
                        "Inventory %s gave up after %s attempts",
                        action,
                        attempt,
                        extra={"action": action, "attempts": attempt, **context},
                    )
                    raise
                logger.warning(
                    "Inventory %s conflicted, retrying (attempt %s)",
                    action,
                    attempt,
                    extra={"action": action, "attempt": attempt, **context},
                )

    def _read(self, work):
        with self._uow_factory() as uow:
            return work(uow)

    # =====================================================
    # INBOUND
    # =====================================================
    def record_inbound(
        self,
        *,
        product_id,
        quantity,
        unit_cost,
        purchase_date: datetime | None = None,
        supplier_id=None,
        expiry_date: date | None = None,
        note: str | None = None,
    ) -> InboundResult:
        """
        Receive goods as a new batch.

        Creates the batch (remaining = purchased), raises the aggregate by the
        same amount and writes ProductMovement(INBOUND) + BatchMovement(INBOUND).
        """
        qty = q.to_positive_quantity(quantity)
        cost = q.to_unit_cost(unit_cost)
        batch_id = self._id_factory()

        def work(uow):
            at = self._clock()
            product = ledger.require_product(uow, product_id, lock=True)

            batch = ledger.create_batch(
                uow,
                product_id=product.id,
                unit_cost=cost,
                quantity_purchased=qty,
                purchase_date=purchase_date or at,
                supplier_id=supplier_id,
                expiry_date=expiry_date,
                batch_id=batch_id,
                created_at=at,
            )
            recorder.append_batch_movement(
                uow, batch=batch, kind=MovementKind.INBOUND, quantity=qty, at=at
            )
            synchronizer.adjust_aggregate(uow, product.id, qty)
            movement = recorder.append_product_movement(
                uow,
                product_id=product.id,
                kind=MovementKind.INBOUND,
                quantity=qty,
                at=at,
                note=note or f"Batch {batch.id} received.",
            )
            return InboundResult(batch=batch, product_movement=movement)

        result = self._write("inbound", work, product_id=str(product_id))
        logger.info(
            "Inbound recorded",
            extra={
                "product_id": str(result.batch.product_id),
                "batch_id": str(result.batch.id),
                "quantity": str(qty),
                "unit_cost": str(cost),
            },
        )
        return result

    # =====================================================
    # OUTBOUND (FIFO)
    # =====================================================
    def record_outbound(self, *, product_id, quantity, note: str | None = None) -> ConsumptionResult:
        qty = q.to_positive_quantity(quantity)

        def work(uow):
            return fifo.consume(uow, product_id=product_id, requested=qty, at=self._clock(), note=note)

        result = self._write("outbound", work, product_id=str(product_id))
        logger.info(
            "Outbound recorded",
            extra={
                "product_id": str(product_id),
                "quantity": str(qty),
                "batches": [str(a.batch_id) for a in result.batch_allocations],
                "total_cost": str(result.total_cost),
            },
        )
        return result

    # =====================================================
    # ADJUSTMENTS
    # =====================================================
    def _adjust(self, uow, batch_id, delta, note) -> AdjustmentResult:
        at = self._clock()

        # LOCK ORDER: product, then batch
        unlocked = ledger.require_batch(uow, batch_id)
        product = ledger.require_product(uow, unlocked.product_id, lock=True)
        batch = ledger.require_batch(uow, batch_id, lock=True)

        batch = ledger.mutate_quantity(uow, batch, delta)
        batch_movement = recorder.append_batch_movement(
            uow, batch=batch, kind=MovementKind.ADJUSTMENT, quantity=delta, at=at
        )
        synchronizer.adjust_aggregate(uow, product.id, delta)
        product_movement = recorder.append_product_movement(
            uow,
            product_id=product.id,
            kind=MovementKind.ADJUSTMENT,
            quantity=delta,
            at=at,
            note=note,
        )
        return AdjustmentResult(
            batch=batch,
            product_movement=product_movement,
            batch_movement=batch_movement,
            quantity_delta=delta,
        )

    def record_adjustment(self, *, batch_id, quantity_delta, note: str | None = None) -> AdjustmentResult:
        """
        Manual correction of one batch (count differences, damage, found stock).

        delta may be positive or negative but never 0. The batch may not go
        below zero (NegativeStockError).
        """
        delta = q.to_nonzero_quantity(quantity_delta)

        result = self._write(
            "adjustment",
            lambda uow: self._adjust(uow, batch_id, delta, note),
            batch_id=str(batch_id),
        )
        logger.info(
            "Adjustment recorded",
            extra={
                "product_id": str(result.batch.product_id),
                "batch_id": str(result.batch.id),
                "quantity_delta": str(delta),
            },
        )
        return result

    def expire_batch(self, *, batch_id, note: str | None = None) -> AdjustmentResult | None:
        """Write off everything left in a batch. Returns None if it was already empty."""

        def work(uow):
            batch = ledger.require_batch(uow, batch_id)
            if not batch.is_active:
                return None
            ledger.require_product(uow, batch.product_id, lock=True)
            batch = ledger.require_batch(uow, batch_id, lock=True)
            if not batch.is_active:
                return None
            return self._adjust(
                uow,
                batch_id,
                -batch.quantity_remaining,
                note or f"Batch {batch.id} expired.",
            )

        result = self._write("expire", work, batch_id=str(batch_id))
        if result is not None:
            logger.info(
                "Batch expired",
                extra={
                    "product_id": str(result.batch.product_id),
                    "batch_id": str(result.batch.id),
                    "quantity_delta": str(result.quantity_delta),
                },
            )
        return result

    # =====================================================
    # BATCH ADMINISTRATION
    # =====================================================
    def delete_batch(self, *, batch_id) -> None:
        """
        Administrative delete.

        The remaining quantity is reversed out of the aggregate (with
        ADJUSTMENT movements) BEFORE the row disappears. Movement history of
        the batch is kept.
        """

        def work(uow):
            at = self._clock()
            unlocked = ledger.require_batch(uow, batch_id)
            product = ledger.require_product(uow, unlocked.product_id, lock=True)
            batch = ledger.require_batch(uow, batch_id, lock=True)

            remaining = batch.quantity_remaining
            if remaining > q.ZERO:
                synchronizer.adjust_aggregate(uow, product.id, -remaining)
                recorder.append_batch_movement(
                    uow, batch=batch, kind=MovementKind.ADJUSTMENT, quantity=-remaining, at=at
                )
                recorder.append_product_movement(
                    uow,
                    product_id=product.id,
                    kind=MovementKind.ADJUSTMENT,
                    quantity=-remaining,
                    at=at,
                    note=f"Batch {batch.id} deleted.",
                )

            ledger.delete_batch(uow, batch)
            return batch

        batch = self._write("delete", work, batch_id=str(batch_id))
        logger.info(
            "Batch deleted",
            extra={
                "product_id": str(batch.product_id),
                "batch_id": str(batch.id),
                "quantity_reversed": str(batch.quantity_remaining),
            },
        )

    def update_batch_details(self, *, batch_id, expiry_date=UNSET, supplier_id=UNSET) -> BatchRecord:
        def work(uow):
            batch = ledger.require_batch(uow, batch_id)
            ledger.require_product(uow, batch.product_id, lock=True)
            batch = ledger.require_batch(uow, batch_id, lock=True)
            return ledger.update_batch_details(
                uow, batch, expiry_date=expiry_date, supplier_id=supplier_id
            )

        return self._write("update", work, batch_id=str(batch_id))

    def reconcile_aggregate(self, *, product_id) -> ProductRecord:
        """Operational repair: reset aggregate_stock from the batches."""

        def work(uow):
            before = ledger.require_product(uow, product_id, lock=True)
            after = synchronizer.reconcile_aggregate(uow, product_id)
            return before, after

        before, after = self._write("reconcile", work, product_id=str(product_id))
        if before.aggregate_stock != after.aggregate_stock:
            logger.warning(
                "Aggregate stock reconciled",
                extra={
                    "product_id": str(product_id),
                    "previous": str(before.aggregate_stock),
                    "current": str(after.aggregate_stock),
                },
            )
        return after

    # =====================================================
    # READS
    # =====================================================
    def get_product(self, product_id) -> ProductRecord:
        return self._read(lambda uow: ledger.require_product(uow, product_id))

    def get_batch(self, batch_id) -> BatchRecord:
        return self._read(lambda uow: ledger.require_batch(uow, batch_id))

    def list_batches(self, *, product_id=None, include_inactive: bool = False) -> list[BatchRecord]:
        def work(uow):
            if product_id is not None:
                ledger.require_product(uow, product_id)
            if include_inactive:
                return list(uow.batches.list_all(product_id))
            return list(uow.batches.list_active(product_id))

        return self._read(work)

    def list_active_batches(self, product_id) -> list[BatchRecord]:
        def work(uow):
            ledger.require_product(uow, product_id)
            return ledger.list_active_batches(uow, product_id)

        return self._read(work)

    def get_valuation(self, product_id) -> ProductValuation:
        return self._read(lambda uow: valuation.product_valuation(uow, product_id))

    def get_inventory_valuation(self) -> InventoryValuation:
        return self._read(valuation.inventory_valuation)

    def list_movements(self, product_id=None) -> list[ProductMovementRecord]:
        return self._read(lambda uow: recorder.list_movements(uow, product_id))

    def list_batch_movements(self, batch_id) -> list[BatchMovementRecord]:
        return self._read(lambda uow: recorder.list_batch_movements(uow, batch_id))

    def list_low_stock_products(self) -> list[ProductRecord]:
        return self._read(lambda uow: list(uow.products.list_below_minimum()))

    def list_expiring_batches(self, within_days: int | None = None) -> list[BatchRecord]:
        """Active batches expiring between today and today + within_days (inclusive)."""
        days = self.expiry_alert_days if within_days is None else within_days
        if days < 0:
            raise ValidationError("days cannot be negative", field="days")

        today = self._clock().date()
        horizon = today + timedelta(days=days)

        def work(uow):
            batches = [
                b
                for b in uow.batches.list_active()
                if b.expiry_date is not None and today <= b.expiry_date <= horizon
            ]
            return sorted(batches, key=lambda b: (b.expiry_date, b.fifo_key))

        return self._read(work)

    def audit_aggregates(self, product_id=None) -> list[AggregateMismatch]:
        return self._read(lambda uow: synchronizer.audit_aggregates(uow, product_id))
