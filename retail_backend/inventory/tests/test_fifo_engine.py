# inventory/tests/test_fifo_engine.py

import uuid
from dataclasses import replace
from decimal import Decimal

from django.test import SimpleTestCase

from inventory.engine import (
    InsufficientStockError,
    MovementKind,
    NotFoundError,
    ValidationError,
)
from inventory.engine.fifo import plan_allocation
from inventory.engine.types import BatchRecord

from .support import batch_total, day, make_engine


def _batch(n: int, *, qty, cost, purchased_on, product_id=None) -> BatchRecord:
    qty = Decimal(qty)
    return BatchRecord(
        id=uuid.UUID(int=n),
        product_id=product_id or uuid.UUID(int=999),
        unit_cost=Decimal(cost),
        quantity_purchased=qty,
        quantity_remaining=qty,
        purchase_date=purchased_on,
    )


class AllocationPlanTests(SimpleTestCase):
    """
    Pure planning (no storage).

    GUARANTEES:
    - Oldest purchase first, ties broken by batch id
    - Exhausted batches never receive an allocation
    - A plan that cannot be satisfied is an error, never a partial plan
    """

    def test_oldest_purchase_first(self):
        b1 = _batch(1, qty="10", cost="5", purchased_on=day(1))
        b2 = _batch(2, qty="10", cost="7", purchased_on=day(2))

        plan = plan_allocation([b2, b1], Decimal("15"))

        self.assertEqual(
            [(a.batch_id, a.quantity_taken) for a in plan],
            [(b1.id, Decimal("10")), (b2.id, Decimal("5.000"))],
        )
        self.assertEqual([a.unit_cost for a in plan], [Decimal("5"), Decimal("7")])

    def test_same_purchase_date_breaks_ties_by_id(self):
        low = _batch(1, qty="3", cost="1", purchased_on=day(1))
        high = _batch(2, qty="3", cost="2", purchased_on=day(1))

        plan = plan_allocation([high, low], Decimal("4"))

        self.assertEqual([a.batch_id for a in plan], [low.id, high.id])
        self.assertEqual(plan[1].quantity_taken, Decimal("1.000"))

    def test_exhausted_batches_are_skipped(self):
        empty = _batch(1, qty="5", cost="1", purchased_on=day(0))
        empty = replace(empty, quantity_remaining=Decimal("0"))
        live = _batch(2, qty="5", cost="2", purchased_on=day(1))

        plan = plan_allocation([empty, live], Decimal("2"))

        self.assertEqual([a.batch_id for a in plan], [live.id])

    def test_insufficient_stock_reports_requested_and_available(self):
        b1 = _batch(1, qty="7", cost="1", purchased_on=day(1))
        b2 = _batch(2, qty="5", cost="1", purchased_on=day(2))

        with self.assertRaises(InsufficientStockError) as ctx:
            plan_allocation([b1, b2], Decimal("13"))

        self.assertEqual(ctx.exception.requested, Decimal("13.000"))
        self.assertEqual(ctx.exception.available, Decimal("12.000"))


class ConsumptionTests(SimpleTestCase):
    """
    FIFO consumption through the service (one unit of work per request).

    GUARANTEES:
    - aggregate_stock == sum(quantity_remaining) after every operation
    - One OUTBOUND product movement per request, one per batch touched
    - All-or-nothing on insufficient stock
    """

    def setUp(self):
        self.store, self.service = make_engine()
        self.product = self.store.add_product(name="Rice 5kg")

    def _receive(self, qty, cost, purchased_on):
        return self.service.record_inbound(
            product_id=self.product.id,
            quantity=qty,
            unit_cost=cost,
            purchase_date=purchased_on,
        ).batch

    def _aggregate(self):
        return self.store.products[self.product.id].aggregate_stock

    def test_fifo_determinism(self):
        b1 = self._receive("10", "5", day(1))
        b2 = self._receive("10", "7", day(2))

        result = self.service.record_outbound(product_id=self.product.id, quantity="15", note="Sale #1")

        self.assertEqual(
            [(a.batch_id, a.quantity_taken) for a in result.batch_allocations],
            [(b1.id, Decimal("10.000")), (b2.id, Decimal("5.000"))],
        )
        self.assertEqual(result.total_cost, Decimal("85.00"))

        self.assertEqual(self.store.batches[b1.id].quantity_remaining, Decimal("0.000"))
        self.assertEqual(self.store.batches[b2.id].quantity_remaining, Decimal("5.000"))
        self.assertEqual(self._aggregate(), Decimal("5.000"))
        self.assertEqual(self._aggregate(), batch_total(self.store, self.product.id))

        movement = result.product_movement
        self.assertEqual(movement.kind, MovementKind.OUTBOUND)
        self.assertEqual(movement.quantity, Decimal("15.000"))
        self.assertEqual(movement.note, "Sale #1")

        outbound = [m for m in self.store.batch_movements if m.kind is MovementKind.OUTBOUND]
        self.assertEqual(
            sorted((m.batch_id, m.quantity, m.unit_cost_snapshot) for m in outbound),
            sorted([(b1.id, Decimal("10.000"), Decimal("5.0000")), (b2.id, Decimal("5.000"), Decimal("7.0000"))]),
        )

    def test_exhausted_batch_leaves_active_listing(self):
        b1 = self._receive("4", "1", day(1))
        b2 = self._receive("4", "1", day(2))

        self.service.record_outbound(product_id=self.product.id, quantity="4")

        active = self.service.list_active_batches(self.product.id)
        self.assertEqual([b.id for b in active], [b2.id])
        self.assertFalse(self.service.get_batch(b1.id).is_active)

    def test_fractional_quantities(self):
        b1 = self._receive("2.5", "2", day(1))
        b2 = self._receive("1.25", "2", day(2))

        self.service.record_outbound(product_id=self.product.id, quantity="3")

        self.assertEqual(self.store.batches[b1.id].quantity_remaining, Decimal("0.000"))
        self.assertEqual(self.store.batches[b2.id].quantity_remaining, Decimal("0.750"))
        self.assertEqual(self._aggregate(), Decimal("0.750"))

    def test_insufficient_stock_commits_nothing(self):
        b1 = self._receive("7", "1", day(1))
        b2 = self._receive("5", "1", day(2))
        movements_before = len(self.store.product_movements)
        batch_movements_before = len(self.store.batch_movements)

        with self.assertRaises(InsufficientStockError) as ctx:
            self.service.record_outbound(product_id=self.product.id, quantity="13")

        self.assertEqual(ctx.exception.available, Decimal("12.000"))
        self.assertEqual(self.store.batches[b1.id].quantity_remaining, Decimal("7.000"))
        self.assertEqual(self.store.batches[b2.id].quantity_remaining, Decimal("5.000"))
        self.assertEqual(self._aggregate(), Decimal("12.000"))
        self.assertEqual(len(self.store.product_movements), movements_before)
        self.assertEqual(len(self.store.batch_movements), batch_movements_before)

    def test_no_batches_is_insufficient(self):
        with self.assertRaises(InsufficientStockError):
            self.service.record_outbound(product_id=self.product.id, quantity="1")

    def test_zero_or_negative_request_is_rejected(self):
        self._receive("5", "1", day(1))

        for bad in ("0", "-1"):
            with self.subTest(quantity=bad):
                with self.assertRaises(ValidationError):
                    self.service.record_outbound(product_id=self.product.id, quantity=bad)

        kinds = [m.kind for m in self.store.product_movements]
        self.assertNotIn(MovementKind.OUTBOUND, kinds)

    def test_unknown_product(self):
        with self.assertRaises(NotFoundError):
            self.service.record_outbound(product_id=uuid.uuid4(), quantity="1")
