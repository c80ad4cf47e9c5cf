# inventory/tests/test_ledger_and_recorder.py

import uuid
from datetime import timedelta
from decimal import Decimal

from django.test import SimpleTestCase

from inventory.engine import (
    MovementKind,
    NegativeStockError,
    NotFoundError,
    ValidationError,
)

from .support import T0, batch_total, day, make_engine


class EngineTestCase(SimpleTestCase):
    def setUp(self):
        self.store, self.service = make_engine()
        self.product = self.store.add_product(name="Olive Oil 1L", minimum_stock="5")

    def receive(self, qty="10", cost="5", purchased_on=None, **extra):
        return self.service.record_inbound(
            product_id=self.product.id,
            quantity=qty,
            unit_cost=cost,
            purchase_date=purchased_on or day(1),
            **extra,
        )

    def aggregate(self):
        return self.store.products[self.product.id].aggregate_stock

    def assertAggregateConsistent(self):
        self.assertEqual(self.aggregate(), batch_total(self.store, self.product.id))


class InboundTests(EngineTestCase):
    """
    GUARANTEES:
    - A new batch starts with remaining == purchased
    - Aggregate grows by the purchased quantity in the same unit of work
    - One ProductMovement(INBOUND) + one BatchMovement(INBOUND)
    - Invalid input writes nothing
    """

    def test_inbound_creates_batch_and_movements(self):
        supplier = uuid.uuid4()
        result = self.receive(qty="10", cost="5.25", supplier_id=supplier)
        batch = result.batch

        self.assertEqual(batch.quantity_purchased, Decimal("10.000"))
        self.assertEqual(batch.quantity_remaining, Decimal("10.000"))
        self.assertEqual(batch.unit_cost, Decimal("5.2500"))
        self.assertEqual(batch.supplier_id, supplier)
        self.assertTrue(batch.is_active)

        self.assertEqual(self.aggregate(), Decimal("10.000"))
        self.assertAggregateConsistent()

        movement = result.product_movement
        self.assertEqual(movement.kind, MovementKind.INBOUND)
        self.assertEqual(movement.quantity, Decimal("10.000"))
        self.assertIn(str(batch.id), movement.note)

        history = self.service.list_batch_movements(batch.id)
        self.assertEqual([(m.kind, m.quantity) for m in history], [(MovementKind.INBOUND, Decimal("10.000"))])

    def test_purchase_date_defaults_to_now(self):
        result = self.service.record_inbound(product_id=self.product.id, quantity="1", unit_cost="1")
        self.assertGreater(result.batch.purchase_date, T0)
        self.assertEqual(result.batch.purchase_date, result.product_movement.created_at)

    def test_zero_cost_is_allowed(self):
        result = self.receive(cost="0")
        self.assertEqual(result.batch.unit_cost, Decimal("0.0000"))

    def test_invalid_input_writes_nothing(self):
        cases = [
            {"qty": "0"},
            {"qty": "-3"},
            {"cost": "-1"},
            {"expiry_date": (day(1) - timedelta(days=1)).date()},
        ]
        for case in cases:
            with self.subTest(**{k: str(v) for k, v in case.items()}):
                with self.assertRaises(ValidationError):
                    self.receive(**case)

        self.assertEqual(self.store.batches, {})
        self.assertEqual(self.store.product_movements, [])
        self.assertEqual(self.aggregate(), Decimal("0.000"))

    def test_unknown_product(self):
        with self.assertRaises(NotFoundError):
            self.service.record_inbound(product_id=uuid.uuid4(), quantity="1", unit_cost="1")


class AdjustmentTests(EngineTestCase):
    """
    GUARANTEES:
    - Signed delta applied to one batch and to the aggregate
    - A batch never goes below zero (NegativeStockError, nothing written)
    - delta == 0 is rejected
    """

    def setUp(self):
        super().setUp()
        self.batch = self.receive(qty="10").batch

    def test_positive_and_negative_adjustments(self):
        self.service.record_adjustment(batch_id=self.batch.id, quantity_delta="2.5", note="Found in back room")
        result = self.service.record_adjustment(batch_id=self.batch.id, quantity_delta="-4", note="Damaged")

        self.assertEqual(result.batch.quantity_remaining, Decimal("8.500"))
        self.assertEqual(result.quantity_delta, Decimal("-4.000"))
        self.assertEqual(result.product_movement.kind, MovementKind.ADJUSTMENT)
        self.assertEqual(result.product_movement.quantity, Decimal("-4.000"))
        self.assertEqual(result.product_movement.stock_delta, Decimal("-4.000"))
        self.assertEqual(result.batch_movement.quantity, Decimal("-4.000"))
        self.assertEqual(self.aggregate(), Decimal("8.500"))
        self.assertAggregateConsistent()

    def test_adjustment_may_exceed_purchased_quantity(self):
        result = self.service.record_adjustment(batch_id=self.batch.id, quantity_delta="5")
        self.assertEqual(result.batch.quantity_remaining, Decimal("15.000"))
        self.assertEqual(result.batch.quantity_purchased, Decimal("10.000"))

    def test_adjustment_below_zero_is_rejected(self):
        movements_before = len(self.store.product_movements)

        with self.assertRaises(NegativeStockError) as ctx:
            self.service.record_adjustment(batch_id=self.batch.id, quantity_delta="-10.001")

        self.assertEqual(ctx.exception.current, Decimal("10.000"))
        self.assertEqual(self.store.batches[self.batch.id].quantity_remaining, Decimal("10.000"))
        self.assertEqual(self.aggregate(), Decimal("10.000"))
        self.assertEqual(len(self.store.product_movements), movements_before)

    def test_zero_delta_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.service.record_adjustment(batch_id=self.batch.id, quantity_delta="0")

    def test_unknown_batch(self):
        with self.assertRaises(NotFoundError):
            self.service.record_adjustment(batch_id=uuid.uuid4(), quantity_delta="1")

    def test_expire_writes_off_remaining_once(self):
        self.service.record_outbound(product_id=self.product.id, quantity="3")

        result = self.service.expire_batch(batch_id=self.batch.id)

        self.assertEqual(result.quantity_delta, Decimal("-7.000"))
        self.assertEqual(result.batch.quantity_remaining, Decimal("0.000"))
        self.assertIn("expired", result.product_movement.note)
        self.assertEqual(self.aggregate(), Decimal("0.000"))

        movements_before = len(self.store.product_movements)
        self.assertIsNone(self.service.expire_batch(batch_id=self.batch.id))
        self.assertEqual(len(self.store.product_movements), movements_before)


class BatchAdministrationTests(EngineTestCase):
    def test_delete_reverses_remaining_quantity_first(self):
        keep = self.receive(qty="6", purchased_on=day(2)).batch
        doomed = self.receive(qty="10", purchased_on=day(1)).batch
        self.service.record_outbound(product_id=self.product.id, quantity="6")
        self.assertEqual(self.store.batches[doomed.id].quantity_remaining, Decimal("4.000"))
        self.assertEqual(self.aggregate(), Decimal("10.000"))

        self.service.delete_batch(batch_id=doomed.id)

        self.assertEqual(self.aggregate(), Decimal("6.000"))
        self.assertAggregateConsistent()
        self.assertNotIn(doomed.id, self.store.batches)
        with self.assertRaises(NotFoundError):
            self.service.get_batch(doomed.id)

        latest = self.service.list_movements(self.product.id)[0]
        self.assertEqual((latest.kind, latest.quantity), (MovementKind.ADJUSTMENT, Decimal("-4.000")))

        # batch-level history survives the delete
        kept_history = [m for m in self.store.batch_movements if m.batch_id == doomed.id]
        self.assertEqual(
            [m.kind for m in kept_history],
            [MovementKind.INBOUND, MovementKind.OUTBOUND, MovementKind.ADJUSTMENT],
        )
        self.assertIn(keep.id, self.store.batches)

    def test_delete_exhausted_batch_writes_no_adjustment(self):
        batch = self.receive(qty="2").batch
        self.service.record_outbound(product_id=self.product.id, quantity="2")
        movements_before = len(self.store.product_movements)

        self.service.delete_batch(batch_id=batch.id)

        self.assertEqual(len(self.store.product_movements), movements_before)
        self.assertEqual(self.aggregate(), Decimal("0.000"))

    def test_delete_unknown_batch(self):
        with self.assertRaises(NotFoundError):
            self.service.delete_batch(batch_id=uuid.uuid4())

    def test_update_details_touches_metadata_only(self):
        batch = self.receive(qty="3").batch
        supplier = uuid.uuid4()
        expiry = (day(1) + timedelta(days=90)).date()

        updated = self.service.update_batch_details(batch_id=batch.id, expiry_date=expiry, supplier_id=supplier)

        self.assertEqual(updated.expiry_date, expiry)
        self.assertEqual(updated.supplier_id, supplier)
        self.assertEqual(updated.quantity_remaining, batch.quantity_remaining)
        self.assertEqual(updated.unit_cost, batch.unit_cost)

        cleared = self.service.update_batch_details(batch_id=batch.id, expiry_date=None)
        self.assertIsNone(cleared.expiry_date)
        self.assertEqual(cleared.supplier_id, supplier)

    def test_update_details_rejects_expiry_before_purchase(self):
        batch = self.receive(qty="3").batch
        with self.assertRaises(ValidationError):
            self.service.update_batch_details(batch_id=batch.id, expiry_date=(day(1) - timedelta(days=2)).date())

    def test_listing_is_fifo_ordered(self):
        late = self.receive(qty="1", purchased_on=day(5)).batch
        early = self.receive(qty="1", purchased_on=day(2)).batch
        empty = self.receive(qty="1", purchased_on=day(1)).batch
        self.service.record_outbound(product_id=self.product.id, quantity="1")

        self.assertEqual([b.id for b in self.service.list_batches(product_id=self.product.id)], [early.id, late.id])
        self.assertEqual(
            [b.id for b in self.service.list_batches(product_id=self.product.id, include_inactive=True)],
            [empty.id, early.id, late.id],
        )

    def test_listing_unknown_product(self):
        with self.assertRaises(NotFoundError):
            self.service.list_batches(product_id=uuid.uuid4())


class HistoryTests(EngineTestCase):
    """
    GUARANTEES:
    - Newest first, stable across repeated reads
    - Reads never write
    """

    def test_movements_newest_first_and_idempotent(self):
        batch = self.receive(qty="5").batch
        self.service.record_outbound(product_id=self.product.id, quantity="2")
        self.service.record_adjustment(batch_id=batch.id, quantity_delta="1")

        first = self.service.list_movements(self.product.id)
        second = self.service.list_movements(self.product.id)

        self.assertEqual(first, second)
        self.assertEqual(
            [m.kind for m in first],
            [MovementKind.ADJUSTMENT, MovementKind.OUTBOUND, MovementKind.INBOUND],
        )
        self.assertEqual(sum((m.stock_delta for m in first), Decimal("0")), self.aggregate())

    def test_movements_are_scoped_by_product(self):
        other = self.store.add_product(name="Vinegar")
        self.receive(qty="1")
        self.service.record_inbound(product_id=other.id, quantity="2", unit_cost="1", purchase_date=day(1))

        self.assertEqual(len(self.service.list_movements(self.product.id)), 1)
        self.assertEqual(len(self.service.list_movements()), 2)

    def test_batch_history_unknown_batch(self):
        with self.assertRaises(NotFoundError):
            self.service.list_batch_movements(uuid.uuid4())


class AlertTests(EngineTestCase):
    def test_low_stock_products(self):
        self.store.add_product(name="No threshold")
        self.receive(qty="5")

        self.assertEqual([p.id for p in self.service.list_low_stock_products()], [self.product.id])

        self.receive(qty="0.001")
        self.assertEqual(self.service.list_low_stock_products(), [])

    def test_expiring_batches_window(self):
        # clock starts at T0 (2024-01-01); batches are purchased on day(1)
        today = T0.date()
        soon = self.receive(expiry_date=today + timedelta(days=10)).batch
        self.receive(expiry_date=today + timedelta(days=60))
        self.receive()

        gone = self.receive(qty="1", expiry_date=today + timedelta(days=5)).batch
        self.service.expire_batch(batch_id=gone.id)

        self.assertEqual([b.id for b in self.service.list_expiring_batches(30)], [soon.id])
        self.assertEqual(len(self.service.list_expiring_batches(90)), 2)

        with self.assertRaises(ValidationError):
            self.service.list_expiring_batches(-1)
