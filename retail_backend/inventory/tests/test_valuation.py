# inventory/tests/test_valuation.py

import uuid
from decimal import Decimal

from django.test import SimpleTestCase

from inventory.engine import NotFoundError
from inventory.engine.types import BatchRecord
from inventory.engine.valuation import total_inventory_value, weighted_average_cost

from .support import day, make_engine


def _batch(*, qty, remaining=None, cost, purchased_on=None) -> BatchRecord:
    return BatchRecord(
        id=uuid.uuid4(),
        product_id=uuid.UUID(int=1),
        unit_cost=Decimal(cost),
        quantity_purchased=Decimal(qty),
        quantity_remaining=Decimal(qty if remaining is None else remaining),
        purchase_date=purchased_on or day(1),
    )


class PureValuationTests(SimpleTestCase):
    def test_weighted_average(self):
        batches = [_batch(qty="10", cost="5"), _batch(qty="5", cost="7")]

        self.assertEqual(weighted_average_cost(batches), Decimal("5.6667"))
        self.assertEqual(total_inventory_value(batches), Decimal("85.00"))

    def test_exhausted_batches_contribute_nothing(self):
        batches = [
            _batch(qty="10", remaining="0", cost="100"),
            _batch(qty="4", cost="2.5"),
        ]

        self.assertEqual(weighted_average_cost(batches), Decimal("2.5000"))
        self.assertEqual(total_inventory_value(batches), Decimal("10.00"))

    def test_no_stock_is_zero_not_an_error(self):
        self.assertEqual(weighted_average_cost([]), Decimal("0.0000"))
        self.assertEqual(total_inventory_value([]), Decimal("0.00"))

    def test_money_rounds_half_up(self):
        batches = [_batch(qty="0.001", cost="5")]
        self.assertEqual(total_inventory_value(batches), Decimal("0.01"))


class ProductValuationTests(SimpleTestCase):
    """
    GUARANTEES:
    - Computed from active batches only, at their own unit costs
    - Reads never write (aggregate and history are untouched)
    """

    def setUp(self):
        self.store, self.service = make_engine()
        self.product = self.store.add_product(name="Coffee beans")

    def test_partially_consumed_product(self):
        for qty, cost, n in (("10", "5", 1), ("10", "7", 2), ("5", "9", 3)):
            self.service.record_inbound(
                product_id=self.product.id, quantity=qty, unit_cost=cost, purchase_date=day(n)
            )
        self.service.record_outbound(product_id=self.product.id, quantity="12")
        movements_before = len(self.store.product_movements)

        valuation = self.service.get_valuation(self.product.id)

        # remaining: 8 @ 7 + 5 @ 9 = 101
        self.assertEqual(valuation.quantity_on_hand, Decimal("13.000"))
        self.assertEqual(valuation.total_value, Decimal("101.00"))
        self.assertEqual(valuation.average_cost, Decimal("7.7692"))
        self.assertEqual(valuation.batch_count, 2)
        self.assertEqual(len(self.store.product_movements), movements_before)

    def test_product_valuation_matches_batch_formulas(self):
        for qty, cost, n in (("3", "1.3333", 1), ("7", "2.0001", 2)):
            self.service.record_inbound(
                product_id=self.product.id, quantity=qty, unit_cost=cost, purchase_date=day(n)
            )
        self.service.record_outbound(product_id=self.product.id, quantity="1")

        batches = self.service.list_active_batches(self.product.id)
        valuation = self.service.get_valuation(self.product.id)

        self.assertEqual(valuation.average_cost, weighted_average_cost(batches))
        self.assertEqual(valuation.total_value, total_inventory_value(batches))
        self.assertEqual(self.service.get_inventory_valuation().total, total_inventory_value(batches))

    def test_product_without_batches(self):
        valuation = self.service.get_valuation(self.product.id)

        self.assertEqual(valuation.average_cost, Decimal("0.0000"))
        self.assertEqual(valuation.total_value, Decimal("0.00"))
        self.assertEqual(valuation.batch_count, 0)

    def test_unknown_product(self):
        with self.assertRaises(NotFoundError):
            self.service.get_valuation(uuid.uuid4())

    def test_inventory_wide_valuation(self):
        other = self.store.add_product(name="Tea")
        self.store.add_product(name="Nothing in stock")

        self.service.record_inbound(product_id=self.product.id, quantity="2", unit_cost="10", purchase_date=day(1))
        self.service.record_inbound(product_id=self.product.id, quantity="1", unit_cost="4", purchase_date=day(2))
        self.service.record_inbound(product_id=other.id, quantity="3", unit_cost="1.5", purchase_date=day(1))

        totals = self.service.get_inventory_valuation()

        self.assertEqual(totals.total, Decimal("28.50"))
        self.assertEqual(totals.batch_count, 3)
        self.assertEqual(totals.distinct_product_count, 2)
