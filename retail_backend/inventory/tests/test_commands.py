# inventory/tests/test_commands.py

from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from inventory.services import get_inventory_service
from products.models import Product


class CheckInventoryCommandTests(TestCase):
    """
    GUARANTEES:
    - Clean data passes
    - Drift is reported, and fails the run under --strict
    - --repair resets the aggregate from the batches
    """

    def setUp(self):
        self.product = Product.objects.create(sku="BEANS-1KG", name="Beans 1kg")
        get_inventory_service().record_inbound(product_id=self.product.id, quantity="8", unit_cost="3")
        self.out = StringIO()
        self.err = StringIO()

    def run_check(self, *args):
        call_command("check_inventory", *args, stdout=self.out, stderr=self.err)

    def drift(self):
        Product.objects.filter(pk=self.product.pk).update(aggregate_stock=Decimal("10"))

    def test_consistent_inventory_passes(self):
        self.run_check("--strict")
        self.assertIn("[OK]", self.out.getvalue())

    def test_drift_fails_strict_run(self):
        self.drift()

        with self.assertRaises(SystemExit) as ctx:
            self.run_check("--strict")

        self.assertEqual(ctx.exception.code, 1)
        self.assertIn("difference=-2.000", self.err.getvalue())

        self.product.refresh_from_db()
        self.assertEqual(self.product.aggregate_stock, Decimal("10.000"))

    def test_repair_fixes_drift(self):
        self.drift()

        with self.assertLogs("inventory.engine.service", level="WARNING"):
            self.run_check("--repair", "--strict")

        self.assertIn("[FIXED]", self.out.getvalue())
        self.product.refresh_from_db()
        self.assertEqual(self.product.aggregate_stock, Decimal("8.000"))

    def test_single_product_scope(self):
        Product.objects.create(sku="OTHER", name="Other")
        self.run_check("--product", str(self.product.id))
        self.assertIn(str(self.product.id), self.out.getvalue())
