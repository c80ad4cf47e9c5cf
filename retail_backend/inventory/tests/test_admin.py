# inventory/tests/test_admin.py

from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace

from django.contrib.admin.sites import AdminSite
from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase
from django.urls import reverse
from django.utils import timezone

from inventory.admin import BatchAdmin, BatchMovementAdmin, is_blank_new_row, is_persisted_batch, save_new_batches
from inventory.models import Batch, BatchMovement, ProductMovement
from inventory.services import get_inventory_service
from products.models import Product

User = get_user_model()


class AdminBatchIntakeTests(TestCase):
    """
    GUARANTEES:
    - New inline rows go through the engine (aggregate + INBOUND movement)
    - Blank extra rows and existing rows are ignored
    """

    def setUp(self):
        self.product = Product.objects.create(sku="TEA-100", name="Tea 100 bags")
        self.request = RequestFactory().post("/admin/")
        self.request.user = User.objects.create_user(username="admin_clerk", password="password123", is_staff=True)

    def test_new_rows_are_routed_through_the_engine(self):
        existing = get_inventory_service().record_inbound(product_id=self.product.id, quantity="1", unit_cost="1").batch
        formset = SimpleNamespace(
            forms=[
                SimpleNamespace(
                    instance=Batch(product=self.product),
                    cleaned_data={"quantity_purchased": Decimal("6"), "unit_cost": Decimal("2.5")},
                ),
                SimpleNamespace(instance=Batch(product=self.product), cleaned_data={}),
                SimpleNamespace(
                    instance=Batch.objects.get(pk=existing.id),
                    cleaned_data={"quantity_purchased": Decimal("1"), "unit_cost": Decimal("1")},
                ),
            ]
        )

        created = save_new_batches(self.request, self.product, formset)

        self.assertEqual(len(created), 1)
        self.assertEqual(created[0].quantity_remaining, Decimal("6.000"))
        self.product.refresh_from_db()
        self.assertEqual(self.product.aggregate_stock, Decimal("7.000"))
        self.assertTrue(
            ProductMovement.objects.filter(product=self.product, note__contains="admin_clerk").exists()
        )

    def test_row_helpers(self):
        self.assertTrue(is_blank_new_row({"quantity_purchased": None, "unit_cost": ""}))
        self.assertFalse(is_blank_new_row({"quantity_purchased": Decimal("1")}))
        self.assertFalse(is_persisted_batch(None))
        self.assertFalse(is_persisted_batch(Batch(product=self.product)))


class BatchAdminDisplayTests(TestCase):
    def setUp(self):
        self.admin = BatchAdmin(Batch, AdminSite())
        self.today = timezone.localdate()

    def test_expiry_status(self):
        cases = [
            (None, "-"),
            (self.today - timedelta(days=1), "EXPIRED"),
            (self.today + timedelta(days=3), "SOON"),
            (self.today + timedelta(days=365), "OK"),
        ]
        for expiry, expected in cases:
            with self.subTest(expiry=expiry):
                self.assertEqual(self.admin.expiry_status(Batch(expiry_date=expiry)), expected)

    def test_remaining_value_is_rounded_to_money(self):
        batch = Batch(unit_cost=Decimal("1.3333"), quantity_remaining=Decimal("2.500"))

        self.assertEqual(self.admin.remaining_value(batch), Decimal("3.33"))
        empty = Batch(unit_cost=Decimal("4"), quantity_remaining=Decimal("0"))
        self.assertEqual(self.admin.remaining_value(empty), Decimal("0.00"))


class BatchMovementAdminDisplayTests(TestCase):
    """
    GUARANTEES:
    - Movement cost is always positive, whichever direction stock moved
    """

    def setUp(self):
        self.admin = BatchMovementAdmin(BatchMovement, AdminSite())

    def test_line_cost_for_receipts_and_write_offs(self):
        inbound = BatchMovement(kind="INBOUND", quantity=Decimal("3.000"), unit_cost_snapshot=Decimal("2.5000"))
        write_off = BatchMovement(kind="ADJUSTMENT", quantity=Decimal("-1.500"), unit_cost_snapshot=Decimal("2.5000"))

        self.assertEqual(self.admin.line_cost(inbound), Decimal("7.50"))
        self.assertEqual(self.admin.line_cost(write_off), Decimal("3.75"))

    def test_changelist_renders_cost_column(self):
        product = Product.objects.create(sku="SUGAR-1KG", name="Sugar 1kg")
        get_inventory_service().record_inbound(product_id=product.id, quantity="4", unit_cost="1.25")
        staff = User.objects.create_superuser(username="auditor", password="password123", email="a@example.com")
        self.client.force_login(staff)

        response = self.client.get(reverse("admin:inventory_batchmovement_changelist"))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "5.00")
