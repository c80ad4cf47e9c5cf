import uuid
from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("sku", models.CharField(db_index=True, max_length=128, unique=True)),
                ("name", models.CharField(db_index=True, max_length=255)),
                (
                    "aggregate_stock",
                    models.DecimalField(
                        decimal_places=3,
                        default=Decimal("0.000"),
                        editable=False,
                        help_text="Sum of remaining batch quantities (engine-managed only)",
                        max_digits=14,
                    ),
                ),
                (
                    "minimum_stock",
                    models.DecimalField(
                        blank=True,
                        decimal_places=3,
                        default=None,
                        help_text="Low-stock threshold. Leave empty to disable alerts.",
                        max_digits=14,
                        null=True,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "product",
                "ordering": ["name", "id"],
                "indexes": [
                    models.Index(fields=["sku"], name="product_sku_2b1a4e_idx"),
                    models.Index(fields=["name"], name="product_name_7c3d91_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("aggregate_stock__gte", 0)),
                        name="chk_product_aggregate_stock_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("minimum_stock__isnull", True), ("minimum_stock__gte", 0), _connector="OR"),
                        name="chk_product_minimum_stock_gte_zero",
                    ),
                ],
            },
        ),
    ]
