import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


def _sign_constraints(prefix):
    return [
        models.CheckConstraint(
            condition=models.Q(("quantity", 0), _negated=True),
            name=f"chk_{prefix}_quantity_nonzero",
        ),
        models.CheckConstraint(
            condition=models.Q(("kind", "ADJUSTMENT"), ("quantity__gt", 0), _connector="OR"),
            name=f"chk_{prefix}_quantity_positive_unless_adjustment",
        ),
    ]


KIND_CHOICES = [
    ("INBOUND", "Inbound"),
    ("OUTBOUND", "Outbound"),
    ("ADJUSTMENT", "Adjustment"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("products", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Batch",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("supplier_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("unit_cost", models.DecimalField(decimal_places=4, help_text="Unit purchase cost (immutable)", max_digits=14)),
                (
                    "quantity_purchased",
                    models.DecimalField(decimal_places=3, help_text="Quantity purchased (immutable)", max_digits=14),
                ),
                (
                    "quantity_remaining",
                    models.DecimalField(decimal_places=3, help_text="Remaining quantity (engine-managed only)", max_digits=14),
                ),
                ("purchase_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("expiry_date", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="batches",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "db_table": "batch",
                "ordering": ["purchase_date", "id"],
                "indexes": [
                    models.Index(fields=["product", "purchase_date", "id"], name="batch_fifo_idx"),
                    models.Index(fields=["expiry_date"], name="batch_expiry_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity_purchased__gt", 0)),
                        name="chk_batch_qty_purchased_gt_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("quantity_remaining__gte", 0)),
                        name="chk_batch_qty_remaining_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("unit_cost__gte", 0)),
                        name="chk_batch_unit_cost_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProductMovement",
            fields=[
                ("kind", models.CharField(choices=KIND_CHOICES, max_length=16)),
                ("quantity", models.DecimalField(decimal_places=3, max_digits=14)),
                ("created_at", models.DateTimeField()),
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("note", models.CharField(blank=True, default="", max_length=255)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="movements",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "db_table": "product_movement",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["product", "created_at"], name="pmov_product_created_idx"),
                    models.Index(fields=["kind"], name="pmov_kind_idx"),
                    models.Index(fields=["created_at"], name="pmov_created_idx"),
                ],
                "constraints": _sign_constraints("product_movement"),
            },
        ),
        migrations.CreateModel(
            name="BatchMovement",
            fields=[
                ("kind", models.CharField(choices=KIND_CHOICES, max_length=16)),
                ("quantity", models.DecimalField(decimal_places=3, max_digits=14)),
                ("created_at", models.DateTimeField()),
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                (
                    "unit_cost_snapshot",
                    models.DecimalField(
                        decimal_places=4,
                        help_text="Unit cost of the batch at movement time (immutable).",
                        max_digits=14,
                    ),
                ),
                (
                    "batch",
                    models.ForeignKey(
                        db_constraint=False,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="movements",
                        to="inventory.batch",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="batch_movements",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "db_table": "batch_movement",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["batch", "created_at"], name="bmov_batch_created_idx"),
                    models.Index(fields=["product", "created_at"], name="bmov_product_created_idx"),
                ],
                "constraints": _sign_constraints("batch_movement"),
            },
        ),
    ]
