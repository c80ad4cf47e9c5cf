# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Product(models.Model):
    """
    Represents a stocked product (catalog-owned).

    STOCK MODEL (IMPORTANT):
    - Physical stock lives in inventory.Batch rows
    - aggregate_stock is a denormalized counter = sum(batch.quantity_remaining)
    - aggregate_stock is written ONLY by the inventory engine
      (admin/serializers expose it read-only)
    - minimum_stock is optional; when set, aggregate_stock <= minimum_stock
      means "low stock"
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sku = models.CharField(max_length=128, unique=True, db_index=True)
    name = models.CharField(max_length=255, db_index=True)

    aggregate_stock = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        default=Decimal("0.000"),
        editable=False,
        help_text="Sum of remaining batch quantities (engine-managed only)",
    )

    minimum_stock = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        null=True,
        blank=True,
        default=None,
        help_text="Low-stock threshold. Leave empty to disable alerts.",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "product"
        ordering = ["name", "id"]
        indexes = [
            models.Index(fields=["sku"], name="product_sku_2b1a4e_idx"),
            models.Index(fields=["name"], name="product_name_7c3d91_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(aggregate_stock__gte=0),
                name="chk_product_aggregate_stock_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(minimum_stock__isnull=True) | Q(minimum_stock__gte=0),
                name="chk_product_minimum_stock_gte_zero",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    def clean(self):
        if not (self.sku or "").strip():
            raise ValidationError({"sku": "sku is required"})

        if self.minimum_stock is not None and Decimal(self.minimum_stock) < Decimal("0"):
            raise ValidationError({"minimum_stock": "minimum_stock cannot be negative"})

    @property
    def is_low_stock(self) -> bool:
        if self.minimum_stock is None:
            return False
        return self.aggregate_stock <= self.minimum_stock
