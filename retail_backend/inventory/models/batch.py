# inventory/models/batch.py

"""
BATCH ("LOTE") - ONE PURCHASE OF ONE PRODUCT

CANONICAL MODEL:
- Batch = one purchase at one unit cost
- quantity_purchased, unit_cost, purchase_date, product are immutable
- quantity_remaining is mutated ONLY by the inventory engine
- active <=> quantity_remaining > 0 (derived, never stored)
- FIFO order = (purchase_date, id)

Deletion is an administrative engine operation (InventoryService.delete_batch)
which reverses the remaining quantity out of Product.aggregate_stock first.
BatchMovement history survives the delete.
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from products.models import Product

IMMUTABLE_FIELDS = ("product_id", "quantity_purchased", "unit_cost", "purchase_date")


class BatchQuerySet(models.QuerySet):
    def active(self):
        return self.filter(quantity_remaining__gt=0)

    def fifo(self):
        return self.order_by("purchase_date", "id")


class Batch(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="batches",
    )

    # Suppliers live in another module; only the reference is kept.
    supplier_id = models.UUIDField(null=True, blank=True, db_index=True)

    unit_cost = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        help_text="Unit purchase cost (immutable)",
    )

    quantity_purchased = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        help_text="Quantity purchased (immutable)",
    )

    quantity_remaining = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        help_text="Remaining quantity (engine-managed only)",
    )

    purchase_date = models.DateTimeField(default=timezone.now)
    expiry_date = models.DateField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BatchQuerySet.as_manager()

    class Meta:
        db_table = "batch"
        ordering = ["purchase_date", "id"]
        indexes = [
            models.Index(fields=["product", "purchase_date", "id"], name="batch_fifo_idx"),
            models.Index(fields=["expiry_date"], name="batch_expiry_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity_purchased__gt=0),
                name="chk_batch_qty_purchased_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(quantity_remaining__gte=0),
                name="chk_batch_qty_remaining_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(unit_cost__gte=0),
                name="chk_batch_unit_cost_gte_zero",
            ),
        ]

    # -------------------------------------------------
    # VALIDATION
    # -------------------------------------------------

    def clean(self):
        if self.quantity_purchased is not None and self.quantity_purchased <= Decimal("0"):
            raise ValidationError({"quantity_purchased": "quantity_purchased must be greater than zero"})

        if self.quantity_remaining is not None and self.quantity_remaining < Decimal("0"):
            raise ValidationError({"quantity_remaining": "quantity_remaining cannot be negative"})

        if self.unit_cost is not None and self.unit_cost < Decimal("0"):
            raise ValidationError({"unit_cost": "unit_cost cannot be negative"})

        if self.expiry_date and self.purchase_date and self.expiry_date < self.purchase_date.date():
            raise ValidationError({"expiry_date": "expiry_date cannot be before purchase_date"})

    # -------------------------------------------------
    # IMMUTABILITY
    # -------------------------------------------------

    def save(self, *args, **kwargs):
        if not self._state.adding:
            original = Batch.objects.filter(pk=self.pk).values(*IMMUTABLE_FIELDS).first()
            if original is not None:
                for field in IMMUTABLE_FIELDS:
                    if getattr(self, field) != original[field]:
                        raise ValidationError({field.removesuffix("_id"): f"{field} is immutable"})

        super().save(*args, **kwargs)

    # -------------------------------------------------
    # READ-ONLY HELPERS
    # -------------------------------------------------

    @property
    def is_active(self) -> bool:
        return (self.quantity_remaining or Decimal("0")) > Decimal("0")

    @property
    def total_remaining_value(self) -> Decimal:
        return (self.unit_cost or Decimal("0")) * (self.quantity_remaining or Decimal("0"))

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | Batch {self.id} | {self.quantity_remaining}/{self.quantity_purchased}"
