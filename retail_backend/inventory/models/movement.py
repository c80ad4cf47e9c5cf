# inventory/models/movement.py

"""
CANONICAL INVENTORY LEDGER

Immutable movement entries at two levels:
- ProductMovement: one row per engine operation (summary)
- BatchMovement:   one row per batch touched (detail, with cost snapshot)

GUARANTEES:
- Append-only (no updates, no deletes)
- INBOUND / OUTBOUND store the magnitude (> 0)
- ADJUSTMENT stores the signed delta (!= 0)
- BatchMovement keeps batch_id after the batch row is deleted
"""

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from products.models import Product

from .batch import Batch


class MovementKind(models.TextChoices):
    INBOUND = "INBOUND", "Inbound"
    OUTBOUND = "OUTBOUND", "Outbound"
    ADJUSTMENT = "ADJUSTMENT", "Adjustment"


def _quantity_sign_constraints(prefix: str):
    return [
        models.CheckConstraint(
            condition=~Q(quantity=0),
            name=f"chk_{prefix}_quantity_nonzero",
        ),
        models.CheckConstraint(
            condition=Q(kind=MovementKind.ADJUSTMENT) | Q(quantity__gt=0),
            name=f"chk_{prefix}_quantity_positive_unless_adjustment",
        ),
    ]


class ImmutableMovement(models.Model):
    kind = models.CharField(max_length=16, choices=MovementKind.choices)
    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    created_at = models.DateTimeField()

    class Meta:
        abstract = True

    def clean(self):
        if self.quantity is None or self.quantity == Decimal("0"):
            raise ValidationError({"quantity": "quantity cannot be 0"})

        if self.kind != MovementKind.ADJUSTMENT and self.quantity < Decimal("0"):
            raise ValidationError({"quantity": f"{self.kind} quantity must be greater than zero"})

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError(f"{type(self).__name__} records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(f"{type(self).__name__} records are immutable and cannot be deleted")


class ProductMovement(ImmutableMovement):
    id = models.BigAutoField(primary_key=True)

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="movements",
    )

    note = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "product_movement"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["product", "created_at"], name="pmov_product_created_idx"),
            models.Index(fields=["kind"], name="pmov_kind_idx"),
            models.Index(fields=["created_at"], name="pmov_created_idx"),
        ]
        constraints = _quantity_sign_constraints("product_movement")

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | {self.kind} | {self.quantity}"


class BatchMovement(ImmutableMovement):
    id = models.BigAutoField(primary_key=True)

    # Logical reference only: history must outlive an administrative delete.
    batch = models.ForeignKey(
        Batch,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name="movements",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="batch_movements",
    )

    unit_cost_snapshot = models.DecimalField(
        max_digits=14,
        decimal_places=4,
        help_text="Unit cost of the batch at movement time (immutable).",
    )

    class Meta:
        db_table = "batch_movement"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["batch", "created_at"], name="bmov_batch_created_idx"),
            models.Index(fields=["product", "created_at"], name="bmov_product_created_idx"),
        ]
        constraints = _quantity_sign_constraints("batch_movement")

    @property
    def total_cost(self) -> Decimal:
        return self.unit_cost_snapshot * abs(self.quantity)

    def __str__(self):
        return f"Batch {self.batch_id} | {self.kind} | {self.quantity}"
