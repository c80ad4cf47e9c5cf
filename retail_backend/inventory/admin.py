# inventory/admin.py
"""
=====================================================
PATH: inventory/admin.py
=====================================================

Admin rules (audit-safe):

- Stock comes in as Batch rows added on the Product page (BatchInline).
- NEW inline rows are not saved directly; ProductAdmin routes them through
  InventoryService.record_inbound() so the aggregate and the INBOUND
  movements are written in the same unit of work.
- Existing Batch rows are immutable here (adjust/expire/delete via API).
- Movements are view-only.

UUID default PK:
- Unsaved inline instances already carry a pk value, so "existing row" is
  detected via _state.adding / DB existence, never via `inst.pk`.
"""

from __future__ import annotations

from django.conf import settings
from django.contrib import admin
from django.core.exceptions import ValidationError
from django.forms.models import BaseInlineFormSet
from django.utils import timezone

from inventory.engine import quantities as q
from inventory.models import Batch, BatchMovement, ProductMovement
from inventory.services import get_inventory_service


# =====================================================
# HELPERS
# =====================================================

def is_persisted_batch(inst: Batch | None) -> bool:
    if inst is None:
        return False

    if getattr(inst._state, "adding", True) is False:
        return True

    pk = getattr(inst, "pk", None)
    if not pk:
        return False
    return Batch.objects.filter(pk=pk).exists()


def is_blank_new_row(cd: dict) -> bool:
    return (
        cd.get("quantity_purchased") in (None, "")
        and cd.get("unit_cost") in (None, "")
        and not cd.get("expiry_date")
        and not cd.get("supplier_id")
    )


# =====================================================
# INLINE (VALIDATION LIVES HERE)
# =====================================================

class BatchInlineFormSet(BaseInlineFormSet):
    """
    Raise ValidationError in clean() so the admin renders inline errors
    instead of an error page.
    """

    def clean(self):
        super().clean()

        any_errors = False

        for form in self.forms:
            cd = getattr(form, "cleaned_data", None)
            if cd is None:
                continue

            if cd.get("DELETE"):
                form.add_error(None, "Batches are deleted through the inventory API (stock is reversed first).")
                any_errors = True
                continue

            if is_persisted_batch(getattr(form, "instance", None)):
                if form.has_changed():
                    form.add_error(
                        None,
                        "Existing batches are immutable here. Use an adjustment for quantity corrections.",
                    )
                    any_errors = True
                continue

            if is_blank_new_row(cd):
                continue

            if cd.get("quantity_purchased") in (None, ""):
                form.add_error("quantity_purchased", "quantity_purchased is required.")
                any_errors = True
            elif cd["quantity_purchased"] <= 0:
                form.add_error("quantity_purchased", "quantity_purchased must be > 0.")
                any_errors = True

            if cd.get("unit_cost") in (None, ""):
                form.add_error("unit_cost", "unit_cost is required.")
                any_errors = True
            elif cd["unit_cost"] < 0:
                form.add_error("unit_cost", "unit_cost cannot be negative.")
                any_errors = True

        if any_errors:
            raise ValidationError("Please correct the batch errors below.")


class BatchInline(admin.TabularInline):
    model = Batch
    formset = BatchInlineFormSet

    extra = 1
    can_delete = False
    show_change_link = False

    fields = (
        "quantity_purchased",
        "unit_cost",
        "purchase_date",
        "expiry_date",
        "supplier_id",
        "quantity_remaining",
        "created_at",
    )
    readonly_fields = ("quantity_remaining", "created_at")


def save_new_batches(request, product, formset) -> list:
    """
    Route NEW inline rows through the engine. Returns the created Batch rows
    (Django admin needs them for its change message).
    """
    service = get_inventory_service()
    created = []

    for form in getattr(formset, "forms", []):
        cd = getattr(form, "cleaned_data", None)
        if not cd or cd.get("DELETE"):
            continue
        if is_persisted_batch(getattr(form, "instance", None)) or is_blank_new_row(cd):
            continue

        result = service.record_inbound(
            product_id=product.id,
            quantity=cd["quantity_purchased"],
            unit_cost=cd["unit_cost"],
            purchase_date=cd.get("purchase_date") or timezone.now(),
            expiry_date=cd.get("expiry_date"),
            supplier_id=cd.get("supplier_id"),
            note=f"Batch added via admin by {request.user}",
        )
        created.append(Batch.objects.get(pk=result.batch.id))

    return created


# =====================================================
# BATCH (VIEW-ONLY LIST)
# =====================================================

@admin.register(Batch)
class BatchAdmin(admin.ModelAdmin):
    list_display = (
        "product",
        "purchase_date",
        "quantity_purchased",
        "quantity_remaining",
        "unit_cost",
        "remaining_value",
        "expiry_date",
        "expiry_status",
        "created_at",
    )
    list_filter = ("purchase_date", "expiry_date")
    search_fields = ("product__name", "product__sku")
    ordering = ("purchase_date", "id")

    readonly_fields = (
        "product",
        "supplier_id",
        "unit_cost",
        "quantity_purchased",
        "quantity_remaining",
        "purchase_date",
        "expiry_date",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False if obj else True

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description="Remaining Value")
    def remaining_value(self, obj):
        return q.money(obj.total_remaining_value)

    @admin.display(description="Expiry Status")
    def expiry_status(self, obj):
        if obj.expiry_date is None:
            return "-"

        today = timezone.localdate()
        if obj.expiry_date < today:
            return "EXPIRED"
        if (obj.expiry_date - today).days <= settings.INVENTORY_EXPIRY_ALERT_DAYS:
            return "SOON"
        return "OK"


# =====================================================
# MOVEMENTS (VIEW-ONLY)
# =====================================================

class ReadOnlyLedgerAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ProductMovement)
class ProductMovementAdmin(ReadOnlyLedgerAdmin):
    list_display = ("created_at", "product", "kind", "quantity", "note")
    list_filter = ("kind", "created_at")
    search_fields = ("product__name", "product__sku", "note")
    ordering = ("-created_at", "-id")


@admin.register(BatchMovement)
class BatchMovementAdmin(ReadOnlyLedgerAdmin):
    list_display = ("created_at", "batch_id", "product", "kind", "quantity", "unit_cost_snapshot", "line_cost")
    list_filter = ("kind", "created_at")
    search_fields = ("product__name", "product__sku")
    ordering = ("-created_at", "-id")

    @admin.display(description="Cost")
    def line_cost(self, obj):
        return q.money(obj.total_cost)
