# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Admin rules:

- Product is created once; aggregate_stock is engine-managed (read-only).
- Stock comes in as Batch rows on the Product page (inventory.admin.BatchInline);
  new rows are routed through the inventory engine, never saved directly.
"""

from __future__ import annotations

from django.contrib import admin

from inventory.admin import BatchInline, save_new_batches
from inventory.models import Batch
from products.models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "sku",
        "name",
        "aggregate_stock",
        "minimum_stock",
        "is_low_stock",
        "is_active",
        "created_at",
    )
    list_filter = ("is_active", "created_at")
    search_fields = ("sku", "name")
    ordering = ("name",)
    readonly_fields = ("aggregate_stock", "created_at", "updated_at")

    inlines = [BatchInline]

    @admin.display(boolean=True, description="Low stock")
    def is_low_stock(self, obj):
        return obj.is_low_stock

    def save_formset(self, request, form, formset, change):
        """
        Route NEW Batch rows through the engine.

        Validation already happened in BatchInlineFormSet.clean().
        formset.save() is NOT called for Batch rows.
        """
        if formset.model is not Batch:
            return super().save_formset(request, form, formset, change)

        # Django admin compatibility: needed for the "added/changed" log message builder
        formset.new_objects = save_new_batches(request, form.instance, formset)
        formset.changed_objects = []
        formset.deleted_objects = []
