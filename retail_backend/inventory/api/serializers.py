# inventory/api/serializers.py
"""
======================================================
PATH: inventory/api/serializers.py
======================================================
INVENTORY SERIALIZERS

Input serializers only check SHAPE (types, formats). Business rules
(quantity > 0, cost >= 0, delta != 0, precision) are enforced by the engine,
so the API and every other caller get identical validation.

Output serializers render engine records and ORM rows alike (same attribute
names on both).
"""

from __future__ import annotations

from rest_framework import serializers


def _kind_value(kind):
    return getattr(kind, "value", kind)


# =====================================================
# INPUT
# =====================================================

class InboundSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    unit_cost = serializers.DecimalField(max_digits=14, decimal_places=4)
    purchase_date = serializers.DateTimeField(required=False, allow_null=True)
    supplier_id = serializers.UUIDField(required=False, allow_null=True)
    expiry_date = serializers.DateField(required=False, allow_null=True)
    note = serializers.CharField(required=False, allow_blank=True, max_length=255)


class OutboundSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    note = serializers.CharField(required=False, allow_blank=True, max_length=255)


class AdjustmentSerializer(serializers.Serializer):
    quantity_delta = serializers.DecimalField(max_digits=14, decimal_places=3)
    note = serializers.CharField(required=False, allow_blank=True, max_length=255)


class ExpireSerializer(serializers.Serializer):
    note = serializers.CharField(required=False, allow_blank=True, max_length=255)


class BatchDetailsSerializer(serializers.Serializer):
    """PATCH payload: metadata only. Quantities, cost and dates are immutable."""

    expiry_date = serializers.DateField(required=False, allow_null=True)
    supplier_id = serializers.UUIDField(required=False, allow_null=True)

    IMMUTABLE = ("quantity_purchased", "quantity_remaining", "unit_cost", "purchase_date", "product_id")

    def validate(self, attrs):
        blocked = sorted(k for k in self.IMMUTABLE if k in self.initial_data)
        if blocked:
            raise serializers.ValidationError(
                {k: "This field cannot be changed. Use an adjustment instead." for k in blocked}
            )
        return attrs


# =====================================================
# OUTPUT
# =====================================================

class BatchSerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    product_id = serializers.UUIDField(read_only=True)
    supplier_id = serializers.UUIDField(read_only=True, allow_null=True)
    unit_cost = serializers.DecimalField(max_digits=14, decimal_places=4, read_only=True)
    quantity_purchased = serializers.DecimalField(max_digits=14, decimal_places=3, read_only=True)
    quantity_remaining = serializers.DecimalField(max_digits=14, decimal_places=3, read_only=True)
    is_active = serializers.BooleanField(read_only=True)
    purchase_date = serializers.DateTimeField(read_only=True)
    expiry_date = serializers.DateField(read_only=True, allow_null=True)
    created_at = serializers.DateTimeField(read_only=True, allow_null=True)


class ProductMovementSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    product_id = serializers.UUIDField(read_only=True)
    kind = serializers.SerializerMethodField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, read_only=True)
    note = serializers.CharField(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)

    def get_kind(self, obj) -> str:
        return _kind_value(obj.kind)


class BatchMovementSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    batch_id = serializers.UUIDField(read_only=True)
    product_id = serializers.UUIDField(read_only=True)
    kind = serializers.SerializerMethodField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, read_only=True)
    unit_cost_snapshot = serializers.DecimalField(max_digits=14, decimal_places=4, read_only=True)
    created_at = serializers.DateTimeField(read_only=True)

    def get_kind(self, obj) -> str:
        return _kind_value(obj.kind)


class BatchAllocationSerializer(serializers.Serializer):
    batch_id = serializers.UUIDField(read_only=True)
    quantity_taken = serializers.DecimalField(max_digits=14, decimal_places=3, read_only=True)
    unit_cost = serializers.DecimalField(max_digits=14, decimal_places=4, read_only=True)
    total_cost = serializers.DecimalField(max_digits=28, decimal_places=2, read_only=True)


class InboundResultSerializer(serializers.Serializer):
    batch = BatchSerializer(read_only=True)
    product_movement = ProductMovementSerializer(read_only=True)


class ConsumptionResultSerializer(serializers.Serializer):
    product_movement = ProductMovementSerializer(read_only=True)
    batch_allocations = BatchAllocationSerializer(many=True, read_only=True)
    total_cost = serializers.DecimalField(max_digits=28, decimal_places=2, read_only=True)


class AdjustmentResultSerializer(serializers.Serializer):
    batch = BatchSerializer(read_only=True)
    product_movement = ProductMovementSerializer(read_only=True)
    batch_movement = BatchMovementSerializer(read_only=True)
    quantity_delta = serializers.DecimalField(max_digits=14, decimal_places=3, read_only=True)


class ProductValuationSerializer(serializers.Serializer):
    product_id = serializers.UUIDField(read_only=True)
    average_cost = serializers.DecimalField(max_digits=14, decimal_places=4, read_only=True)
    total_value = serializers.DecimalField(max_digits=28, decimal_places=2, read_only=True)
    quantity_on_hand = serializers.DecimalField(max_digits=14, decimal_places=3, read_only=True)
    batch_count = serializers.IntegerField(read_only=True)


class InventoryValuationSerializer(serializers.Serializer):
    total = serializers.DecimalField(max_digits=28, decimal_places=2, read_only=True)
    batch_count = serializers.IntegerField(read_only=True)
    distinct_product_count = serializers.IntegerField(read_only=True)


class ProductStockSerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)
    aggregate_stock = serializers.DecimalField(max_digits=14, decimal_places=3, read_only=True)
    minimum_stock = serializers.DecimalField(max_digits=14, decimal_places=3, read_only=True, allow_null=True)
    is_low_stock = serializers.BooleanField(read_only=True)


class ExpiringBatchesSerializer(serializers.Serializer):
    days = serializers.IntegerField(read_only=True)
    results = BatchSerializer(many=True, read_only=True)
