"""
======================================================
PATH: inventory/api/views.py
======================================================
INVENTORY API (THIN ADAPTER)

RULES:
- Every quantity change goes through InventoryService (one unit of work each)
- Views never touch Batch.quantity_remaining or Product.aggregate_stock
- Engine errors are rendered by inventory.api.exceptions (400/404/409)
- Batch deletion is staff-only and reverses remaining stock first
"""

from __future__ import annotations

from django.conf import settings
from drf_spectacular.utils import OpenApiParameter, OpenApiTypes, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from inventory.api.filters import ProductMovementFilter
from inventory.api.serializers import (
    AdjustmentResultSerializer,
    AdjustmentSerializer,
    BatchDetailsSerializer,
    BatchMovementSerializer,
    BatchSerializer,
    ConsumptionResultSerializer,
    ExpireSerializer,
    ExpiringBatchesSerializer,
    InboundResultSerializer,
    InboundSerializer,
    InventoryValuationSerializer,
    OutboundSerializer,
    ProductMovementSerializer,
    ProductStockSerializer,
    ProductValuationSerializer,
)
from inventory.engine.errors import ValidationError
from inventory.models import ProductMovement
from inventory.services import get_inventory_service


def _truthy(raw) -> bool:
    return (raw or "").strip().lower() in ("1", "true", "yes")


def _int_param(request, name: str, default: int) -> int:
    raw = (request.query_params.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer", field=name) from None


class InventoryServiceMixin:
    @property
    def inventory(self):
        service = getattr(self, "_inventory", None)
        if service is None:
            service = self._inventory = get_inventory_service()
        return service


# =====================================================
# BATCHES
# =====================================================

class BatchViewSet(InventoryServiceMixin, viewsets.GenericViewSet):
    """
    Batch endpoints.

    - POST   /batches/                         -> record inbound (new batch)
    - GET    /batches/?product_id=&include_inactive=
    - GET    /batches/{id}/
    - PATCH  /batches/{id}/                    -> expiry_date / supplier_id only
    - DELETE /batches/{id}/                    -> staff only
    - POST   /batches/{id}/adjust/
    - POST   /batches/{id}/expire/
    - GET    /batches/{id}/movements/
    - GET    /batches/alerts/expiring-soon/?days=N
    """

    serializer_class = BatchSerializer
    permission_classes = [IsAuthenticated]

    def get_permissions(self):
        if self.action == "destroy":
            return [IsAuthenticated(), IsAdminUser()]
        return [IsAuthenticated()]

    @extend_schema(
        tags=["inventory"],
        parameters=[
            OpenApiParameter(name="product_id", type=OpenApiTypes.UUID, required=False),
            OpenApiParameter(name="include_inactive", type=OpenApiTypes.BOOL, required=False),
        ],
        responses=BatchSerializer(many=True),
    )
    def list(self, request):
        product_id = (request.query_params.get("product_id") or "").strip() or None
        include_inactive = _truthy(request.query_params.get("include_inactive"))

        batches = self.inventory.list_batches(product_id=product_id, include_inactive=include_inactive)

        page = self.paginate_queryset(batches)
        if page is not None:
            return self.get_paginated_response(BatchSerializer(page, many=True).data)
        return Response(BatchSerializer(batches, many=True).data)

    @extend_schema(tags=["inventory"], responses=BatchSerializer)
    def retrieve(self, request, pk=None):
        return Response(BatchSerializer(self.inventory.get_batch(pk)).data)

    @extend_schema(
        tags=["inventory"],
        request=InboundSerializer,
        responses={201: InboundResultSerializer},
    )
    def create(self, request):
        """
        POST /api/inventory/batches/

        Purchase-led intake: batch + ProductMovement(INBOUND) + aggregate, atomically.
        """
        serializer = InboundSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        v = serializer.validated_data

        result = self.inventory.record_inbound(
            product_id=v["product_id"],
            quantity=v["quantity"],
            unit_cost=v["unit_cost"],
            purchase_date=v.get("purchase_date"),
            supplier_id=v.get("supplier_id"),
            expiry_date=v.get("expiry_date"),
            note=v.get("note"),
        )
        return Response(InboundResultSerializer(result).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["inventory"], request=BatchDetailsSerializer, responses=BatchSerializer)
    def partial_update(self, request, pk=None):
        serializer = BatchDetailsSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        batch = self.inventory.update_batch_details(batch_id=pk, **serializer.validated_data)
        return Response(BatchSerializer(batch).data)

    @extend_schema(tags=["inventory"], request=None, responses={405: OpenApiTypes.OBJECT})
    def update(self, request, pk=None):
        return Response(
            {
                "detail": (
                    "PUT is not allowed for batches. "
                    "Use PATCH for metadata only (expiry_date, supplier_id). "
                    "Quantity changes must go through actions: adjust/expire."
                )
            },
            status=status.HTTP_405_METHOD_NOT_ALLOWED,
        )

    @extend_schema(tags=["inventory"], responses={204: None})
    def destroy(self, request, pk=None):
        self.inventory.delete_batch(batch_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # -------------------------------------------------
    # ACTIONS
    # -------------------------------------------------
    @extend_schema(
        tags=["inventory"],
        request=AdjustmentSerializer,
        responses=AdjustmentResultSerializer,
    )
    @action(detail=True, methods=["post"], url_path="adjust")
    def adjust(self, request, pk=None):
        serializer = AdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        v = serializer.validated_data

        result = self.inventory.record_adjustment(
            batch_id=pk,
            quantity_delta=v["quantity_delta"],
            note=v.get("note"),
        )
        return Response(AdjustmentResultSerializer(result).data)

    @extend_schema(
        tags=["inventory"],
        request=ExpireSerializer,
        responses=AdjustmentResultSerializer,
        description="Writes off the remaining stock. An already empty batch is returned unchanged.",
    )
    @action(detail=True, methods=["post"], url_path="expire")
    def expire(self, request, pk=None):
        serializer = ExpireSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.inventory.expire_batch(batch_id=pk, note=serializer.validated_data.get("note"))
        if result is None:
            # already empty: nothing written
            return Response({"batch": BatchSerializer(self.inventory.get_batch(pk)).data})
        return Response(AdjustmentResultSerializer(result).data)

    @extend_schema(tags=["inventory"], responses=BatchMovementSerializer(many=True))
    @action(detail=True, methods=["get"], url_path="movements")
    def movements(self, request, pk=None):
        rows = self.inventory.list_batch_movements(pk)
        return Response(BatchMovementSerializer(rows, many=True).data)

    @extend_schema(
        tags=["inventory"],
        parameters=[
            OpenApiParameter(
                name="days",
                type=OpenApiTypes.INT,
                required=False,
                description="Alert window in days. Defaults to INVENTORY_EXPIRY_ALERT_DAYS.",
            )
        ],
        responses=ExpiringBatchesSerializer,
    )
    @action(detail=False, methods=["get"], url_path="alerts/expiring-soon")
    def expiring_soon(self, request):
        days = _int_param(request, "days", settings.INVENTORY_EXPIRY_ALERT_DAYS)
        batches = self.inventory.list_expiring_batches(days)
        return Response({"days": days, "results": BatchSerializer(batches, many=True).data})


# =====================================================
# PRODUCT-LEVEL OPERATIONS
# =====================================================

class ProductInventoryViewSet(InventoryServiceMixin, viewsets.GenericViewSet):
    """
    - POST /products/{id}/outbound/    -> FIFO consumption
    - GET  /products/{id}/valuation/
    - GET  /products/{id}/movements/
    - GET  /products/{id}/batches/     -> active batches, FIFO order
    - GET  /products/low-stock/
    - GET  /products/valuation/        -> whole inventory
    """

    serializer_class = ProductStockSerializer
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["inventory"],
        request=OutboundSerializer,
        responses={201: ConsumptionResultSerializer},
    )
    @action(detail=True, methods=["post"], url_path="outbound")
    def outbound(self, request, pk=None):
        serializer = OutboundSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        v = serializer.validated_data

        result = self.inventory.record_outbound(product_id=pk, quantity=v["quantity"], note=v.get("note"))
        return Response(ConsumptionResultSerializer(result).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["inventory"], responses=ProductValuationSerializer)
    @action(detail=True, methods=["get"], url_path="valuation")
    def valuation(self, request, pk=None):
        return Response(ProductValuationSerializer(self.inventory.get_valuation(pk)).data)

    @extend_schema(tags=["inventory"], responses=ProductMovementSerializer(many=True))
    @action(detail=True, methods=["get"], url_path="movements")
    def movements(self, request, pk=None):
        self.inventory.get_product(pk)
        rows = self.inventory.list_movements(pk)
        return Response(ProductMovementSerializer(rows, many=True).data)

    @extend_schema(tags=["inventory"], responses=BatchSerializer(many=True))
    @action(detail=True, methods=["get"], url_path="batches")
    def batches(self, request, pk=None):
        return Response(BatchSerializer(self.inventory.list_active_batches(pk), many=True).data)

    @extend_schema(tags=["inventory"], responses=ProductStockSerializer(many=True))
    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request):
        return Response(ProductStockSerializer(self.inventory.list_low_stock_products(), many=True).data)

    @extend_schema(tags=["inventory"], responses=InventoryValuationSerializer)
    @action(detail=False, methods=["get"], url_path="valuation")
    def inventory_valuation(self, request):
        return Response(InventoryValuationSerializer(self.inventory.get_inventory_valuation()).data)


# =====================================================
# MOVEMENT HISTORY (FILTERABLE)
# =====================================================

class ProductMovementViewSet(viewsets.ReadOnlyModelViewSet):
    """
    GET /movements/?product=&kind=&created_after=&created_before=

    Newest first. Read-only: the ledger is append-only.
    """

    serializer_class = ProductMovementSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = ProductMovementFilter

    def get_queryset(self):
        return ProductMovement.objects.select_related("product").order_by("-created_at", "-id")
