# inventory/api/filters.py

import django_filters

from inventory.models import MovementKind, ProductMovement


class ProductMovementFilter(django_filters.FilterSet):
    product = django_filters.UUIDFilter(field_name="product_id")
    kind = django_filters.ChoiceFilter(choices=MovementKind.choices)
    created_after = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    created_before = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lte")

    class Meta:
        model = ProductMovement
        fields = ["product", "kind", "created_after", "created_before"]
