# products/filters.py

import django_filters
from django.db.models import F, Q

from products.models import Product, StockMovement


class StockMovementFilter(django_filters.FilterSet):
    """
    ?movement_type=&product_id=&from_stock_id=&to_stock_id=&stock_id=
    &reference_type=&reference_id=&date_from=&date_to=
    """

    movement_type = django_filters.ChoiceFilter(choices=StockMovement.MovementType.choices)
    product_id = django_filters.UUIDFilter(field_name="product_id")
    from_stock_id = django_filters.UUIDFilter(field_name="from_stock_id")
    to_stock_id = django_filters.UUIDFilter(field_name="to_stock_id")
    stock_id = django_filters.UUIDFilter(method="filter_any_side")
    reference_type = django_filters.CharFilter(field_name="reference_type")
    reference_id = django_filters.CharFilter(field_name="reference_id")
    date_from = django_filters.DateFilter(field_name="movement_date", lookup_expr="date__gte")
    date_to = django_filters.DateFilter(field_name="movement_date", lookup_expr="date__lte")

    class Meta:
        model = StockMovement
        fields = []

    def filter_any_side(self, queryset, name, value):
        return queryset.filter(Q(from_stock_id=value) | Q(to_stock_id=value))


class ProductFilter(django_filters.FilterSet):
    q = django_filters.CharFilter(method="filter_search")
    stock_id = django_filters.UUIDFilter(field_name="stock_id")
    is_active = django_filters.BooleanFilter(field_name="is_active")
    low_stock = django_filters.BooleanFilter(method="filter_low_stock")

    class Meta:
        model = Product
        fields = []

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) | Q(sku__icontains=value) | Q(barcode__icontains=value)
        )

    def filter_low_stock(self, queryset, name, value):
        if value:
            return queryset.filter(current_stock__lte=F("min_stock"))
        return queryset.filter(current_stock__gt=F("min_stock"))
