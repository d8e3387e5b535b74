# bills/filters.py

import django_filters
from django.db.models import Q

from bills.models import Bill


class BillFilter(django_filters.FilterSet):
    """
    ?customer_id=&supplier_id=&payment_status=&status=&date_from=&date_to=&q=
    """

    customer_id = django_filters.UUIDFilter(field_name="customer_id")
    supplier_id = django_filters.UUIDFilter(field_name="supplier_id")
    original_bill_id = django_filters.UUIDFilter(field_name="original_bill_id")
    payment_status = django_filters.ChoiceFilter(choices=Bill.PaymentStatus.choices)
    status = django_filters.ChoiceFilter(choices=Bill.Status.choices)
    date_from = django_filters.DateFilter(field_name="invoice_date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="invoice_date", lookup_expr="lte")
    q = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = Bill
        fields = []

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(number__icontains=value)
            | Q(customer__name__icontains=value)
            | Q(supplier__name__icontains=value)
        )
