# counterparties/views/party.py

"""
CUSTOMER / SUPPLIER VIEWSETS

Master data only. Balances move exclusively through bills and payments;
parties are deactivated rather than deleted since bills reference them.
"""

from django.db.models import Q
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import mixins, viewsets
from rest_framework.permissions import IsAuthenticated

from common.exceptions import NotFoundError
from common.responses import created_response, success_response
from counterparties.models import Customer, Supplier
from counterparties.serializers import CustomerSerializer, SupplierSerializer

UUID_REGEX = "[0-9a-fA-F-]{32,36}"

SEARCH_PARAMS = [
    OpenApiParameter(name="q", type=str, location=OpenApiParameter.QUERY, required=False),
    OpenApiParameter(name="is_active", type=bool, location=OpenApiParameter.QUERY, required=False),
    OpenApiParameter(name="with_balance", type=bool, location=OpenApiParameter.QUERY, required=False,
                     description="Only parties with a non-zero balance."),
]


class _PartyViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated]
    lookup_value_regex = UUID_REGEX
    label = "Party"

    def get_queryset(self):
        qs = self.model.objects.all().order_by("name")
        params = self.request.query_params

        q = (params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(name__icontains=q) | Q(phone__icontains=q) | Q(email__icontains=q))

        active = (params.get("is_active") or "").strip().lower()
        if active in ("true", "1"):
            qs = qs.filter(is_active=True)
        elif active in ("false", "0"):
            qs = qs.filter(is_active=False)

        if (params.get("with_balance") or "").strip().lower() in ("true", "1"):
            qs = qs.exclude(current_balance=0)
        return qs

    def _get(self, pk):
        obj = self.model.objects.filter(id=pk).first()
        if obj is None:
            raise NotFoundError(f"{self.label} not found", errors={"id": str(pk)})
        return obj

    def retrieve(self, request, pk=None):
        return success_response(self.get_serializer(self._get(pk)).data)

    def create(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        obj = serializer.save()
        return created_response(self.get_serializer(obj).data, message=f"{self.label} created successfully")

    def partial_update(self, request, pk=None):
        serializer = self.get_serializer(self._get(pk), data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        obj = serializer.save()
        return success_response(self.get_serializer(obj).data, message=f"{self.label} updated successfully")


@extend_schema(tags=["Customers"], parameters=SEARCH_PARAMS)
class CustomerViewSet(_PartyViewSet):
    model = Customer
    serializer_class = CustomerSerializer
    label = "Customer"


@extend_schema(tags=["Suppliers"], parameters=SEARCH_PARAMS)
class SupplierViewSet(_PartyViewSet):
    model = Supplier
    serializer_class = SupplierSerializer
    label = "Supplier"
