# counterparties/views/money_box.py

"""
MONEY BOX VIEWSET

- CRUD-lite for cash boxes (balance is read-only)
- GET  /money-boxes/<id>/transactions/
- POST /money-boxes/<id>/deposit/   {amount, notes}
- POST /money-boxes/<id>/withdraw/  {amount, notes}   (admin only)
"""

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser, IsAuthenticated

from common.exceptions import NotFoundError
from common.responses import created_response, success_response
from counterparties.models import MoneyBox, MoneyBoxTransaction
from counterparties.serializers import (
    MoneyBoxCashSerializer,
    MoneyBoxSerializer,
    MoneyBoxTransactionSerializer,
)
from counterparties.services import CounterpartyLedgers

UUID_REGEX = "[0-9a-fA-F-]{32,36}"


@extend_schema(tags=["Money Boxes"])
class MoneyBoxViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    queryset = MoneyBox.objects.all().order_by("name")
    serializer_class = MoneyBoxSerializer
    permission_classes = [IsAuthenticated]
    lookup_value_regex = UUID_REGEX

    def get_permissions(self):
        if self.action == "withdraw":
            return [IsAdminUser()]
        return super().get_permissions()

    def _get(self, pk) -> MoneyBox:
        box = MoneyBox.objects.filter(id=pk).first()
        if box is None:
            raise NotFoundError("Money box not found", errors={"id": str(pk)})
        return box

    def retrieve(self, request, pk=None):
        return success_response(MoneyBoxSerializer(self._get(pk)).data)

    def create(self, request):
        serializer = MoneyBoxSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        box = serializer.save()
        return created_response(MoneyBoxSerializer(box).data, message="Money box created successfully")

    def partial_update(self, request, pk=None):
        serializer = MoneyBoxSerializer(self._get(pk), data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        box = serializer.save()
        return success_response(MoneyBoxSerializer(box).data, message="Money box updated successfully")

    @extend_schema(responses={200: MoneyBoxTransactionSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="transactions")
    def transactions(self, request, pk=None):
        box = self._get(pk)
        qs = MoneyBoxTransaction.objects.filter(money_box=box).select_related("created_by").order_by("-created_at")

        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(MoneyBoxTransactionSerializer(page, many=True).data)
        return success_response(MoneyBoxTransactionSerializer(qs, many=True).data)

    def _cash(self, request, pk, transaction_type):
        box = self._get(pk)
        serializer = MoneyBoxCashSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        tx = CounterpartyLedgers().record_cash(
            box,
            transaction_type=transaction_type,
            amount=serializer.validated_data["amount"],
            reference_type="manual",
            notes=serializer.validated_data.get("notes", ""),
            user=request.user,
        )
        return created_response(
            MoneyBoxTransactionSerializer(tx).data,
            message="Money box transaction recorded",
        )

    @extend_schema(request=MoneyBoxCashSerializer, responses={201: MoneyBoxTransactionSerializer})
    @action(detail=True, methods=["post"], url_path="deposit")
    def deposit(self, request, pk=None):
        return self._cash(request, pk, MoneyBoxTransaction.TransactionType.DEPOSIT)

    @extend_schema(
        request=MoneyBoxCashSerializer,
        responses={201: MoneyBoxTransactionSerializer, 409: OpenApiResponse(description="Insufficient funds")},
    )
    @action(detail=True, methods=["post"], url_path="withdraw")
    def withdraw(self, request, pk=None):
        return self._cash(request, pk, MoneyBoxTransaction.TransactionType.WITHDRAWAL)
