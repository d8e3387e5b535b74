# counterparties/serializers/money_box.py

from decimal import Decimal

from rest_framework import serializers

from counterparties.models import MoneyBox, MoneyBoxTransaction


class MoneyBoxSerializer(serializers.ModelSerializer):
    class Meta:
        model = MoneyBox
        fields = ["id", "name", "balance", "is_active", "notes", "created_at", "updated_at"]
        read_only_fields = ["id", "balance", "created_at", "updated_at"]


class MoneyBoxTransactionSerializer(serializers.ModelSerializer):
    money_box_id = serializers.UUIDField(read_only=True)
    created_by = serializers.CharField(source="created_by.username", read_only=True, default=None)

    class Meta:
        model = MoneyBoxTransaction
        fields = [
            "id",
            "money_box_id",
            "transaction_type",
            "amount",
            "balance_after",
            "reference_type",
            "reference_id",
            "notes",
            "created_by",
            "created_at",
        ]
        read_only_fields = fields


class MoneyBoxCashSerializer(serializers.Serializer):
    """
    Manual deposit / withdrawal (opening float, bank drop, petty cash).
    """

    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0.01"))
    notes = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
