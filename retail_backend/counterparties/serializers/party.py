# counterparties/serializers/party.py

from rest_framework import serializers

from counterparties.models import Customer, Supplier

PARTY_FIELDS = [
    "id",
    "name",
    "phone",
    "email",
    "address",
    "current_balance",
    "is_active",
    "notes",
    "created_at",
    "updated_at",
]


class _PartySerializer(serializers.ModelSerializer):
    """
    current_balance is owned by the billing flow and never writable here.
    """

    def validate_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        return value


class CustomerSerializer(_PartySerializer):
    class Meta:
        model = Customer
        fields = PARTY_FIELDS
        read_only_fields = ["id", "current_balance", "created_at", "updated_at"]


class SupplierSerializer(_PartySerializer):
    class Meta:
        model = Supplier
        fields = PARTY_FIELDS
        read_only_fields = ["id", "current_balance", "created_at", "updated_at"]
