# stocks/serializers/stock.py

from rest_framework import serializers

from stocks.models import Stock


class StockSerializer(serializers.ModelSerializer):
    available_capacity = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Stock
        fields = [
            "id",
            "code",
            "name",
            "address",
            "manager_name",
            "phone",
            "email",
            "capacity",
            "current_capacity_used",
            "available_capacity",
            "is_main",
            "is_active",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class StockWriteSerializer(serializers.Serializer):
    """
    Input for create / partial update. Uniqueness and the main-location rule
    are enforced by stocks.services.stock_service.
    """

    code = serializers.CharField(max_length=50, required=False)
    name = serializers.CharField(max_length=255, required=False)
    address = serializers.CharField(required=False)
    manager_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    capacity = serializers.IntegerField(min_value=0, required=False)
    is_main = serializers.BooleanField(required=False)
    is_active = serializers.BooleanField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_code(self, value):
        return (value or "").strip().upper()
