# products/serializers/stock_movement.py

"""
STOCK MOVEMENT SERIALIZERS

Read: flat shape with product / location names for listing screens.
Create: request body of POST /api/stock-movements/ (ids, not nested objects).
"""

from rest_framework import serializers

from products.models import StockMovement


class StockMovementSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)
    from_stock_id = serializers.UUIDField(read_only=True, allow_null=True)
    from_stock_name = serializers.CharField(source="from_stock.name", read_only=True, default=None)
    to_stock_id = serializers.UUIDField(read_only=True, allow_null=True)
    to_stock_name = serializers.CharField(source="to_stock.name", read_only=True, default=None)
    reversal_of_id = serializers.UUIDField(read_only=True, allow_null=True)
    created_by_username = serializers.CharField(source="created_by.get_username", read_only=True, default=None)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "movement_type",
            "product_id",
            "product_name",
            "from_stock_id",
            "from_stock_name",
            "to_stock_id",
            "to_stock_name",
            "quantity",
            "unit_cost",
            "total_value",
            "reference_type",
            "reference_id",
            "reference_number",
            "reversal_of_id",
            "movement_date",
            "notes",
            "created_by_username",
            "created_at",
        ]
        read_only_fields = fields


class StockMovementCreateSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    movement_type = serializers.ChoiceField(choices=StockMovement.MovementType.choices)
    from_stock_id = serializers.UUIDField(required=False, allow_null=True)
    to_stock_id = serializers.UUIDField(required=False, allow_null=True)
    quantity = serializers.IntegerField()
    unit_cost = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False, allow_null=True)
    total_value = serializers.DecimalField(max_digits=16, decimal_places=2, min_value=0, required=False, allow_null=True)
    reference_type = serializers.ChoiceField(
        choices=StockMovement.ReferenceType.choices, required=False, allow_null=True
    )
    reference_id = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)
    reference_number = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    movement_date = serializers.DateTimeField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    allow_negative = serializers.BooleanField(required=False, default=False)

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("Quantity must be greater than 0")
        return value

    def validate(self, attrs):
        if not attrs.get("from_stock_id") and not attrs.get("to_stock_id"):
            raise serializers.ValidationError("At least one stock (from or to) is required")
        return attrs


class StockMovementReverseSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")
