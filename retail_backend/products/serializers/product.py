# products/serializers/product.py

"""
PRODUCT SERIALIZERS

- ProductSerializer: read shape (quantities come from the ledger projection).
- ProductWriteSerializer: input validation for create / partial update.
  Quantities and the assigned location are NOT writable here; the only
  quantity input is initial_quantity on create, which becomes an `initial`
  ledger movement.
"""

from rest_framework import serializers

from products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    stock_id = serializers.UUIDField(read_only=True, allow_null=True)
    stock_name = serializers.CharField(source="stock.name", read_only=True, default=None)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "sku",
            "barcode",
            "unit",
            "units_per_box",
            "purchase_price",
            "selling_price",
            "current_stock",
            "unlocated_stock",
            "stock_id",
            "stock_name",
            "min_stock",
            "is_low_stock",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProductWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    sku = serializers.CharField(max_length=128, required=False, allow_blank=True, allow_null=True)
    barcode = serializers.CharField(max_length=128, required=False, allow_blank=True, allow_null=True)
    unit = serializers.CharField(max_length=32, required=False)
    units_per_box = serializers.IntegerField(min_value=1, required=False)
    purchase_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)
    selling_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)
    min_stock = serializers.IntegerField(min_value=0, required=False)
    is_active = serializers.BooleanField(required=False)

    # create only
    initial_quantity = serializers.IntegerField(min_value=0, required=False)
    stock_id = serializers.UUIDField(required=False, allow_null=True)

    def validate_sku(self, value):
        return (value or "").strip().upper() or None

    def validate(self, attrs):
        creating = self.instance is None
        if creating and not (attrs.get("name") or "").strip():
            raise serializers.ValidationError({"name": "Product name is required"})
        if not creating and ("initial_quantity" in attrs or "stock_id" in attrs):
            raise serializers.ValidationError(
                "Quantities and location change only through stock movements"
            )
        return attrs
