# bills/serializers/bill.py

"""
BILL READ SERIALIZERS

Every money field is computed by the orchestrator; these are read-only.
"""

from django.db.models import Sum
from rest_framework import serializers

from bills.models import Bill, BillItem, PaymentVoucher


class BillItemSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)
    stock_id = serializers.UUIDField(read_only=True, allow_null=True)
    original_item_id = serializers.UUIDField(read_only=True, allow_null=True)
    returned_quantity = serializers.SerializerMethodField()

    class Meta:
        model = BillItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "stock_id",
            "quantity",
            "price",
            "discount_percent",
            "tax_percent",
            "line_subtotal",
            "line_discount",
            "line_tax",
            "line_total",
            "original_item_id",
            "returned_quantity",
        ]
        read_only_fields = fields

    def get_returned_quantity(self, obj) -> int:
        total = (
            obj.return_items.exclude(bill__status=Bill.Status.CANCELLED)
            .aggregate(total=Sum("quantity"))
            .get("total")
        )
        return int(total or 0)


class PaymentVoucherSerializer(serializers.ModelSerializer):
    bill_id = serializers.UUIDField(read_only=True, allow_null=True)
    money_box_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = PaymentVoucher
        fields = [
            "id",
            "bill_id",
            "bill_number",
            "voucher_type",
            "amount",
            "payment_method",
            "money_box_id",
            "created_at",
        ]
        read_only_fields = fields


class BillListSerializer(serializers.ModelSerializer):
    customer_id = serializers.UUIDField(read_only=True, allow_null=True)
    customer_name = serializers.CharField(source="customer.name", read_only=True, default=None)
    supplier_id = serializers.UUIDField(read_only=True, allow_null=True)
    supplier_name = serializers.CharField(source="supplier.name", read_only=True, default=None)
    original_bill_id = serializers.UUIDField(read_only=True, allow_null=True)
    money_box_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Bill
        fields = [
            "id",
            "kind",
            "number",
            "customer_id",
            "customer_name",
            "supplier_id",
            "supplier_name",
            "original_bill_id",
            "invoice_date",
            "due_date",
            "discount_type",
            "discount",
            "tax_rate",
            "subtotal",
            "discount_amount",
            "tax_amount",
            "net_amount",
            "paid_amount",
            "remaining_amount",
            "payment_method",
            "payment_status",
            "status",
            "money_box_id",
            "reason",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BillSerializer(BillListSerializer):
    items = BillItemSerializer(many=True, read_only=True)
    vouchers = PaymentVoucherSerializer(many=True, read_only=True)
    return_ids = serializers.SerializerMethodField()

    class Meta(BillListSerializer.Meta):
        fields = BillListSerializer.Meta.fields + ["items", "vouchers", "return_ids"]
        read_only_fields = fields

    def get_return_ids(self, obj) -> list[str]:
        return [str(pk) for pk in obj.returns.values_list("id", flat=True)]
