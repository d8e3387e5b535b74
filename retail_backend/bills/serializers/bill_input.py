# bills/serializers/bill_input.py

"""
BILL REQUEST SERIALIZERS

Wire shape (camelCase envelope kept for client compatibility):

    POST /api/bills/sale/
        {"billData": {...}, "items": [...], "moneyBoxId": "...", "createVoucher": true}
    POST /api/bills/return/
        {"returnData": {...}, "items": [{"original_item_id", "quantity"}], "moneyBoxId": "..."}

Shape and range checks only; business rules (stock, counterparty state,
return limits, overpayment) are enforced by the orchestrator.
"""

from rest_framework import serializers

from bills.models import Bill


class _BillDataSerializer(serializers.Serializer):
    number = serializers.CharField(max_length=64, required=False, allow_blank=True)
    invoice_date = serializers.DateField(required=False, allow_null=True)
    due_date = serializers.DateField(required=False, allow_null=True)
    discount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False, default=0)
    discount_type = serializers.ChoiceField(
        choices=Bill.DiscountType.choices, required=False, default=Bill.DiscountType.FIXED
    )
    tax_rate = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False, default=0)
    paid_amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False, default=0)
    payment_method = serializers.ChoiceField(choices=Bill.PaymentMethod.choices, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class SaleBillDataSerializer(_BillDataSerializer):
    customer_id = serializers.UUIDField()


class PurchaseBillDataSerializer(_BillDataSerializer):
    supplier_id = serializers.UUIDField()


class BillItemInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    discount = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False, default=0)
    tax = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False, default=0)
    stock_id = serializers.UUIDField(required=False, allow_null=True)


class _BillCreateSerializer(serializers.Serializer):
    items = BillItemInputSerializer(many=True, allow_empty=False)
    moneyBoxId = serializers.UUIDField(required=False, allow_null=True)
    createVoucher = serializers.BooleanField(required=False, default=False)


class SaleBillCreateSerializer(_BillCreateSerializer):
    billData = SaleBillDataSerializer()


class PurchaseBillCreateSerializer(_BillCreateSerializer):
    billData = PurchaseBillDataSerializer()


class ReturnDataSerializer(serializers.Serializer):
    original_bill_id = serializers.UUIDField()
    number = serializers.CharField(max_length=64, required=False, allow_blank=True)
    return_date = serializers.DateField(required=False, allow_null=True)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    paid_amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False, default=0)
    payment_method = serializers.ChoiceField(choices=Bill.PaymentMethod.choices, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ReturnItemInputSerializer(serializers.Serializer):
    original_item_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class ReturnBillCreateSerializer(serializers.Serializer):
    returnData = ReturnDataSerializer()
    items = ReturnItemInputSerializer(many=True, allow_empty=False)
    moneyBoxId = serializers.UUIDField(required=False, allow_null=True)
    createVoucher = serializers.BooleanField(required=False, default=False)


class PaymentUpdateSerializer(serializers.Serializer):
    paid_amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    payment_method = serializers.ChoiceField(choices=Bill.PaymentMethod.choices, required=False, allow_blank=True)
    moneyBoxId = serializers.UUIDField(required=False, allow_null=True)
    createVoucher = serializers.BooleanField(required=False, default=False)


class VoucherCreateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False, allow_null=True)
    payment_method = serializers.ChoiceField(choices=Bill.PaymentMethod.choices, required=False, allow_blank=True)
