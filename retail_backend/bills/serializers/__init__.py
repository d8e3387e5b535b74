from .bill import BillItemSerializer, BillListSerializer, BillSerializer, PaymentVoucherSerializer
from .bill_input import (
    PaymentUpdateSerializer,
    PurchaseBillCreateSerializer,
    ReturnBillCreateSerializer,
    SaleBillCreateSerializer,
    VoucherCreateSerializer,
)

__all__ = [
    "BillSerializer",
    "BillListSerializer",
    "BillItemSerializer",
    "PaymentVoucherSerializer",
    "SaleBillCreateSerializer",
    "PurchaseBillCreateSerializer",
    "ReturnBillCreateSerializer",
    "PaymentUpdateSerializer",
    "VoucherCreateSerializer",
]
