from .bill import Bill
from .bill_item import BillItem
from .payment_voucher import PaymentVoucher

__all__ = ["Bill", "BillItem", "PaymentVoucher"]
