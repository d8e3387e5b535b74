# bills/services/exceptions.py

"""
BILLING ERRORS

Raised by bills.services.billing_orchestrator, mapped onto common.exceptions.
"""

from __future__ import annotations

from common.exceptions import ConflictError, ConstraintError, NotFoundError, ValidationError


class BillNotFound(NotFoundError):
    default_message = "Bill not found"


class DuplicateBillNumber(ConflictError):
    code = "duplicate_number"
    default_message = "Bill number already exists"


class EmptyBillError(ValidationError):
    code = "empty_bill"
    default_message = "At least one item is required"


class OverpaymentError(ValidationError):
    code = "overpayment"

    def __init__(self, *, paid, net):
        super().__init__(
            f"Paid amount cannot exceed the net amount. Net: {net}, Paid: {paid}",
            errors={"paid_amount": str(paid), "net_amount": str(net)},
        )


class ReturnQuantityExceeded(ConflictError):
    code = "return_quantity_exceeded"

    def __init__(self, *, product_name: str, available: int, requested: int, original_item_id=None):
        self.available = int(available)
        self.requested = int(requested)
        super().__init__(
            f"Return quantity for {product_name} exceeds the returnable quantity. "
            f"Available: {self.available}, Requested: {self.requested}",
            errors={
                "available": self.available,
                "requested": self.requested,
                "original_item_id": str(original_item_id) if original_item_id else None,
            },
        )


class BillHasReturns(ConstraintError):
    code = "bill_has_returns"
    default_message = "Cannot delete a bill that has returns"
