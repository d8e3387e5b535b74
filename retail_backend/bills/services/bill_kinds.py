# bills/services/bill_kinds.py

"""
BILL KIND STRATEGIES

A bill is one shape; what differs per kind is captured here:
- which ledger movement it writes and in which direction
- which counterparty balance it moves, and with which sign
- which way the paid amount moves cash
- the number prefix and the default payment method

Returns are resolved through their original bill: a return of a sale is a
"sale_return" (goods come back in, cash goes out), a return of a purchase
is a "purchase_return" (goods go out, cash comes in).

Operation -> data types is a fixed table read at each orchestrator call
site; the router is notified once per committed operation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from caching.router import DataType
from counterparties.models import MoneyBoxTransaction
from products.models import StockMovement

from bills.models import Bill, PaymentVoucher

MT = StockMovement.MovementType
RT = StockMovement.ReferenceType
TT = MoneyBoxTransaction.TransactionType

IN = "in"
OUT = "out"


class BillKind(str, Enum):
    SALE = "sale"
    PURCHASE = "purchase"
    SALE_RETURN = "sale_return"
    PURCHASE_RETURN = "purchase_return"


@dataclass(frozen=True)
class BillKindStrategy:
    kind: BillKind
    bill_kind: str
    movement_type: str
    direction: str
    reference_type: str
    counterparty: str
    # +1: the remaining amount is added to the counterparty balance
    balance_sign: int
    cash_direction: str
    voucher_type: str
    number_prefix: str
    default_payment_method: str
    requires_positive_price: bool = True

    @property
    def reverse_cash_direction(self) -> str:
        return TT.WITHDRAWAL if self.cash_direction == TT.DEPOSIT else TT.DEPOSIT

    def locations(self, stock) -> dict:
        """from_stock / to_stock kwargs for one line moving through `stock`."""
        if self.direction == OUT:
            return {"from_stock": stock, "to_stock": None}
        return {"from_stock": None, "to_stock": stock}


STRATEGIES: dict[BillKind, BillKindStrategy] = {
    BillKind.SALE: BillKindStrategy(
        kind=BillKind.SALE,
        bill_kind=Bill.Kind.SALE,
        movement_type=MT.SALE,
        direction=OUT,
        reference_type=RT.SALE,
        counterparty="customer",
        balance_sign=1,
        cash_direction=TT.DEPOSIT,
        voucher_type=PaymentVoucher.VoucherType.RECEIPT,
        number_prefix="SALE",
        default_payment_method=Bill.PaymentMethod.CASH,
    ),
    BillKind.PURCHASE: BillKindStrategy(
        kind=BillKind.PURCHASE,
        bill_kind=Bill.Kind.PURCHASE,
        movement_type=MT.PURCHASE,
        direction=IN,
        reference_type=RT.PURCHASE,
        counterparty="supplier",
        balance_sign=1,
        cash_direction=TT.WITHDRAWAL,
        voucher_type=PaymentVoucher.VoucherType.PAYMENT,
        number_prefix="PUR",
        default_payment_method=Bill.PaymentMethod.CASH,
    ),
    BillKind.SALE_RETURN: BillKindStrategy(
        kind=BillKind.SALE_RETURN,
        bill_kind=Bill.Kind.RETURN,
        movement_type=MT.RETURN,
        direction=IN,
        reference_type=RT.SALE_RETURN,
        counterparty="customer",
        balance_sign=-1,
        cash_direction=TT.WITHDRAWAL,
        voucher_type=PaymentVoucher.VoucherType.PAYMENT,
        number_prefix="SRET",
        default_payment_method=Bill.PaymentMethod.CASH,
        requires_positive_price=False,
    ),
    BillKind.PURCHASE_RETURN: BillKindStrategy(
        kind=BillKind.PURCHASE_RETURN,
        bill_kind=Bill.Kind.RETURN,
        movement_type=MT.RETURN,
        direction=OUT,
        reference_type=RT.PURCHASE_RETURN,
        counterparty="supplier",
        balance_sign=-1,
        cash_direction=TT.DEPOSIT,
        voucher_type=PaymentVoucher.VoucherType.RECEIPT,
        number_prefix="PRET",
        default_payment_method=Bill.PaymentMethod.CASH,
        requires_positive_price=False,
    ),
}


def strategy_for(bill: Bill) -> BillKindStrategy:
    if bill.kind == Bill.Kind.SALE:
        return STRATEGIES[BillKind.SALE]
    if bill.kind == Bill.Kind.PURCHASE:
        return STRATEGIES[BillKind.PURCHASE]
    if bill.original_bill.kind == Bill.Kind.SALE:
        return STRATEGIES[BillKind.SALE_RETURN]
    return STRATEGIES[BillKind.PURCHASE_RETURN]


def return_strategy_for(original: Bill) -> BillKindStrategy:
    if original.kind == Bill.Kind.SALE:
        return STRATEGIES[BillKind.SALE_RETURN]
    return STRATEGIES[BillKind.PURCHASE_RETURN]


class Operation(str, Enum):
    CREATE_SALE = "create_sale"
    CREATE_PURCHASE = "create_purchase"
    CREATE_RETURN = "create_return"
    UPDATE_PAYMENT = "update_payment"
    DELETE_BILL = "delete_bill"
    CREATE_VOUCHER = "create_voucher"


_STOCK_TYPES = (DataType.INVENTORY, DataType.STOCKS, DataType.STOCK_MOVEMENTS)

OPERATION_DATA_TYPES: dict[Operation, tuple[DataType, ...]] = {
    Operation.CREATE_SALE: (
        DataType.BILLS,
        DataType.SALES,
        *_STOCK_TYPES,
        DataType.CUSTOMERS,
        DataType.DEBTS,
        DataType.CASH_BOX,
        DataType.PAYMENT_VOUCHERS,
        DataType.REPORTS,
    ),
    Operation.CREATE_PURCHASE: (
        DataType.BILLS,
        DataType.PURCHASES,
        *_STOCK_TYPES,
        DataType.SUPPLIERS,
        DataType.CASH_BOX,
        DataType.PAYMENT_VOUCHERS,
        DataType.REPORTS,
    ),
    Operation.CREATE_RETURN: (
        DataType.BILLS,
        DataType.RETURNS,
        DataType.SALES,
        DataType.PURCHASES,
        *_STOCK_TYPES,
        DataType.CUSTOMERS,
        DataType.SUPPLIERS,
        DataType.DEBTS,
        DataType.CASH_BOX,
        DataType.PAYMENT_VOUCHERS,
        DataType.REPORTS,
    ),
    Operation.UPDATE_PAYMENT: (
        DataType.BILLS,
        DataType.SALES,
        DataType.PURCHASES,
        DataType.RETURNS,
        DataType.CUSTOMERS,
        DataType.SUPPLIERS,
        DataType.DEBTS,
        DataType.CASH_BOX,
        DataType.PAYMENT_VOUCHERS,
        DataType.REPORTS,
    ),
    Operation.DELETE_BILL: (
        DataType.BILLS,
        DataType.SALES,
        DataType.PURCHASES,
        DataType.RETURNS,
        *_STOCK_TYPES,
        DataType.CUSTOMERS,
        DataType.SUPPLIERS,
        DataType.DEBTS,
        DataType.CASH_BOX,
        DataType.PAYMENT_VOUCHERS,
        DataType.REPORTS,
    ),
    Operation.CREATE_VOUCHER: (
        DataType.BILLS,
        DataType.PAYMENT_VOUCHERS,
        DataType.CASH_BOX,
    ),
}
