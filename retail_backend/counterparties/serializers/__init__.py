from .party import CustomerSerializer, SupplierSerializer
from .money_box import (
    MoneyBoxCashSerializer,
    MoneyBoxSerializer,
    MoneyBoxTransactionSerializer,
)

__all__ = [
    "CustomerSerializer",
    "SupplierSerializer",
    "MoneyBoxSerializer",
    "MoneyBoxTransactionSerializer",
    "MoneyBoxCashSerializer",
]
