# counterparties/models/__init__.py

from .money_box import MoneyBox, MoneyBoxTransaction
from .party import Customer, Supplier

__all__ = [
    "Customer",
    "Supplier",
    "MoneyBox",
    "MoneyBoxTransaction",
]
