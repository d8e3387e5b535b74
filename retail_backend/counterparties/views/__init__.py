from .party import CustomerViewSet, SupplierViewSet
from .money_box import MoneyBoxViewSet

__all__ = ["CustomerViewSet", "SupplierViewSet", "MoneyBoxViewSet"]
