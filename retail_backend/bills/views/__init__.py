from .bill import (
    BillCollectionView,
    BillDetailView,
    BillPaymentView,
    BillStatsView,
    BillVoucherView,
)

__all__ = [
    "BillCollectionView",
    "BillDetailView",
    "BillPaymentView",
    "BillStatsView",
    "BillVoucherView",
]
