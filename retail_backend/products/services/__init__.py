from .stock_ledger import Drift, StockLedger

__all__ = [
    "Drift",
    "StockLedger",
]
