# stocks/views/__init__.py

from .stock import StockViewSet

__all__ = ["StockViewSet"]
