# stocks/serializers/__init__.py

from .stock import StockSerializer, StockWriteSerializer

__all__ = ["StockSerializer", "StockWriteSerializer"]
