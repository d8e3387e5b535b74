# products/serializers/__init__.py

from .product import ProductSerializer, ProductWriteSerializer
from .stock_movement import (
    StockMovementCreateSerializer,
    StockMovementReverseSerializer,
    StockMovementSerializer,
)

__all__ = [
    "ProductSerializer",
    "ProductWriteSerializer",
    "StockMovementSerializer",
    "StockMovementCreateSerializer",
    "StockMovementReverseSerializer",
]
