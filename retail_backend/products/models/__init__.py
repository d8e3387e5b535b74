"""
PATH: products/models/__init__.py

Products models export surface.
"""

from .product import Product
from .stock_balance import StockBalance
from .stock_movement import StockMovement

__all__ = [
    "Product",
    "StockBalance",
    "StockMovement",
]
