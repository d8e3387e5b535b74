# products/services/exceptions.py

"""
STOCK LEDGER ERRORS

Raised by products.services.stock_ledger. Each maps onto the shared
taxonomy in common.exceptions so the API renders them consistently.
"""

from __future__ import annotations

from common.exceptions import ConflictError, NotFoundError, ValidationError


class InvalidQuantity(ValidationError):
    code = "invalid_quantity"
    default_message = "Quantity must be greater than 0"


class MovementShapeError(ValidationError):
    """from_stock / to_stock combination not allowed for the movement type."""

    code = "invalid_movement"


class ProductNotFound(NotFoundError):
    default_message = "Product not found"


class LocationNotFound(NotFoundError):
    default_message = "Stock not found"


class LocationInactive(ValidationError):
    code = "stock_inactive"
    default_message = "Stock is not active"


class InsufficientStock(ConflictError):
    code = "insufficient_stock"

    def __init__(self, message: str, *, available: int, requested: int, product_id=None, stock_id=None):
        self.available = int(available)
        self.requested = int(requested)
        super().__init__(
            message,
            errors={
                "available": self.available,
                "requested": self.requested,
                "product_id": str(product_id) if product_id else None,
                "stock_id": str(stock_id) if stock_id else None,
            },
        )


class CapacityExceeded(ConflictError):
    code = "capacity_exceeded"

    def __init__(self, *, capacity: int, used: int, requested: int, stock_id=None):
        self.capacity = int(capacity)
        self.used = int(used)
        self.requested = int(requested)
        super().__init__(
            "Adding this quantity would exceed stock capacity. "
            f"Capacity: {self.capacity}, Used: {self.used}, Requested: {self.requested}",
            errors={
                "capacity": self.capacity,
                "used": self.used,
                "available": max(self.capacity - self.used, 0),
                "requested": self.requested,
                "stock_id": str(stock_id) if stock_id else None,
            },
        )
