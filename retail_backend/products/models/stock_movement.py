# products/models/stock_movement.py

"""
CANONICAL INVENTORY LEDGER

Immutable inventory ledger entry.

GUARANTEES:
- Append-only (no updates, no deletes)
- quantity > 0, at least one of from_stock / to_stock (DB constraints)
- Direction shape validated against movement_type
- A movement is reversed at most once (reversal_of is unique)

Derived quantity at a location:
    sum(quantity where to_stock=loc) - sum(quantity where from_stock=loc)
"""

import uuid
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from stocks.models import Stock

from .product import Product


class StockMovement(models.Model):
    class MovementType(models.TextChoices):
        PURCHASE = "purchase", "Purchase"
        SALE = "sale", "Sale"
        ADJUSTMENT = "adjustment", "Adjustment"
        RETURN = "return", "Return"
        TRANSFER = "transfer", "Transfer"
        INITIAL = "initial", "Initial Stock"

    class ReferenceType(models.TextChoices):
        SALE = "sale", "Sale Bill"
        PURCHASE = "purchase", "Purchase Bill"
        SALE_RETURN = "sale_return", "Sale Return"
        PURCHASE_RETURN = "purchase_return", "Purchase Return"
        ADJUSTMENT = "adjustment", "Adjustment"
        TRANSFER = "transfer", "Transfer"
        INITIAL = "initial", "Initial Stock"

    # movement_type -> which side(s) must be set: "from", "to", "one", "any"
    REQUIRED_SHAPE = {
        MovementType.PURCHASE: "to",
        MovementType.INITIAL: "to",
        MovementType.SALE: "from",
        MovementType.ADJUSTMENT: "one",
        MovementType.TRANSFER: "any",
        MovementType.RETURN: "one",
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    movement_type = models.CharField(max_length=16, choices=MovementType.choices)

    from_stock = models.ForeignKey(
        Stock,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="outgoing_movements",
    )
    to_stock = models.ForeignKey(
        Stock,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="incoming_movements",
    )

    product = models.ForeignKey(
        Product, on_delete=models.PROTECT, related_name="stock_movements"
    )

    quantity = models.PositiveIntegerField()

    unit_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_value = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    reference_type = models.CharField(
        max_length=32, choices=ReferenceType.choices, null=True, blank=True
    )
    reference_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    reference_number = models.CharField(max_length=100, null=True, blank=True)

    reversal_of = models.OneToOneField(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reversed_by",
    )

    movement_date = models.DateTimeField(default=timezone.now)
    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-movement_date", "-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="stock_movement_quantity_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(from_stock__isnull=False) | Q(to_stock__isnull=False),
                name="stock_movement_has_location",
            ),
        ]
        indexes = [
            models.Index(fields=["movement_type"], name="movement_type_idx"),
            models.Index(fields=["product", "movement_date"], name="movement_product_date_idx"),
            models.Index(fields=["from_stock", "movement_date"], name="movement_from_date_idx"),
            models.Index(fields=["to_stock", "movement_date"], name="movement_to_date_idx"),
            models.Index(fields=["reference_type", "reference_id"], name="movement_reference_idx"),
        ]

    def clean(self):
        if self.quantity is None or int(self.quantity) <= 0:
            raise ValidationError({"quantity": "quantity must be greater than zero"})

        if not self.from_stock_id and not self.to_stock_id:
            raise ValidationError("At least one of from_stock or to_stock is required")

        if self.from_stock_id and self.from_stock_id == self.to_stock_id:
            raise ValidationError("from_stock and to_stock must differ")

        # Reversals keep the original type with swapped sides.
        shape = None if self.reversal_of_id else self.REQUIRED_SHAPE.get(self.movement_type)
        if shape == "to" and not self.to_stock_id:
            raise ValidationError(f"{self.movement_type} movements require to_stock")
        if shape == "from" and not self.from_stock_id:
            raise ValidationError(f"{self.movement_type} movements require from_stock")
        if shape == "one" and bool(self.from_stock_id) == bool(self.to_stock_id):
            raise ValidationError(
                f"{self.movement_type} movements require exactly one of from_stock / to_stock"
            )

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockMovement records are immutable")

        if self.unit_cost is None:
            self.unit_cost = Decimal("0.00")
        if not self.total_value:
            self.total_value = (Decimal(str(self.unit_cost)) * int(self.quantity or 0)).quantize(
                Decimal("0.01"), rounding=ROUND_HALF_UP
            )

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "StockMovement records are immutable and cannot be deleted"
        )

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | {self.movement_type} | {self.quantity}"
