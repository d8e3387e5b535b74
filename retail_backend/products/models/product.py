# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from stocks.models import Stock


class Product(models.Model):
    """
    Represents a sellable product.

    STOCK MODEL (IMPORTANT):
    - Quantities live in the movement ledger (StockMovement), projected per
      location into StockBalance.
    - current_stock is a cached aggregate maintained by the ledger service:
        * product assigned to a location -> balance at that location
        * product with no location       -> unlocated quantity
    - stock (the assigned location) is set as a side effect of movements,
      never edited directly by stock-changing code.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255, db_index=True)

    # Optional identifiers; unique when present
    sku = models.CharField(max_length=128, null=True, blank=True, db_index=True)
    barcode = models.CharField(max_length=128, null=True, blank=True, db_index=True)

    unit = models.CharField(max_length=32, default="piece")
    units_per_box = models.PositiveIntegerField(default=1)

    purchase_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    selling_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    # Cached aggregate (see class docstring). May be negative only when the
    # negative-stock override was used.
    current_stock = models.IntegerField(default=0)

    # Quantity known to exist but not yet placed at any location (legacy
    # imports). Only a transfer with no from_stock draws it down.
    unlocated_stock = models.IntegerField(default=0)

    stock = models.ForeignKey(
        Stock,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    min_stock = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["sku"],
                condition=Q(sku__isnull=False) & ~Q(sku=""),
                name="uniq_product_sku_when_present",
            ),
            models.UniqueConstraint(
                fields=["barcode"],
                condition=Q(barcode__isnull=False) & ~Q(barcode=""),
                name="uniq_product_barcode_when_present",
            ),
        ]

    def __str__(self):
        sku = (self.sku or "").strip()
        return f"{self.name} ({sku})" if sku else self.name

    def clean(self):
        if self.selling_price is not None and Decimal(self.selling_price) < 0:
            raise ValidationError({"selling_price": "selling_price cannot be negative"})
        if self.purchase_price is not None and Decimal(self.purchase_price) < 0:
            raise ValidationError({"purchase_price": "purchase_price cannot be negative"})
        if not int(self.units_per_box or 0):
            raise ValidationError({"units_per_box": "units_per_box must be at least 1"})

    @property
    def is_low_stock(self) -> bool:
        return int(self.current_stock or 0) <= int(self.min_stock or 0)
