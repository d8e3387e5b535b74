# bills/models/bill_item.py

import uuid
from decimal import Decimal

from django.db import models
from django.db.models import Q

from products.models import Product
from stocks.models import Stock

from .bill import Bill


class BillItem(models.Model):
    """
    One bill line. Line money is stored as computed at bill creation:

        line_subtotal = quantity * price
        line_discount = line_subtotal * discount_percent / 100
        line_tax      = (line_subtotal - line_discount) * tax_percent / 100
        line_total    = line_subtotal - line_discount + line_tax

    stock = the location the line moved through.
    original_item = (returns only) the sale/purchase line being given back.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    bill = models.ForeignKey(Bill, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="bill_items")
    stock = models.ForeignKey(
        Stock, on_delete=models.PROTECT, null=True, blank=True, related_name="bill_items"
    )

    quantity = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=14, decimal_places=2)
    discount_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    tax_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))

    line_subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    line_discount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    line_tax = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    line_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    original_item = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="return_items",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name="bill_item_quantity_gt_zero"),
            models.CheckConstraint(
                condition=Q(price__gte=Decimal("0.00")), name="bill_item_price_non_negative"
            ),
        ]

    def __str__(self):
        return f"{self.product_id} x {self.quantity}"
