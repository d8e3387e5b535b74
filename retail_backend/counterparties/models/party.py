# counterparties/models/party.py

import uuid
from decimal import Decimal

from django.db import models


class _Party(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")

    # Written only by counterparties.services.balance_service.
    current_balance = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    is_active = models.BooleanField(default=True)
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["name"]

    def __str__(self):
        return self.name


class Customer(_Party):
    """
    Customer master. current_balance = outstanding debt owed BY the customer.
    """

    class Meta(_Party.Meta):
        indexes = [
            models.Index(fields=["name"], name="customer_name_idx"),
            models.Index(fields=["is_active"], name="customer_active_idx"),
        ]


class Supplier(_Party):
    """
    Supplier master. current_balance = amount owed TO the supplier.
    """

    class Meta(_Party.Meta):
        indexes = [
            models.Index(fields=["name"], name="supplier_name_idx"),
            models.Index(fields=["is_active"], name="supplier_active_idx"),
        ]
