# stocks/models/stock.py

import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q


class Stock(models.Model):
    """
    A physical inventory location (warehouse, shop floor, back room).

    Guarantees:
    - code is required and unique
    - capacity == 0 means "unlimited"
    - current_capacity_used is advisory; the ledger keeps it in step with
      StockBalance and reconcile_stock_ledger can recompute it
    - at most one active location is main (enforced by stocks.services.stock_service)
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=50, unique=True, db_index=True)
    name = models.CharField(max_length=255)
    address = models.TextField()

    manager_name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=50, blank=True)
    email = models.EmailField(blank=True)

    capacity = models.PositiveIntegerField(
        default=0,
        help_text="Maximum units this location can hold. 0 = unlimited.",
    )
    current_capacity_used = models.IntegerField(default=0)

    is_main = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    notes = models.TextField(blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_stocks",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        # Main location first, then by name.
        ordering = ["-is_main", "name"]
        constraints = [
            models.CheckConstraint(
                condition=~Q(code=""),
                name="stock_code_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.code})"

    @property
    def has_capacity_limit(self) -> bool:
        return int(self.capacity or 0) > 0

    @property
    def available_capacity(self):
        if not self.has_capacity_limit:
            return None
        return max(int(self.capacity) - int(self.current_capacity_used or 0), 0)

    def can_accept(self, quantity: int) -> bool:
        if not self.has_capacity_limit:
            return True
        return int(self.current_capacity_used or 0) + int(quantity) <= int(self.capacity)
