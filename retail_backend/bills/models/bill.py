# bills/models/bill.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from counterparties.models import Customer, MoneyBox, Supplier

User = settings.AUTH_USER_MODEL


class Bill(models.Model):
    """
    One header shape for sales, purchases and returns.

    GUARANTEES:
    - Totals are computed server-side (bills.services.totals) and stored.
    - Stock effects live in the ledger as StockMovement rows referencing
      this bill (reference_id = bill id); the bill never edits them.
    - A return points at its original bill; its lines point at the
      original lines they give back.
    """

    class Kind(models.TextChoices):
        SALE = "sale", "Sale"
        PURCHASE = "purchase", "Purchase"
        RETURN = "return", "Return"

    class DiscountType(models.TextChoices):
        FIXED = "fixed", "Fixed"
        PERCENTAGE = "percentage", "Percentage"

    class PaymentMethod(models.TextChoices):
        CASH = "cash", "Cash"
        CARD = "card", "Card"
        BANK_TRANSFER = "bank_transfer", "Bank Transfer"
        CHECK = "check", "Check"
        CREDIT = "credit", "Credit"

    class PaymentStatus(models.TextChoices):
        PAID = "paid", "Paid"
        PARTIAL = "partial", "Partially Paid"
        UNPAID = "unpaid", "Unpaid"

    class Status(models.TextChoices):
        COMPLETED = "completed", "Completed"
        PENDING = "pending", "Pending"
        CANCELLED = "cancelled", "Cancelled"
        RETURNED = "returned", "Returned"
        PARTIALLY_RETURNED = "partially_returned", "Partially Returned"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    kind = models.CharField(max_length=16, choices=Kind.choices, db_index=True)

    number = models.CharField(
        max_length=64,
        unique=True,
        help_text="Invoice / return number (generated when not supplied)",
    )

    customer = models.ForeignKey(
        Customer, on_delete=models.PROTECT, null=True, blank=True, related_name="bills"
    )
    supplier = models.ForeignKey(
        Supplier, on_delete=models.PROTECT, null=True, blank=True, related_name="bills"
    )
    original_bill = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="returns",
    )

    invoice_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(null=True, blank=True)

    discount_type = models.CharField(
        max_length=16, choices=DiscountType.choices, default=DiscountType.FIXED
    )
    discount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    net_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    remaining_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    payment_method = models.CharField(
        max_length=32, choices=PaymentMethod.choices, default=PaymentMethod.CASH
    )
    payment_status = models.CharField(
        max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.UNPAID, db_index=True
    )
    status = models.CharField(
        max_length=24, choices=Status.choices, default=Status.COMPLETED, db_index=True
    )

    money_box = models.ForeignKey(
        MoneyBox, on_delete=models.PROTECT, null=True, blank=True, related_name="bills"
    )

    reason = models.CharField(max_length=255, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="bills"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-invoice_date", "-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(paid_amount__gte=Decimal("0.00")),
                name="bill_paid_amount_non_negative",
            ),
            models.CheckConstraint(
                condition=~Q(kind="return") | Q(original_bill__isnull=False),
                name="bill_return_has_original",
            ),
        ]
        indexes = [
            models.Index(fields=["kind", "invoice_date"], name="bill_kind_date_idx"),
            models.Index(fields=["customer", "kind"], name="bill_customer_kind_idx"),
            models.Index(fields=["supplier", "kind"], name="bill_supplier_kind_idx"),
        ]

    def __str__(self):
        return f"{self.number} ({self.kind})"

    @property
    def is_return(self) -> bool:
        return self.kind == self.Kind.RETURN

    @property
    def counterparty(self):
        return self.customer or self.supplier
