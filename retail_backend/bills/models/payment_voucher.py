# bills/models/payment_voucher.py

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from counterparties.models import MoneyBox

from .bill import Bill


class PaymentVoucher(models.Model):
    """
    Receipt artifact for money received (receipt) or paid out (payment)
    against a bill. Append-only; survives bill deletion through the
    bill_number snapshot.
    """

    class VoucherType(models.TextChoices):
        RECEIPT = "receipt", "Receipt"
        PAYMENT = "payment", "Payment"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    bill = models.ForeignKey(
        Bill, on_delete=models.SET_NULL, null=True, blank=True, related_name="vouchers"
    )
    bill_number = models.CharField(max_length=64, db_index=True)

    voucher_type = models.CharField(max_length=16, choices=VoucherType.choices)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    payment_method = models.CharField(max_length=32, choices=Bill.PaymentMethod.choices)

    money_box = models.ForeignKey(
        MoneyBox, on_delete=models.SET_NULL, null=True, blank=True, related_name="vouchers"
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payment_vouchers",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name="payment_voucher_amount_gt_zero"),
        ]

    def save(self, *args, **kwargs):
        # bill -> NULL on bill deletion is the only permitted update
        if not self._state.adding and set(kwargs.get("update_fields") or ()) != {"bill"}:
            raise ValidationError("PaymentVoucher records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("PaymentVoucher records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.voucher_type} {self.amount} ({self.bill_number})"
