# counterparties/models/money_box.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class MoneyBox(models.Model):
    """
    Cash register / till. balance is maintained by
    counterparties.services.balance_service and always equals the
    balance_after of its latest transaction.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=120, unique=True)
    balance = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    is_active = models.BooleanField(default=True)
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class MoneyBoxTransaction(models.Model):
    """
    Append-only cash movement.
    """

    class TransactionType(models.TextChoices):
        DEPOSIT = "deposit", "Deposit"
        WITHDRAWAL = "withdrawal", "Withdrawal"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    money_box = models.ForeignKey(
        MoneyBox, on_delete=models.PROTECT, related_name="transactions"
    )
    transaction_type = models.CharField(max_length=16, choices=TransactionType.choices)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    balance_after = models.DecimalField(max_digits=14, decimal_places=2)

    reference_type = models.CharField(max_length=32, blank=True, default="")
    reference_id = models.CharField(max_length=64, blank=True, default="", db_index=True)
    notes = models.CharField(max_length=255, blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="money_box_transactions",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=Decimal("0.00")),
                name="money_box_transaction_amount_gt_zero",
            ),
        ]
        indexes = [
            models.Index(fields=["money_box", "created_at"], name="money_box_tx_box_date_idx"),
            models.Index(fields=["reference_type", "reference_id"], name="money_box_tx_reference_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("MoneyBoxTransaction records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("MoneyBoxTransaction records are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.money_box_id} {self.transaction_type} {self.amount}"
