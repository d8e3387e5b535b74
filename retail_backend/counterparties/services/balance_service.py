# counterparties/services/balance_service.py

"""
======================================================
PATH: counterparties/services/balance_service.py
======================================================
COUNTERPARTY LEDGERS

Purpose:
- Customer debt, supplier balance and money box (cash) adjustments used by
  the billing orchestrator.

Rules:
- Every adjustment locks the row (select_for_update) and must run inside the
  caller's transaction.
- Customer.current_balance is debt owed by the customer; Supplier.current_balance
  is what we owe the supplier. Both may go below zero (credit).
- A money box never goes below zero: a withdrawal larger than the balance is a
  ConflictError carrying available vs requested.
- Zero amounts are a no-op (no transaction row is written).
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from common.exceptions import ConflictError, NotFoundError, ValidationError
from common.numbers import ZERO, money
from counterparties.models import Customer, MoneyBox, MoneyBoxTransaction, Supplier

logger = logging.getLogger("billing")

TT = MoneyBoxTransaction.TransactionType


def _pk(value):
    return getattr(value, "pk", value)


def _locked(model, value, *, label: str, require_active: bool = True):
    try:
        obj = model.objects.select_for_update().get(id=_pk(value))
    except (model.DoesNotExist, ValueError, TypeError, DjangoValidationError):
        raise NotFoundError(f"{label} not found", errors={f"{label.lower().replace(' ', '_')}_id": str(_pk(value))}) from None
    if require_active and not obj.is_active:
        raise ValidationError(f"{label} is not active", errors={f"{label.lower().replace(' ', '_')}_id": str(obj.id)})
    return obj


class CounterpartyLedgers:
    def customer(self, value, *, require_active: bool = True) -> Customer:
        return _locked(Customer, value, label="Customer", require_active=require_active)

    def supplier(self, value, *, require_active: bool = True) -> Supplier:
        return _locked(Supplier, value, label="Supplier", require_active=require_active)

    def money_box(self, value, *, require_active: bool = True) -> MoneyBox:
        return _locked(MoneyBox, value, label="Money box", require_active=require_active)

    # -----------------------------
    # Balances
    # -----------------------------
    @transaction.atomic
    def adjust_customer_debt(self, customer, delta, *, reason: str = "") -> Customer:
        delta = money(delta)
        customer = self.customer(customer, require_active=False)
        if delta == ZERO:
            return customer

        customer.current_balance = money(customer.current_balance) + delta
        customer.save(update_fields=["current_balance", "updated_at"])

        logger.info(
            "Customer debt adjusted",
            extra={"customer_id": str(customer.id), "delta": str(delta), "balance": str(customer.current_balance), "reason": reason},
        )
        return customer

    @transaction.atomic
    def adjust_supplier_balance(self, supplier, delta, *, reason: str = "") -> Supplier:
        delta = money(delta)
        supplier = self.supplier(supplier, require_active=False)
        if delta == ZERO:
            return supplier

        supplier.current_balance = money(supplier.current_balance) + delta
        supplier.save(update_fields=["current_balance", "updated_at"])

        logger.info(
            "Supplier balance adjusted",
            extra={"supplier_id": str(supplier.id), "delta": str(delta), "balance": str(supplier.current_balance), "reason": reason},
        )
        return supplier

    # -----------------------------
    # Cash
    # -----------------------------
    @transaction.atomic
    def record_cash(
        self,
        money_box,
        *,
        transaction_type: str,
        amount,
        reference_type: str = "",
        reference_id=None,
        notes: str = "",
        user=None,
    ) -> MoneyBoxTransaction | None:
        amount = money(amount)
        if amount < ZERO:
            raise ValidationError("Cash amount cannot be negative", errors={"amount": str(amount)})
        if amount == ZERO:
            return None
        if transaction_type not in TT.values:
            raise ValidationError(f"Invalid transaction_type: {transaction_type}")

        box = self.money_box(money_box, require_active=False)
        current = money(box.balance)

        if transaction_type == TT.WITHDRAWAL:
            if amount > current:
                raise ConflictError(
                    f"Insufficient funds in money box. Available: {current}, Requested: {amount}",
                    errors={"available": str(current), "requested": str(amount), "money_box_id": str(box.id)},
                    code="insufficient_funds",
                )
            new_balance = current - amount
        else:
            new_balance = current + amount

        box.balance = new_balance
        box.save(update_fields=["balance", "updated_at"])

        tx = MoneyBoxTransaction.objects.create(
            money_box=box,
            transaction_type=transaction_type,
            amount=amount,
            balance_after=new_balance,
            reference_type=reference_type or "",
            reference_id=str(reference_id) if reference_id else "",
            notes=(notes or "")[:255],
            created_by=user if getattr(user, "is_authenticated", False) else None,
        )

        logger.info(
            "Money box transaction recorded",
            extra={
                "money_box_id": str(box.id),
                "transaction_type": transaction_type,
                "amount": str(amount),
                "balance_after": str(new_balance),
                "reference_type": reference_type,
                "reference_id": str(reference_id) if reference_id else None,
            },
        )
        return tx

    def deposit(self, money_box, amount, **kwargs) -> MoneyBoxTransaction | None:
        return self.record_cash(money_box, transaction_type=TT.DEPOSIT, amount=amount, **kwargs)

    def withdraw(self, money_box, amount, **kwargs) -> MoneyBoxTransaction | None:
        return self.record_cash(money_box, transaction_type=TT.WITHDRAWAL, amount=amount, **kwargs)

    def move_cash(self, money_box, signed_amount: Decimal, **kwargs) -> MoneyBoxTransaction | None:
        """
        Positive = deposit, negative = withdrawal of the absolute value.
        """
        signed_amount = money(signed_amount)
        if signed_amount >= ZERO:
            return self.deposit(money_box, signed_amount, **kwargs)
        return self.withdraw(money_box, -signed_amount, **kwargs)
