# counterparties/tests/test_counterparties.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.test import TestCase
from rest_framework.test import APIClient

from common.exceptions import ConflictError, NotFoundError, ValidationError
from counterparties.models import Customer, MoneyBox, MoneyBoxTransaction, Supplier
from counterparties.services import CounterpartyLedgers

User = get_user_model()

TT = MoneyBoxTransaction.TransactionType


class CounterpartyLedgerTests(TestCase):
    """
    Balance + cash primitives used by billing.

    GUARANTEES:
    - Withdrawals never take a money box below zero
    - Every cash movement leaves one immutable transaction row
    - Zero amounts are a no-op
    """

    def setUp(self):
        self.ledgers = CounterpartyLedgers()
        self.box = MoneyBox.objects.create(name="Front desk")
        self.customer = Customer.objects.create(name="Alice")
        self.supplier = Supplier.objects.create(name="Acme Foods")

    def test_deposit_then_withdraw(self):
        self.ledgers.deposit(self.box, "100.00")
        tx = self.ledgers.withdraw(self.box, "30.50")

        self.box.refresh_from_db()
        self.assertEqual(self.box.balance, Decimal("69.50"))
        self.assertEqual(tx.balance_after, Decimal("69.50"))
        self.assertEqual(MoneyBoxTransaction.objects.filter(money_box=self.box).count(), 2)

    def test_withdrawal_beyond_balance_is_rejected(self):
        self.ledgers.deposit(self.box, "10.00")

        with self.assertRaises(ConflictError) as ctx:
            self.ledgers.withdraw(self.box, "10.01")

        self.assertEqual(ctx.exception.code, "insufficient_funds")
        self.assertEqual(
            ctx.exception.message,
            "Insufficient funds in money box. Available: 10.00, Requested: 10.01",
        )
        self.box.refresh_from_db()
        self.assertEqual(self.box.balance, Decimal("10.00"))
        self.assertEqual(MoneyBoxTransaction.objects.count(), 1)

    def test_zero_amount_is_noop(self):
        self.assertIsNone(self.ledgers.deposit(self.box, 0))
        self.assertFalse(MoneyBoxTransaction.objects.exists())

    def test_negative_amount_rejected(self):
        with self.assertRaises(ValidationError):
            self.ledgers.deposit(self.box, "-5")

    def test_move_cash_sign_picks_direction(self):
        self.ledgers.move_cash(self.box, Decimal("40"))
        tx = self.ledgers.move_cash(self.box, Decimal("-15"))

        self.assertEqual(tx.transaction_type, TT.WITHDRAWAL)
        self.box.refresh_from_db()
        self.assertEqual(self.box.balance, Decimal("25.00"))

    def test_transactions_are_immutable(self):
        tx = self.ledgers.deposit(self.box, "5")

        tx.notes = "edited"
        with self.assertRaises(DjangoValidationError):
            tx.save()
        with self.assertRaises(DjangoValidationError):
            tx.delete()

    def test_inactive_money_box_rejected_for_new_bills(self):
        MoneyBox.objects.filter(id=self.box.id).update(is_active=False)

        with self.assertRaises(ValidationError):
            self.ledgers.money_box(self.box.id)

    def test_unknown_customer_is_not_found(self):
        with self.assertRaises(NotFoundError):
            self.ledgers.customer("00000000-0000-0000-0000-000000000000")

    def test_balance_adjustments(self):
        self.ledgers.adjust_customer_debt(self.customer, "60")
        self.ledgers.adjust_customer_debt(self.customer, "-25")
        self.ledgers.adjust_supplier_balance(self.supplier, "12.34")

        self.customer.refresh_from_db()
        self.supplier.refresh_from_db()
        self.assertEqual(self.customer.current_balance, Decimal("35.00"))
        self.assertEqual(self.supplier.current_balance, Decimal("12.34"))


class CounterpartyApiTests(TestCase):
    """
    /api/counterparties/

    GUARANTEES:
    - Balances are read-only through the API
    - Manual withdrawals are staff-only
    """

    def setUp(self):
        self.user = User.objects.create_user(username="cashier", password="password123")
        self.admin = User.objects.create_user(username="manager", password="password123", is_staff=True)
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

    def test_create_customer_ignores_balance(self):
        res = self.client.post(
            "/api/counterparties/customers/",
            {"name": "Bob", "phone": "555-0101", "current_balance": "999.00"},
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(Decimal(res.data["data"]["current_balance"]), Decimal("0.00"))

    def test_customer_search(self):
        Customer.objects.create(name="Carol")
        Customer.objects.create(name="Dave")

        res = self.client.get("/api/counterparties/customers/", {"q": "car"})

        self.assertEqual(res.status_code, 200)
        self.assertEqual([row["name"] for row in res.data["data"]], ["Carol"])

    def test_supplier_with_balance_filter(self):
        Supplier.objects.create(name="Owed", current_balance=Decimal("10.00"))
        Supplier.objects.create(name="Settled")

        res = self.client.get("/api/counterparties/suppliers/", {"with_balance": "true"})

        self.assertEqual([row["name"] for row in res.data["data"]], ["Owed"])

    def test_deposit_and_withdraw_endpoints(self):
        box = MoneyBox.objects.create(name="Safe")

        res = self.client.post(f"/api/counterparties/money-boxes/{box.id}/deposit/", {"amount": "50.00"}, format="json")
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(Decimal(res.data["data"]["balance_after"]), Decimal("50.00"))

        res = self.client.post(f"/api/counterparties/money-boxes/{box.id}/withdraw/", {"amount": "5.00"}, format="json")
        self.assertEqual(res.status_code, 403)

        staff = APIClient()
        staff.force_authenticate(user=self.admin)
        res = staff.post(f"/api/counterparties/money-boxes/{box.id}/withdraw/", {"amount": "80.00"}, format="json")
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["code"], "insufficient_funds")

        res = staff.post(f"/api/counterparties/money-boxes/{box.id}/withdraw/", {"amount": "20.00"}, format="json")
        self.assertEqual(res.status_code, 201)
        box.refresh_from_db()
        self.assertEqual(box.balance, Decimal("30.00"))

    def test_transactions_listing_is_paginated(self):
        box = MoneyBox.objects.create(name="Till")
        CounterpartyLedgers().deposit(box, "3")

        res = self.client.get(f"/api/counterparties/money-boxes/{box.id}/transactions/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["pagination"]["total"], 1)
        self.assertEqual(res.data["data"][0]["reference_type"], "")
