# products/tests/test_reconcile_command.py

from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from products.models import Product, StockBalance, StockMovement
from products.services.stock_ledger import StockLedger
from stocks.services.stock_service import create_stock


class ReconcileStockLedgerCommandTests(TestCase):
    """
    manage.py reconcile_stock_ledger

    GUARANTEES:
    - Clean ledgers report OK
    - --strict fails on drift, --fix repairs it from the log
    """

    def setUp(self):
        self.stock = create_stock(data={"name": "Main Warehouse", "code": "W1", "address": "Dock 1"})
        self.product = Product.objects.create(name="Sugar 1kg")
        StockLedger().record_movement(
            movement_type=StockMovement.MovementType.PURCHASE,
            product=self.product,
            quantity=10,
            to_stock=self.stock,
        )

    def _run(self, *args):
        out, err = StringIO(), StringIO()
        call_command("reconcile_stock_ledger", *args, stdout=out, stderr=err)
        return out.getvalue(), err.getvalue()

    def test_clean_ledger(self):
        out, _ = self._run()
        self.assertIn("OK", out)

    def test_strict_fails_on_drift(self):
        StockBalance.objects.filter(product=self.product).update(quantity=3)

        with self.assertRaises(CommandError):
            self._run("--strict")

    def test_fix_repairs_drift(self):
        StockBalance.objects.filter(product=self.product).update(quantity=3)

        out, _ = self._run("--fix")

        self.assertIn("Repaired 1", out)
        self.assertEqual(StockLedger().current_stock(self.product, self.stock), 10)

    def test_unknown_product(self):
        with self.assertRaises(CommandError):
            self._run("--product", "00000000-0000-0000-0000-000000000000")
