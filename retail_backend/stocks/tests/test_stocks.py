# stocks/tests/test_stocks.py

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from caching.cache import get_ledger_cache
from common.exceptions import ConflictError, ConstraintError, ValidationError
from products.models import Product, StockMovement
from products.services.stock_ledger import StockLedger
from stocks.models import Stock
from stocks.services.stock_service import create_stock, delete_stock, update_stock

User = get_user_model()


class StockServiceTests(TestCase):
    """
    Location master data.

    GUARANTEES:
    - Exactly one active main location once any location exists
    - The main location cannot be deleted, unset or deactivated
    - A location that is referenced or holds inventory cannot be deleted
    """

    def setUp(self):
        self.main = create_stock(data={"name": "Main Warehouse", "code": "W1", "address": "Dock 1"})
        self.branch = create_stock(data={"name": "Branch", "code": "W2", "address": "Street 2"})

    def test_first_stock_becomes_main(self):
        self.assertTrue(self.main.is_main)
        self.assertFalse(self.branch.is_main)

    def test_required_fields(self):
        with self.assertRaises(ValidationError) as ctx:
            create_stock(data={"name": "Nameless", "code": ""})
        self.assertEqual(ctx.exception.message, "Name, code, and address are required")

    def test_duplicate_code_conflicts(self):
        with self.assertRaises(ConflictError):
            create_stock(data={"name": "Copy", "code": "W1", "address": "x"})

    def test_promoting_a_location_demotes_the_old_main(self):
        update_stock(stock=self.branch, data={"is_main": True})

        self.main.refresh_from_db()
        self.branch.refresh_from_db()
        self.assertTrue(self.branch.is_main)
        self.assertFalse(self.main.is_main)
        self.assertEqual(Stock.objects.filter(is_main=True).count(), 1)

    def test_main_cannot_be_deactivated(self):
        with self.assertRaises(ConstraintError):
            update_stock(stock=self.main, data={"is_active": False})

    def test_main_cannot_be_deleted(self):
        with self.assertRaises(ConstraintError) as ctx:
            delete_stock(stock=self.main)
        self.assertEqual(ctx.exception.message, "Cannot delete the main stock")

    def test_location_with_assigned_products_cannot_be_deleted(self):
        Product.objects.create(name="Tea", stock=self.branch)

        with self.assertRaises(ConstraintError) as ctx:
            delete_stock(stock=self.branch)
        self.assertEqual(ctx.exception.message, "Cannot delete stock with assigned products")

    def test_location_with_movements_cannot_be_deleted(self):
        product = Product.objects.create(name="Tea")
        ledger = StockLedger()
        ledger.record_movement(
            movement_type=StockMovement.MovementType.PURCHASE, product=product, quantity=4, to_stock=self.branch
        )
        ledger.record_movement(
            movement_type=StockMovement.MovementType.TRANSFER,
            product=product,
            quantity=4,
            from_stock=self.branch,
            to_stock=self.main,
        )

        with self.assertRaises(ConstraintError) as ctx:
            delete_stock(stock=self.branch)
        self.assertEqual(ctx.exception.message, "Cannot delete stock referenced by stock movements")

    def test_unreferenced_location_can_be_deleted(self):
        delete_stock(stock=self.branch)
        self.assertFalse(Stock.objects.filter(id=self.branch.id).exists())


class StockApiTests(TestCase):
    """
    /api/stocks/

    GUARANTEES:
    - Listing reflects writes immediately (cache invalidated on commit)
    - Constraint failures surface as 400 with the envelope
    """

    def setUp(self):
        get_ledger_cache().clear()
        self.user = User.objects.create_user(username="stock_admin", password="password123")
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

    def _create(self, code, **extra):
        payload = {"name": f"Location {code}", "code": code, "address": "Somewhere"}
        payload.update(extra)
        with self.captureOnCommitCallbacks(execute=True):
            return self.client.post("/api/stocks/", payload, format="json")

    def test_create_and_list(self):
        res = self._create("W1")
        self.assertEqual(res.status_code, 201, res.data)
        self.assertTrue(res.data["data"]["is_main"])

        listing = self.client.get("/api/stocks/")
        self.assertEqual(len(listing.data["data"]), 1)

        self._create("W2")
        listing = self.client.get("/api/stocks/")
        self.assertEqual([row["code"] for row in listing.data["data"]], ["W1", "W2"])

    def test_delete_main_is_rejected(self):
        stock_id = self._create("W1").data["data"]["id"]

        res = self.client.delete(f"/api/stocks/{stock_id}/")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["code"], "constraint_violation")
        self.assertEqual(res.data["message"], "Cannot delete the main stock")

    def test_missing_fields_rejected(self):
        res = self.client.post("/api/stocks/", {"name": "No code"}, format="json")
        self.assertEqual(res.status_code, 400)
        self.assertFalse(res.data["success"])

    def test_unknown_stock_is_404(self):
        res = self.client.get("/api/stocks/00000000-0000-0000-0000-000000000000/")
        self.assertEqual(res.status_code, 404)
