# products/tests/test_api.py

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from caching.cache import get_ledger_cache
from products.models import Product, StockMovement
from stocks.services.stock_service import create_stock

User = get_user_model()


class ProductAndMovementApiTests(TestCase):
    """
    /api/products/ and /api/stock-movements/

    GUARANTEES:
    - Responses use the {success, message, data} envelope
    - Movement creation returns the movement plus refreshed balances
    - Ledger rule failures map to 4xx with the numbers attached
    """

    def setUp(self):
        get_ledger_cache().clear()

        self.user = User.objects.create_user(username="clerk", password="password123")
        self.admin = User.objects.create_user(username="boss", password="password123", is_staff=True)
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

        self.w1 = create_stock(data={"name": "Main Warehouse", "code": "W1", "address": "Dock 1"})
        self.w2 = create_stock(data={"name": "Branch", "code": "W2", "address": "Street 2"})

    def _create_product(self, **extra):
        payload = {"name": "Rice 5kg", "sku": "RICE-5", "purchase_price": "7.50", "selling_price": "9.90"}
        payload.update(extra)
        return self.client.post("/api/products/", payload, format="json")

    # =====================================================
    # Products
    # =====================================================
    def test_create_product_with_opening_stock_goes_to_main(self):
        res = self._create_product(initial_quantity=12)

        self.assertEqual(res.status_code, 201, res.data)
        self.assertTrue(res.data["success"])
        product = Product.objects.get(id=res.data["data"]["id"])
        self.assertEqual(product.stock_id, self.w1.id)
        self.assertEqual(product.current_stock, 12)
        self.assertEqual(
            StockMovement.objects.filter(product=product, movement_type=StockMovement.MovementType.INITIAL).count(),
            1,
        )

    def test_duplicate_sku_conflicts(self):
        self._create_product()
        res = self._create_product(name="Other rice")

        self.assertEqual(res.status_code, 409)
        self.assertFalse(res.data["success"])

    def test_product_stock_lists_balances(self):
        product_id = self._create_product(initial_quantity=5).data["data"]["id"]

        res = self.client.get(f"/api/products/{product_id}/stock/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["total"], 5)
        self.assertEqual(res.data["data"]["balances"][0]["stock_id"], str(self.w1.id))

    def test_requires_authentication(self):
        res = APIClient().get("/api/products/")
        self.assertEqual(res.status_code, 401)

    # =====================================================
    # Stock movements
    # =====================================================
    def test_create_movement_returns_updated_balances(self):
        product_id = self._create_product().data["data"]["id"]

        res = self.client.post(
            "/api/stock-movements/",
            {"product_id": product_id, "movement_type": "purchase", "to_stock_id": str(self.w1.id), "quantity": 30},
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        data = res.data["data"]
        self.assertEqual(set(data.keys()), {"id", "movement", "updatedStocks", "updatedProduct"})
        self.assertEqual(data["updatedStocks"][0]["quantity"], 30)
        self.assertEqual(data["updatedProduct"]["current_stock"], 30)

    def test_insufficient_stock_is_conflict(self):
        product_id = self._create_product(initial_quantity=3).data["data"]["id"]

        res = self.client.post(
            "/api/stock-movements/",
            {"product_id": product_id, "movement_type": "sale", "from_stock_id": str(self.w1.id), "quantity": 4},
            format="json",
        )

        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["code"], "insufficient_stock")
        self.assertEqual(res.data["errors"]["available"], 3)
        self.assertEqual(res.data["errors"]["requested"], 4)

    def test_allow_negative_ignored_for_non_staff(self):
        product_id = self._create_product().data["data"]["id"]
        payload = {
            "product_id": product_id,
            "movement_type": "sale",
            "from_stock_id": str(self.w1.id),
            "quantity": 2,
            "allow_negative": True,
        }

        res = self.client.post("/api/stock-movements/", payload, format="json")
        self.assertEqual(res.status_code, 409)

        staff = APIClient()
        staff.force_authenticate(user=self.admin)
        res = staff.post("/api/stock-movements/", payload, format="json")
        self.assertEqual(res.status_code, 201, res.data)

    def test_zero_quantity_rejected(self):
        product_id = self._create_product().data["data"]["id"]

        res = self.client.post(
            "/api/stock-movements/",
            {"product_id": product_id, "movement_type": "purchase", "to_stock_id": str(self.w1.id), "quantity": 0},
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        self.assertFalse(StockMovement.objects.exists())

    def test_reverse_endpoint_is_idempotent(self):
        product_id = self._create_product().data["data"]["id"]
        movement_id = self.client.post(
            "/api/stock-movements/",
            {"product_id": product_id, "movement_type": "purchase", "to_stock_id": str(self.w2.id), "quantity": 6},
            format="json",
        ).data["data"]["id"]

        first = self.client.post(f"/api/stock-movements/{movement_id}/reverse/", {}, format="json")
        second = self.client.post(f"/api/stock-movements/{movement_id}/reverse/", {}, format="json")

        self.assertEqual(first.status_code, 201, first.data)
        self.assertEqual(second.status_code, 200)
        self.assertEqual(StockMovement.objects.filter(reversal_of_id=movement_id).count(), 1)

    def test_movement_list_is_paginated(self):
        product_id = self._create_product(initial_quantity=4).data["data"]["id"]

        res = self.client.get("/api/stock-movements/", {"product_id": product_id})

        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["success"])
        self.assertEqual(res.data["pagination"]["total"], 1)
