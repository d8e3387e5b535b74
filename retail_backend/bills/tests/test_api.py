# bills/tests/test_api.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from bills.models import Bill, PaymentVoucher
from caching.cache import get_ledger_cache
from counterparties.models import Customer, MoneyBox, Supplier
from products.models import Product, StockMovement
from products.services.stock_ledger import StockLedger
from stocks.services.stock_service import create_stock

User = get_user_model()


class BillApiTests(TestCase):
    """
    /api/bills/<kind>/

    GUARANTEES:
    - Create / pay / return / delete go through one orchestrator call each
    - Business failures keep the {success: false, message, code} envelope
    - Cached reads reflect committed writes
    """

    def setUp(self):
        get_ledger_cache().clear()

        self.user = User.objects.create_user(username="api_clerk", password="password123")
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

        self.w1 = create_stock(data={"name": "Main Warehouse", "code": "W1", "address": "Dock 1"})
        self.product = Product.objects.create(name="Green Tea 100g", selling_price=Decimal("4.00"))
        StockLedger().record_movement(
            movement_type=StockMovement.MovementType.PURCHASE,
            product=self.product,
            quantity=20,
            to_stock=self.w1,
        )
        self.customer = Customer.objects.create(name="Alice")
        self.supplier = Supplier.objects.create(name="Tea Co")
        self.box = MoneyBox.objects.create(name="Till")

    def _post(self, url, payload):
        with self.captureOnCommitCallbacks(execute=True):
            return self.client.post(url, payload, format="json")

    def _create_sale(self, qty=5, paid="0", **extra):
        payload = {
            "billData": {"customer_id": str(self.customer.id), "paid_amount": paid},
            "items": [{"product_id": str(self.product.id), "quantity": qty, "price": "4.00"}],
            "moneyBoxId": str(self.box.id),
        }
        payload.update(extra)
        return self._post("/api/bills/sale/", payload)

    # =====================================================
    # Create
    # =====================================================
    def test_create_sale(self):
        res = self._create_sale(qty=5, paid="10")

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["message"], "Sale bill created successfully")
        data = res.data["data"]
        self.assertEqual(data["net_amount"], "20.00")
        self.assertEqual(data["payment_status"], "partial")
        self.assertEqual(len(data["items"]), 1)
        self.assertEqual(data["items"][0]["returned_quantity"], 0)

    def test_create_sale_insufficient_stock(self):
        res = self._create_sale(qty=21)

        self.assertEqual(res.status_code, 409)
        self.assertFalse(res.data["success"])
        self.assertEqual(res.data["code"], "insufficient_stock")
        self.assertEqual(Bill.objects.count(), 0)

    def test_create_sale_rejects_empty_items(self):
        res = self._create_sale(items=[])

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["code"], "validation_error")

    def test_create_purchase(self):
        res = self._post(
            "/api/bills/purchase/",
            {
                "billData": {"supplier_id": str(self.supplier.id)},
                "items": [{"product_id": str(self.product.id), "quantity": 10, "price": "2.50"}],
            },
        )

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["data"]["remaining_amount"], "25.00")
        self.assertEqual(StockLedger().current_stock(self.product, self.w1), 30)

    # =====================================================
    # Read
    # =====================================================
    def test_list_and_detail_refresh_after_writes(self):
        sale_id = self._create_sale().data["data"]["id"]

        listing = self.client.get("/api/bills/sale/")
        self.assertEqual(listing.status_code, 200)
        self.assertEqual(listing.data["pagination"]["total"], 1)

        self._create_sale(qty=1)
        listing = self.client.get("/api/bills/sale/")
        self.assertEqual(listing.data["pagination"]["total"], 2)

        detail = self.client.get(f"/api/bills/sale/{sale_id}/")
        self.assertEqual(detail.data["data"]["payment_status"], "unpaid")

        with self.captureOnCommitCallbacks(execute=True):
            self.client.put(f"/api/bills/sale/{sale_id}/payment/", {"paid_amount": "20.00"}, format="json")
        detail = self.client.get(f"/api/bills/sale/{sale_id}/")
        self.assertEqual(detail.data["data"]["payment_status"], "paid")

    def test_detail_by_number(self):
        number = self._create_sale().data["data"]["number"]

        res = self.client.get(f"/api/bills/sale/{number}/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["number"], number)

    def test_wrong_kind_is_404(self):
        sale_id = self._create_sale().data["data"]["id"]

        res = self.client.get(f"/api/bills/purchase/{sale_id}/")

        self.assertEqual(res.status_code, 404)

    def test_list_filters_by_customer(self):
        self._create_sale()
        other = Customer.objects.create(name="Bob")
        self._post(
            "/api/bills/sale/",
            {
                "billData": {"customer_id": str(other.id)},
                "items": [{"product_id": str(self.product.id), "quantity": 1, "price": "4.00"}],
            },
        )

        res = self.client.get("/api/bills/sale/", {"customer_id": str(other.id)})

        self.assertEqual(res.data["pagination"]["total"], 1)
        self.assertEqual(res.data["data"][0]["customer_name"], "Bob")

    def test_stats(self):
        self._create_sale(qty=5, paid="20")
        self._create_sale(qty=1)

        res = self.client.get("/api/bills/sale/stats/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["count"], 2)
        self.assertEqual(res.data["data"]["total_net"], "24.00")
        self.assertEqual(res.data["data"]["by_payment_status"]["paid"], 1)

    # =====================================================
    # Payment, voucher, return, delete
    # =====================================================
    def test_overpayment_is_rejected(self):
        sale_id = self._create_sale(qty=5).data["data"]["id"]

        res = self.client.put(f"/api/bills/sale/{sale_id}/payment/", {"paid_amount": "20.01"}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["code"], "overpayment")

    def test_voucher_endpoint(self):
        sale_id = self._create_sale(qty=5, paid="12").data["data"]["id"]

        res = self._post(f"/api/bills/sale/{sale_id}/voucher/", {})

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["data"]["amount"], "12.00")
        self.assertEqual(res.data["data"]["voucher_type"], PaymentVoucher.VoucherType.RECEIPT)

    def test_return_then_delete_is_blocked(self):
        sale = self._create_sale(qty=5).data["data"]
        item_id = sale["items"][0]["id"]

        too_many = self._post(
            "/api/bills/return/",
            {"returnData": {"original_bill_id": sale["id"]}, "items": [{"original_item_id": item_id, "quantity": 6}]},
        )
        self.assertEqual(too_many.status_code, 409)
        self.assertEqual(too_many.data["code"], "return_quantity_exceeded")

        res = self._post(
            "/api/bills/return/",
            {"returnData": {"original_bill_id": sale["id"]}, "items": [{"original_item_id": item_id, "quantity": 2}]},
        )
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["data"]["original_bill_id"], sale["id"])

        blocked = self.client.delete(f"/api/bills/sale/{sale['id']}/")
        self.assertEqual(blocked.status_code, 400)
        self.assertEqual(blocked.data["code"], "bill_has_returns")

    def test_delete_sale(self):
        sale_id = self._create_sale(qty=5).data["data"]["id"]

        with self.captureOnCommitCallbacks(execute=True):
            res = self.client.delete(f"/api/bills/sale/{sale_id}/")

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["data"]["reversed_movements"], 1)
        self.assertEqual(StockLedger().current_stock(self.product, self.w1), 20)
        self.assertEqual(self.client.get(f"/api/bills/sale/{sale_id}/").status_code, 404)
