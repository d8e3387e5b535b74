# bills/tests/test_billing_orchestrator.py

import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings

from bills.models import Bill, BillItem, PaymentVoucher
from bills.services import BillingOrchestrator
from bills.services.exceptions import (
    BillHasReturns,
    DuplicateBillNumber,
    EmptyBillError,
    OverpaymentError,
    ReturnQuantityExceeded,
)
from caching.router import DataType
from common.exceptions import ConflictError, NotFoundError, ValidationError
from counterparties.models import Customer, MoneyBox, MoneyBoxTransaction, Supplier
from counterparties.services import CounterpartyLedgers
from products.models import Product, StockMovement
from products.services.exceptions import InsufficientStock, InvalidQuantity
from products.services.stock_ledger import StockLedger
from stocks.services.stock_service import create_stock

User = get_user_model()

TT = MoneyBoxTransaction.TransactionType


class RecordingRouter:
    def __init__(self):
        self.calls = []

    def invalidate(self, data_types, *, related=False):
        self.calls.append(tuple(data_types))
        return 0


class BillingTestMixin:
    def setUp(self):
        self.user = User.objects.create_user(username="billing_clerk", password="password123")
        self.router = RecordingRouter()

        self.w1 = create_stock(data={"name": "Main Warehouse", "code": "W1", "address": "Dock 1"}, router=self.router)
        self.product = Product.objects.create(
            name="Coffee Beans 1kg",
            sku="COF-1",
            purchase_price=Decimal("6.00"),
            selling_price=Decimal("10.00"),
        )
        self.ledger = StockLedger()
        self.ledger.record_movement(
            movement_type=StockMovement.MovementType.PURCHASE,
            product=self.product,
            quantity=50,
            to_stock=self.w1,
        )

        self.customer = Customer.objects.create(name="Alice")
        self.supplier = Supplier.objects.create(name="Acme Foods")
        self.box = MoneyBox.objects.create(name="Front desk")

        self.orchestrator = BillingOrchestrator(router=self.router)

    def _stock(self):
        return self.ledger.current_stock(self.product, self.w1)

    def _sale(self, qty=10, price="10.00", paid="0", money_box=None, **bill_data):
        return self.orchestrator.create_sale_bill(
            bill_data={"customer_id": self.customer.id, "paid_amount": paid, **bill_data},
            items=[{"product_id": self.product.id, "quantity": qty, "price": price}],
            money_box=money_box,
            user=self.user,
        )

    def _return(self, original, qty, paid="0", money_box=None):
        item = original.items.get()
        return self.orchestrator.create_return_bill(
            return_data={"original_bill_id": original.id, "paid_amount": paid},
            items=[{"original_item_id": item.id, "quantity": qty}],
            money_box=money_box,
            user=self.user,
        )


class SaleBillTests(BillingTestMixin, TestCase):
    """
    Sale bills.

    GUARANTEES:
    - A sale is all-or-nothing: header, lines, movements, balance, cash
    - Totals and payment status are computed server-side
    - Invalidation fires once per committed bill, never for a failed one
    """

    def test_sale_decrements_stock_and_records_movement(self):
        bill = self._sale(qty=10)

        self.assertEqual(self._stock(), 40)
        movement = StockMovement.objects.get(reference_type="sale", reference_id=str(bill.id))
        self.assertEqual(movement.from_stock_id, self.w1.id)
        self.assertEqual(movement.quantity, 10)
        self.assertEqual(bill.items.get().stock_id, self.w1.id)

    def test_insufficient_stock_rolls_back_everything(self):
        movements_before = StockMovement.objects.count()

        with self.captureOnCommitCallbacks() as callbacks:
            with self.assertRaises(InsufficientStock) as ctx:
                self._sale(qty=60, paid="100", money_box=self.box)

        self.assertIn("Available: 50, Requested: 60", ctx.exception.message)
        self.assertEqual(Bill.objects.count(), 0)
        self.assertEqual(BillItem.objects.count(), 0)
        self.assertEqual(StockMovement.objects.count(), movements_before)
        self.assertEqual(MoneyBoxTransaction.objects.count(), 0)
        self.assertEqual(len(callbacks), 0)
        self.assertEqual(self._stock(), 50)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.current_balance, Decimal("0.00"))

    def test_partial_payment_then_settlement_moves_only_the_delta(self):
        bill = self._sale(qty=10, price="10.00", paid="40", money_box=self.box)

        self.assertEqual(bill.net_amount, Decimal("100.00"))
        self.assertEqual(bill.payment_status, Bill.PaymentStatus.PARTIAL)
        self.assertEqual(bill.remaining_amount, Decimal("60.00"))
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.current_balance, Decimal("60.00"))

        bill = self.orchestrator.update_payment_status(bill, paid_amount="100", user=self.user)

        self.assertEqual(bill.payment_status, Bill.PaymentStatus.PAID)
        self.assertEqual(bill.remaining_amount, Decimal("0.00"))
        self.box.refresh_from_db()
        self.assertEqual(self.box.balance, Decimal("100.00"))
        amounts = list(
            MoneyBoxTransaction.objects.filter(money_box=self.box).order_by("balance_after").values_list("amount", flat=True)
        )
        self.assertEqual(amounts, [Decimal("40.00"), Decimal("60.00")])
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.current_balance, Decimal("0.00"))

    def test_lowering_payment_withdraws_the_difference(self):
        bill = self._sale(qty=10, paid="100", money_box=self.box)

        self.orchestrator.update_payment_status(bill, paid_amount="70")

        self.box.refresh_from_db()
        self.customer.refresh_from_db()
        self.assertEqual(self.box.balance, Decimal("70.00"))
        self.assertEqual(self.customer.current_balance, Decimal("30.00"))
        last = MoneyBoxTransaction.objects.get(transaction_type=TT.WITHDRAWAL)
        self.assertEqual(last.transaction_type, TT.WITHDRAWAL)
        self.assertEqual(last.amount, Decimal("30.00"))

    def test_payment_without_money_box_only_moves_debt(self):
        bill = self._sale(qty=5)
        self.assertEqual(bill.payment_status, Bill.PaymentStatus.UNPAID)

        self.orchestrator.update_payment_status(bill, paid_amount="20")

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.current_balance, Decimal("30.00"))
        self.assertFalse(MoneyBoxTransaction.objects.exists())

    def test_overpayment_rejected(self):
        with self.assertRaises(OverpaymentError):
            self._sale(qty=1, paid="10.01")

        bill = self._sale(qty=1, paid="5")
        with self.assertRaises(OverpaymentError):
            self.orchestrator.update_payment_status(bill, paid_amount="11")

    def test_validation_happens_before_any_write(self):
        with self.assertRaises(EmptyBillError):
            self.orchestrator.create_sale_bill(bill_data={"customer_id": self.customer.id}, items=[])

        with self.assertRaises(InvalidQuantity):
            self._sale(qty=0)

        with self.assertRaises(ValidationError):
            self._sale(price="0")

        with self.assertRaises(ValidationError):
            self.orchestrator.create_sale_bill(
                bill_data={},
                items=[{"product_id": self.product.id, "quantity": 1, "price": "1"}],
            )

        Customer.objects.filter(id=self.customer.id).update(is_active=False)
        with self.assertRaises(ValidationError):
            self._sale(qty=1)

        self.assertEqual(Bill.objects.count(), 0)
        self.assertEqual(self._stock(), 50)

    def test_generated_and_supplied_numbers(self):
        bill = self._sale(qty=1)
        self.assertRegex(bill.number, r"^SALE-\d{8}-[0-9A-F]{6}$")

        self._sale(qty=1, number="INV-1")
        with self.assertRaises(DuplicateBillNumber):
            self._sale(qty=1, number="INV-1")

    @override_settings(BILL_DEFAULT_DUE_MONTHS=1)
    def test_due_date_defaults_to_one_month_later(self):
        bill = self._sale(qty=1, invoice_date="2026-01-31")

        self.assertEqual(bill.invoice_date, datetime.date(2026, 1, 31))
        self.assertEqual(bill.due_date, datetime.date(2026, 2, 28))

    def test_totals_stored_on_bill_and_lines(self):
        bill = self.orchestrator.create_sale_bill(
            bill_data={"customer_id": self.customer.id, "discount": "10", "discount_type": "percentage"},
            items=[{"product_id": self.product.id, "quantity": 3, "price": "19.99", "discount": "10", "tax": "5"}],
        )
        item = bill.items.get()

        self.assertEqual(item.line_subtotal, Decimal("59.97"))
        self.assertEqual(item.line_discount, Decimal("6.00"))
        self.assertEqual(item.line_tax, Decimal("2.70"))
        self.assertEqual(item.line_total, Decimal("56.67"))
        self.assertEqual(bill.discount_amount, Decimal("11.67"))
        self.assertEqual(bill.net_amount, Decimal("51.00"))

    def test_voucher_created_with_payment(self):
        bill = self.orchestrator.create_sale_bill(
            bill_data={"customer_id": self.customer.id, "paid_amount": "40"},
            items=[{"product_id": self.product.id, "quantity": 10, "price": "10"}],
            money_box=self.box,
            create_voucher=True,
        )

        voucher = PaymentVoucher.objects.get(bill=bill)
        self.assertEqual(voucher.voucher_type, PaymentVoucher.VoucherType.RECEIPT)
        self.assertEqual(voucher.amount, Decimal("40.00"))
        self.assertEqual(voucher.money_box_id, self.box.id)

        with self.assertRaises(ValidationError):
            self.orchestrator.create_payment_voucher(bill, amount="41")

    def test_router_notified_once_per_bill(self):
        self.router.calls.clear()

        with self.captureOnCommitCallbacks(execute=True):
            self.orchestrator.create_sale_bill(
                bill_data={"customer_id": self.customer.id},
                items=[
                    {"product_id": self.product.id, "quantity": 1, "price": "10"},
                    {"product_id": self.product.id, "quantity": 2, "price": "10"},
                ],
            )

        self.assertEqual(len(self.router.calls), 1)
        self.assertIn(DataType.BILLS, self.router.calls[0])
        self.assertIn(DataType.INVENTORY, self.router.calls[0])


class PurchaseBillTests(BillingTestMixin, TestCase):
    """
    Purchase bills.

    GUARANTEES:
    - Goods come in at the line's location, priced at the line cost
    - Paying a supplier draws on the money box and never overdraws it
    """

    def _purchase(self, qty=20, price="6.00", paid="0", money_box=None):
        return self.orchestrator.create_purchase_bill(
            bill_data={"supplier_id": self.supplier.id, "paid_amount": paid},
            items=[{"product_id": self.product.id, "quantity": qty, "price": price}],
            money_box=money_box,
        )

    def test_purchase_increments_stock_and_supplier_balance(self):
        bill = self._purchase(qty=20, paid="50")

        self.assertEqual(self._stock(), 70)
        self.assertEqual(bill.net_amount, Decimal("120.00"))
        self.supplier.refresh_from_db()
        self.assertEqual(self.supplier.current_balance, Decimal("70.00"))
        movement = StockMovement.objects.get(reference_type="purchase", reference_id=str(bill.id))
        self.assertEqual(movement.unit_cost, Decimal("6.00"))

    def test_paid_purchase_withdraws_from_money_box(self):
        CounterpartyLedgers().deposit(self.box, "200")

        self._purchase(qty=20, paid="120", money_box=self.box)

        self.box.refresh_from_db()
        self.assertEqual(self.box.balance, Decimal("80.00"))

    def test_insufficient_funds_rolls_back_purchase(self):
        with self.assertRaises(ConflictError) as ctx:
            self._purchase(qty=20, paid="120", money_box=self.box)

        self.assertEqual(ctx.exception.code, "insufficient_funds")
        self.assertEqual(Bill.objects.filter(kind=Bill.Kind.PURCHASE).count(), 0)
        self.assertEqual(self._stock(), 50)

    def test_sale_requires_customer_and_purchase_requires_supplier(self):
        with self.assertRaises(ValidationError):
            self.orchestrator.create_purchase_bill(
                bill_data={"customer_id": self.customer.id},
                items=[{"product_id": self.product.id, "quantity": 1, "price": "1"}],
            )


class ReturnBillTests(BillingTestMixin, TestCase):
    """
    Returns against sale bills.

    GUARANTEES:
    - Returned quantity per original line never exceeds what was sold
    - Goods come back to the line's location
    - The original's status tracks how much has been returned
    """

    def test_return_limits_and_status(self):
        sale = self._sale(qty=10)

        with self.assertRaises(ReturnQuantityExceeded) as ctx:
            self._return(sale, 11)
        self.assertEqual(ctx.exception.available, 10)
        self.assertEqual(ctx.exception.requested, 11)

        first = self._return(sale, 4)
        sale.refresh_from_db()
        self.assertEqual(sale.status, Bill.Status.PARTIALLY_RETURNED)
        self.assertEqual(first.original_bill_id, sale.id)
        self.assertEqual(first.customer_id, self.customer.id)
        self.assertEqual(self._stock(), 44)

        self._return(sale, 6)
        sale.refresh_from_db()
        self.assertEqual(sale.status, Bill.Status.RETURNED)
        self.assertEqual(self._stock(), 50)

        with self.assertRaises(ReturnQuantityExceeded) as ctx:
            self._return(sale, 1)
        self.assertEqual(ctx.exception.available, 0)

    def test_return_reduces_customer_debt(self):
        sale = self._sale(qty=10)

        ret = self._return(sale, 4)

        self.assertEqual(ret.net_amount, Decimal("40.00"))
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.current_balance, Decimal("60.00"))

    def test_refund_withdraws_from_money_box(self):
        sale = self._sale(qty=10, paid="100", money_box=self.box)

        self._return(sale, 4, paid="40", money_box=self.box)

        self.box.refresh_from_db()
        self.assertEqual(self.box.balance, Decimal("60.00"))
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.current_balance, Decimal("0.00"))

    def test_return_prorates_header_discount(self):
        sale = self.orchestrator.create_sale_bill(
            bill_data={"customer_id": self.customer.id, "discount": "20"},
            items=[{"product_id": self.product.id, "quantity": 10, "price": "10"}],
        )

        ret = self._return(sale, 5)

        self.assertEqual(ret.discount_amount, Decimal("10.00"))
        self.assertEqual(ret.net_amount, Decimal("40.00"))

    def test_return_of_a_return_is_rejected(self):
        ret = self._return(self._sale(qty=2), 1)

        with self.assertRaises(ValidationError):
            self.orchestrator.create_return_bill(
                return_data={"original_bill_id": ret.id},
                items=[{"original_item_id": ret.items.get().id, "quantity": 1}],
            )

    def test_item_from_another_bill_is_rejected(self):
        sale_a = self._sale(qty=2)
        sale_b = self._sale(qty=2)

        with self.assertRaises(NotFoundError):
            self.orchestrator.create_return_bill(
                return_data={"original_bill_id": sale_a.id},
                items=[{"original_item_id": sale_b.items.get().id, "quantity": 1}],
            )


class DeleteBillTests(BillingTestMixin, TestCase):
    """
    Bill deletion.

    GUARANTEES:
    - Movements are reversed, never deleted
    - Balance and cash effects are undone
    - A bill with returns cannot be deleted
    - Vouchers outlive the bill
    """

    def test_delete_reverses_movements_balance_and_cash(self):
        sale = self.orchestrator.create_sale_bill(
            bill_data={"customer_id": self.customer.id, "paid_amount": "30"},
            items=[{"product_id": self.product.id, "quantity": 10, "price": "10"}],
            money_box=self.box,
            create_voucher=True,
        )
        self.orchestrator.update_payment_status(sale, paid_amount="50")

        result = self.orchestrator.delete_bill(sale)

        self.assertEqual(result["reversed_movements"], 1)
        self.assertFalse(Bill.objects.filter(id=sale.id).exists())
        self.assertEqual(self._stock(), 50)
        self.assertEqual(StockMovement.objects.filter(product=self.product).count(), 3)

        self.customer.refresh_from_db()
        self.box.refresh_from_db()
        self.assertEqual(self.customer.current_balance, Decimal("0.00"))
        self.assertEqual(self.box.balance, Decimal("0.00"))
        undo = MoneyBoxTransaction.objects.get(reference_type="bill_deleted")
        self.assertEqual(undo.amount, Decimal("50.00"))

        voucher = PaymentVoucher.objects.get()
        self.assertIsNone(voucher.bill_id)
        self.assertEqual(voucher.bill_number, sale.number)

    def test_bill_with_returns_cannot_be_deleted(self):
        sale = self._sale(qty=5)
        self._return(sale, 1)

        with self.assertRaises(BillHasReturns):
            self.orchestrator.delete_bill(sale)
        self.assertTrue(Bill.objects.filter(id=sale.id).exists())

    def test_deleting_return_restores_original_status(self):
        sale = self._sale(qty=5)
        ret = self._return(sale, 5)
        sale.refresh_from_db()
        self.assertEqual(sale.status, Bill.Status.RETURNED)

        self.orchestrator.delete_bill(ret)

        sale.refresh_from_db()
        self.assertEqual(sale.status, Bill.Status.COMPLETED)
        self.assertEqual(self._stock(), 45)
