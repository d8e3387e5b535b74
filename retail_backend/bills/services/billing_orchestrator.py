# bills/services/billing_orchestrator.py

"""
======================================================
PATH: bills/services/billing_orchestrator.py
======================================================
BILLING ORCHESTRATOR (APPLICATION SERVICE)

Purpose:
- Create sale / purchase / return bills, update payments, delete bills and
  emit payment vouchers, each as ONE atomic unit of work:
  header + lines + ledger movements + counterparty balance + cash + voucher.

Hard rules:
- Input is validated before the first write (items, quantities, prices,
  percents, counterparty, products, locations, paid vs net).
- Quantities only change through StockLedger.record_movement / reverse.
  Any ledger failure (insufficient stock, capacity, inactive location)
  rolls the whole bill back.
- Money is computed server-side (bills.services.totals), 2dp ROUND_HALF_UP.
- Payment updates apply only the DELTA (new paid - previous paid, previous
  read under a row lock) to the counterparty and to the money box.
- Deleting a bill never deletes movements: each one is reversed.
- The invalidation router is notified once per operation, on commit, with
  the data types from OPERATION_DATA_TYPES. A rolled-back operation
  notifies nothing.
"""

from __future__ import annotations

import datetime
import logging
import secrets
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone
from django.utils.dateparse import parse_date

from caching.router import InvalidationRouter, get_invalidation_router
from common.exceptions import InternalError, NotFoundError, ValidationError
from common.numbers import ZERO, money, percent, to_decimal, to_int
from counterparties.models import MoneyBoxTransaction
from counterparties.services import CounterpartyLedgers
from products.models import Product, StockMovement
from products.services.exceptions import InvalidQuantity, LocationInactive, LocationNotFound, ProductNotFound
from products.services.stock_ledger import StockLedger
from stocks.models import Stock
from stocks.services.stock_service import get_main_stock

from bills.models import Bill, BillItem, PaymentVoucher
from bills.services.bill_kinds import (
    STRATEGIES,
    BillKind,
    BillKindStrategy,
    Operation,
    OPERATION_DATA_TYPES,
    return_strategy_for,
    strategy_for,
)
from bills.services.exceptions import (
    BillHasReturns,
    BillNotFound,
    DuplicateBillNumber,
    EmptyBillError,
    OverpaymentError,
    ReturnQuantityExceeded,
)
from bills.services.totals import FIXED, add_months, compute_bill, compute_line, payment_status_for, remaining_for

logger = logging.getLogger("billing")

TT = MoneyBoxTransaction.TransactionType


@dataclass
class _Line:
    product: Product
    stock: Stock
    quantity: int
    price: Decimal
    discount_percent: Decimal = ZERO
    tax_percent: Decimal = ZERO
    original_item: BillItem | None = None


def _pk(value):
    return getattr(value, "pk", value)


def _as_date(value, *, field_name: str) -> datetime.date | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        parsed = parse_date(str(value).strip())
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)", errors={field_name: ["invalid"]})
    return parsed


def default_due_date(invoice_date: datetime.date) -> datetime.date:
    return add_months(invoice_date, int(getattr(settings, "BILL_DEFAULT_DUE_MONTHS", 1)))


class BillingOrchestrator:
    """
    Application service for every bill write.

        orchestrator = BillingOrchestrator()                 # API default
        orchestrator = BillingOrchestrator(router=recorder)  # tests

    The ledger is used without its own router so a bill with N lines still
    produces exactly one invalidation.
    """

    def __init__(
        self,
        *,
        ledger: StockLedger | None = None,
        counterparties: CounterpartyLedgers | None = None,
        router: InvalidationRouter | None = None,
    ):
        self.ledger = ledger or StockLedger()
        self.counterparties = counterparties or CounterpartyLedgers()
        self.router = router or get_invalidation_router()

    # -----------------------------
    # Public operations
    # -----------------------------
    def create_sale_bill(self, *, bill_data: dict, items: list, money_box=None, create_voucher: bool = False, user=None) -> Bill:
        return self._create_trade_bill(
            STRATEGIES[BillKind.SALE],
            Operation.CREATE_SALE,
            bill_data=bill_data,
            items=items,
            money_box=money_box,
            create_voucher=create_voucher,
            user=user,
        )

    def create_purchase_bill(self, *, bill_data: dict, items: list, money_box=None, create_voucher: bool = False, user=None) -> Bill:
        return self._create_trade_bill(
            STRATEGIES[BillKind.PURCHASE],
            Operation.CREATE_PURCHASE,
            bill_data=bill_data,
            items=items,
            money_box=money_box,
            create_voucher=create_voucher,
            user=user,
        )

    @transaction.atomic
    def create_return_bill(self, *, return_data: dict, items: list, money_box=None, create_voucher: bool = False, user=None) -> Bill:
        return_data = return_data or {}

        original_id = return_data.get("original_bill_id")
        if not original_id:
            raise ValidationError("original_bill_id is required", errors={"original_bill_id": ["required"]})
        original = self._lock_bill(original_id, label="Original bill")

        if original.kind == Bill.Kind.RETURN:
            raise ValidationError("A return bill cannot be returned", errors={"original_bill_id": str(original.id)})
        if original.status == Bill.Status.CANCELLED:
            raise ValidationError("A cancelled bill cannot be returned", errors={"original_bill_id": str(original.id)})

        strategy = return_strategy_for(original)
        lines = self._parse_return_lines(original, items)

        line_totals = [
            compute_line(l.quantity, l.price, l.discount_percent, l.tax_percent) for l in lines
        ]
        items_total = money(sum((t.total for t in line_totals), ZERO))
        totals = compute_bill(
            line_totals,
            discount=self._prorated_header_discount(original, items_total),
            discount_type=FIXED,
            tax_rate=original.tax_rate,
        )

        paid = to_decimal(return_data.get("paid_amount"), field_name="paid_amount", default="0")
        self._check_paid(paid, totals.net_amount)

        return_date = _as_date(return_data.get("return_date"), field_name="return_date") or timezone.localdate()
        payment_method = self._payment_method(return_data.get("payment_method"), strategy)
        box = self.counterparties.money_box(money_box) if money_box else None
        number = self._bill_number(strategy, return_data.get("number"), return_date)

        bill = Bill.objects.create(
            kind=Bill.Kind.RETURN,
            number=number,
            customer_id=original.customer_id,
            supplier_id=original.supplier_id,
            original_bill=original,
            invoice_date=return_date,
            due_date=return_date,
            discount_type=FIXED,
            discount=totals.header_discount,
            tax_rate=original.tax_rate,
            subtotal=totals.subtotal,
            discount_amount=totals.discount_amount,
            tax_amount=totals.tax_amount,
            net_amount=totals.net_amount,
            paid_amount=paid,
            remaining_amount=remaining_for(totals.net_amount, paid),
            payment_method=payment_method,
            payment_status=payment_status_for(totals.net_amount, paid),
            status=Bill.Status.COMPLETED,
            money_box=box,
            reason=(return_data.get("reason") or "").strip()[:255],
            notes=(return_data.get("notes") or "").strip(),
            created_by=self._user(user),
        )

        self._write_lines(bill, strategy, lines, totals.lines, user=user)
        self._apply_balance(strategy, bill, strategy.balance_sign * bill.remaining_amount, reason=f"return {bill.number}")
        if box is not None:
            self._move_cash(strategy, box, bill, paid, direction=strategy.cash_direction, user=user)
        if create_voucher and paid > ZERO:
            self._emit_voucher(bill, strategy, paid, user=user)

        self._refresh_return_status(original)
        self._notify(Operation.CREATE_RETURN)

        logger.info(
            "Return bill created",
            extra={
                "bill_id": str(bill.id),
                "number": bill.number,
                "original_bill_id": str(original.id),
                "kind": strategy.kind.value,
                "net_amount": str(bill.net_amount),
                "refunded": str(paid),
                "lines": len(lines),
            },
        )
        return bill

    @transaction.atomic
    def update_payment_status(
        self,
        bill,
        *,
        paid_amount,
        payment_method: str | None = None,
        money_box=None,
        create_voucher: bool = False,
        user=None,
    ) -> Bill:
        bill = self._lock_bill(bill)
        if bill.status == Bill.Status.CANCELLED:
            raise ValidationError("Cannot update payment of a cancelled bill", errors={"bill_id": str(bill.id)})

        strategy = strategy_for(bill)

        new_paid = to_decimal(paid_amount, field_name="paid_amount")
        self._check_paid(new_paid, bill.net_amount)

        if money_box and bill.money_box_id is None:
            bill.money_box = self.counterparties.money_box(money_box)
        elif money_box and str(_pk(money_box)) != str(bill.money_box_id):
            raise ValidationError(
                "Bill is already linked to a different money box",
                errors={"money_box_id": str(_pk(money_box))},
            )

        previous = money(bill.paid_amount)
        delta = new_paid - previous

        bill.paid_amount = new_paid
        bill.remaining_amount = remaining_for(bill.net_amount, new_paid)
        bill.payment_status = payment_status_for(bill.net_amount, new_paid)
        if payment_method:
            bill.payment_method = self._payment_method(payment_method, strategy)
        bill.save(
            update_fields=[
                "paid_amount",
                "remaining_amount",
                "payment_status",
                "payment_method",
                "money_box",
                "updated_at",
            ]
        )

        self._apply_balance(strategy, bill, -strategy.balance_sign * delta, reason=f"payment {bill.number}")

        if bill.money_box_id and delta != ZERO:
            direction = strategy.cash_direction if delta > ZERO else strategy.reverse_cash_direction
            self._move_cash(strategy, bill.money_box_id, bill, abs(delta), direction=direction, user=user)

        if create_voucher and delta > ZERO:
            self._emit_voucher(bill, strategy, delta, user=user)

        self._notify(Operation.UPDATE_PAYMENT)

        logger.info(
            "Bill payment updated",
            extra={
                "bill_id": str(bill.id),
                "number": bill.number,
                "previous_paid": str(previous),
                "paid_amount": str(new_paid),
                "delta": str(delta),
                "payment_status": bill.payment_status,
            },
        )
        return bill

    @transaction.atomic
    def delete_bill(self, bill, *, user=None) -> dict:
        bill = self._lock_bill(bill)
        strategy = strategy_for(bill)

        return_numbers = list(bill.returns.values_list("number", flat=True))
        if return_numbers:
            raise BillHasReturns(errors={"returns": return_numbers})

        movements = StockMovement.objects.filter(
            reference_type=strategy.reference_type,
            reference_id=str(bill.id),
            reversal_of__isnull=True,
        ).order_by("created_at", "id")

        reversed_count = 0
        for movement in movements:
            _, created = self.ledger.reverse(movement, notes=f"Bill {bill.number} deleted", user=user)
            reversed_count += int(created)

        self._apply_balance(strategy, bill, -strategy.balance_sign * bill.remaining_amount, reason=f"delete {bill.number}")
        self._undo_cash(strategy, bill, user=user)

        PaymentVoucher.objects.filter(bill=bill).update(bill=None)

        original_id = bill.original_bill_id
        result = {"id": str(bill.id), "number": bill.number, "reversed_movements": reversed_count}
        bill.delete()

        if original_id:
            self._refresh_return_status(Bill.objects.select_for_update().get(id=original_id))

        self._notify(Operation.DELETE_BILL)

        logger.info("Bill deleted", extra={**result, "kind": strategy.kind.value})
        return result

    @transaction.atomic
    def create_payment_voucher(self, bill, *, amount=None, payment_method: str | None = None, user=None) -> PaymentVoucher:
        bill = self._lock_bill(bill)
        strategy = strategy_for(bill)

        amount = money(bill.paid_amount) if amount in (None, "") else to_decimal(amount, field_name="amount")
        if amount <= ZERO:
            raise ValidationError("Voucher amount must be greater than 0", errors={"amount": str(amount)})
        if amount > money(bill.paid_amount):
            raise ValidationError(
                f"Voucher amount cannot exceed the paid amount. Paid: {bill.paid_amount}, Requested: {amount}",
                errors={"amount": str(amount), "paid_amount": str(bill.paid_amount)},
            )

        method = self._payment_method(payment_method, strategy) if payment_method else bill.payment_method
        voucher = self._emit_voucher(bill, strategy, amount, payment_method=method, user=user)
        self._notify(Operation.CREATE_VOUCHER)
        return voucher

    # -----------------------------
    # Trade bills (sale / purchase)
    # -----------------------------
    @transaction.atomic
    def _create_trade_bill(
        self,
        strategy: BillKindStrategy,
        operation: Operation,
        *,
        bill_data: dict,
        items: list,
        money_box=None,
        create_voucher: bool = False,
        user=None,
    ) -> Bill:
        header = self._parse_header(strategy, bill_data or {})
        lines = self._parse_trade_lines(strategy, items)

        totals = compute_bill(
            [compute_line(l.quantity, l.price, l.discount_percent, l.tax_percent) for l in lines],
            discount=header["discount"],
            discount_type=header["discount_type"],
            tax_rate=header["tax_rate"],
        )
        paid = header["paid_amount"]
        self._check_paid(paid, totals.net_amount)

        if strategy.counterparty == "customer":
            counterparty = {"customer": self.counterparties.customer(header["counterparty_id"])}
        else:
            counterparty = {"supplier": self.counterparties.supplier(header["counterparty_id"])}
        box = self.counterparties.money_box(money_box) if money_box else None
        number = self._bill_number(strategy, header["number"], header["invoice_date"])

        bill = Bill.objects.create(
            kind=strategy.bill_kind,
            number=number,
            invoice_date=header["invoice_date"],
            due_date=header["due_date"],
            discount_type=header["discount_type"],
            discount=header["discount"],
            tax_rate=header["tax_rate"],
            subtotal=totals.subtotal,
            discount_amount=totals.discount_amount,
            tax_amount=totals.tax_amount,
            net_amount=totals.net_amount,
            paid_amount=paid,
            remaining_amount=remaining_for(totals.net_amount, paid),
            payment_method=header["payment_method"],
            payment_status=payment_status_for(totals.net_amount, paid),
            status=Bill.Status.COMPLETED,
            money_box=box,
            notes=header["notes"],
            created_by=self._user(user),
            **counterparty,
        )

        self._write_lines(bill, strategy, lines, totals.lines, user=user)
        self._apply_balance(strategy, bill, strategy.balance_sign * bill.remaining_amount, reason=f"{strategy.kind.value} {bill.number}")
        if box is not None:
            self._move_cash(strategy, box, bill, paid, direction=strategy.cash_direction, user=user)
        if create_voucher and paid > ZERO:
            self._emit_voucher(bill, strategy, paid, user=user)

        self._notify(operation)

        logger.info(
            "Bill created",
            extra={
                "bill_id": str(bill.id),
                "number": bill.number,
                "kind": strategy.kind.value,
                "net_amount": str(bill.net_amount),
                "paid_amount": str(bill.paid_amount),
                "payment_status": bill.payment_status,
                "lines": len(lines),
            },
        )
        return bill

    def _parse_header(self, strategy: BillKindStrategy, data: dict) -> dict:
        id_field = f"{strategy.counterparty}_id"
        counterparty_id = data.get(id_field)
        if not counterparty_id:
            raise ValidationError(f"{id_field} is required", errors={id_field: ["required"]})

        invoice_date = _as_date(data.get("invoice_date"), field_name="invoice_date") or timezone.localdate()
        due_date = _as_date(data.get("due_date"), field_name="due_date")
        if due_date is None or due_date < invoice_date:
            due_date = default_due_date(invoice_date)

        return {
            "counterparty_id": counterparty_id,
            "number": data.get("number"),
            "invoice_date": invoice_date,
            "due_date": due_date,
            "discount_type": (data.get("discount_type") or FIXED).strip().lower(),
            "discount": to_decimal(data.get("discount"), field_name="discount", default="0"),
            "tax_rate": percent(data.get("tax_rate"), field_name="tax_rate"),
            "paid_amount": to_decimal(data.get("paid_amount"), field_name="paid_amount", default="0"),
            "payment_method": self._payment_method(data.get("payment_method"), strategy),
            "notes": (data.get("notes") or "").strip(),
        }

    def _parse_trade_lines(self, strategy: BillKindStrategy, items) -> list[_Line]:
        if not items:
            raise EmptyBillError(errors={"items": ["At least one item is required"]})

        lines = []
        for idx, raw in enumerate(items):
            prefix = f"items[{idx}]"
            product = self._active_product(raw.get("product_id"), field=f"{prefix}.product_id")

            try:
                quantity = to_int(raw.get("quantity"), field_name=f"{prefix}.quantity")
            except ValidationError as exc:
                raise InvalidQuantity(exc.message, errors=exc.errors) from exc
            if quantity <= 0:
                raise InvalidQuantity(
                    f"Quantity for {product.name} must be greater than 0",
                    errors={f"{prefix}.quantity": quantity},
                )

            price = to_decimal(raw.get("price"), field_name=f"{prefix}.price")
            if price < ZERO or (strategy.requires_positive_price and price == ZERO):
                raise ValidationError(
                    f"Price for {product.name} must be greater than 0",
                    errors={f"{prefix}.price": str(price)},
                )

            lines.append(
                _Line(
                    product=product,
                    stock=self._line_stock(product, raw.get("stock_id"), field=f"{prefix}.stock_id"),
                    quantity=quantity,
                    price=price,
                    discount_percent=percent(raw.get("discount"), field_name=f"{prefix}.discount"),
                    tax_percent=percent(raw.get("tax"), field_name=f"{prefix}.tax"),
                )
            )
        return lines

    def _active_product(self, product_id, *, field: str) -> Product:
        if not product_id:
            raise ValidationError(f"{field} is required", errors={field: ["required"]})
        try:
            product = Product.objects.filter(id=product_id).first()
        except (ValueError, TypeError, DjangoValidationError):
            product = None
        if product is None:
            raise ProductNotFound(errors={field: str(product_id)})
        if not product.is_active:
            raise ValidationError(f"Product {product.name} is not active", errors={field: str(product.id)})
        return product

    def _line_stock(self, product: Product, stock_id, *, field: str) -> Stock:
        """
        item stock_id -> product's assigned location -> main location.
        """
        if stock_id:
            try:
                stock = Stock.objects.filter(id=stock_id).first()
            except (ValueError, TypeError, DjangoValidationError):
                stock = None
            if stock is None:
                raise LocationNotFound(errors={field: str(stock_id)})
        elif product.stock_id:
            stock = product.stock
        else:
            stock = get_main_stock()

        if stock is None:
            raise ValidationError(
                f"No stock location available for {product.name}",
                errors={field: ["required"]},
            )
        if not stock.is_active:
            raise LocationInactive(f"Stock {stock.name} is not active", errors={field: str(stock.id)})
        return stock

    # -----------------------------
    # Returns
    # -----------------------------
    def _parse_return_lines(self, original: Bill, items) -> list[_Line]:
        if not items:
            raise EmptyBillError(errors={"items": ["At least one item is required"]})

        lines = []
        seen = set()
        for idx, raw in enumerate(items):
            field = f"items[{idx}].original_item_id"
            item_id = raw.get("original_item_id")
            try:
                original_item = (
                    BillItem.objects.select_for_update()
                    .filter(id=item_id, bill=original)
                    .first()
                )
            except (ValueError, TypeError, DjangoValidationError):
                original_item = None
            if original_item is None:
                raise NotFoundError("Original bill item not found", errors={field: str(item_id)})
            if original_item.id in seen:
                raise ValidationError("Each original item may appear only once per return", errors={field: str(item_id)})
            seen.add(original_item.id)

            try:
                quantity = to_int(raw.get("quantity"), field_name=f"items[{idx}].quantity")
            except ValidationError as exc:
                raise InvalidQuantity(exc.message, errors=exc.errors) from exc
            if quantity <= 0:
                raise InvalidQuantity(errors={f"items[{idx}].quantity": quantity})

            available = int(original_item.quantity) - self._returned_quantity(original_item)
            if quantity > available:
                raise ReturnQuantityExceeded(
                    product_name=original_item.product.name,
                    available=available,
                    requested=quantity,
                    original_item_id=original_item.id,
                )

            if original_item.stock_id is None:
                raise ValidationError("Original line has no stock location", errors={field: str(original_item.id)})

            lines.append(
                _Line(
                    product=original_item.product,
                    stock=original_item.stock,
                    quantity=quantity,
                    price=original_item.price,
                    discount_percent=original_item.discount_percent,
                    tax_percent=original_item.tax_percent,
                    original_item=original_item,
                )
            )
        return lines

    def _returned_quantity(self, original_item: BillItem) -> int:
        return int(
            BillItem.objects.filter(original_item=original_item)
            .exclude(bill__status=Bill.Status.CANCELLED)
            .aggregate(total=Coalesce(Sum("quantity"), 0))["total"]
        )

    def _prorated_header_discount(self, original: Bill, returned_items_total: Decimal) -> Decimal:
        sums = original.items.aggregate(
            items_total=Coalesce(Sum("line_total"), Decimal("0.00")),
            line_discounts=Coalesce(Sum("line_discount"), Decimal("0.00")),
        )
        items_total = money(sums["items_total"])
        header_discount = money(original.discount_amount) - money(sums["line_discounts"])
        if items_total <= ZERO or header_discount <= ZERO:
            return ZERO
        return min(money(header_discount * returned_items_total / items_total), returned_items_total)

    def _refresh_return_status(self, original: Bill) -> None:
        returned = dict(
            BillItem.objects.filter(original_item__bill=original)
            .exclude(bill__status=Bill.Status.CANCELLED)
            .order_by()
            .values("original_item_id")
            .annotate(total=Sum("quantity"))
            .values_list("original_item_id", "total")
        )
        items = list(original.items.all())

        if items and all(returned.get(i.id, 0) >= i.quantity for i in items):
            status = Bill.Status.RETURNED
        elif any(returned.values()):
            status = Bill.Status.PARTIALLY_RETURNED
        else:
            status = Bill.Status.COMPLETED

        if original.status != status:
            original.status = status
            original.save(update_fields=["status", "updated_at"])

    # -----------------------------
    # Shared write steps
    # -----------------------------
    def _write_lines(self, bill: Bill, strategy: BillKindStrategy, lines: list[_Line], line_totals, *, user=None) -> None:
        cost_is_price = strategy.kind in (BillKind.PURCHASE, BillKind.PURCHASE_RETURN)

        for line, totals in zip(lines, line_totals):
            BillItem.objects.create(
                bill=bill,
                product=line.product,
                stock=line.stock,
                quantity=line.quantity,
                price=line.price,
                discount_percent=line.discount_percent,
                tax_percent=line.tax_percent,
                line_subtotal=totals.subtotal,
                line_discount=totals.discount,
                line_tax=totals.tax,
                line_total=totals.total,
                original_item=line.original_item,
            )
            self.ledger.record_movement(
                movement_type=strategy.movement_type,
                product=line.product,
                quantity=line.quantity,
                unit_cost=line.price if cost_is_price else None,
                reference_type=strategy.reference_type,
                reference_id=bill.id,
                reference_number=bill.number,
                notes=f"{strategy.kind.value} {bill.number}",
                user=user,
                **strategy.locations(line.stock),
            )

    def _apply_balance(self, strategy: BillKindStrategy, bill: Bill, delta, *, reason: str) -> None:
        delta = money(delta)
        if delta == ZERO:
            return
        if strategy.counterparty == "customer" and bill.customer_id:
            self.counterparties.adjust_customer_debt(bill.customer_id, delta, reason=reason)
        elif strategy.counterparty == "supplier" and bill.supplier_id:
            self.counterparties.adjust_supplier_balance(bill.supplier_id, delta, reason=reason)

    def _move_cash(self, strategy: BillKindStrategy, box, bill: Bill, amount, *, direction: str, user=None) -> None:
        if money(amount) <= ZERO:
            return
        self.counterparties.record_cash(
            box,
            transaction_type=direction,
            amount=amount,
            reference_type=strategy.reference_type,
            reference_id=bill.id,
            notes=f"Bill {bill.number}",
            user=user,
        )

    def _undo_cash(self, strategy: BillKindStrategy, bill: Bill, *, user=None) -> None:
        """
        Net every cash movement recorded for this bill (creation + payment
        deltas) and book the opposite per money box.
        """
        rows = (
            MoneyBoxTransaction.objects.filter(reference_type=strategy.reference_type, reference_id=str(bill.id))
            .order_by()
            .values("money_box_id", "transaction_type")
            .annotate(total=Sum("amount"))
        )
        net_by_box: dict = {}
        for row in rows:
            sign = 1 if row["transaction_type"] == TT.DEPOSIT else -1
            net_by_box[row["money_box_id"]] = net_by_box.get(row["money_box_id"], ZERO) + sign * money(row["total"])

        for box_id, net in net_by_box.items():
            if net == ZERO:
                continue
            self.counterparties.record_cash(
                box_id,
                transaction_type=TT.WITHDRAWAL if net > ZERO else TT.DEPOSIT,
                amount=abs(net),
                reference_type="bill_deleted",
                reference_id=bill.id,
                notes=f"Bill {bill.number} deleted",
                user=user,
            )

    def _emit_voucher(self, bill: Bill, strategy: BillKindStrategy, amount, *, payment_method=None, user=None) -> PaymentVoucher:
        voucher = PaymentVoucher.objects.create(
            bill=bill,
            bill_number=bill.number,
            voucher_type=strategy.voucher_type,
            amount=money(amount),
            payment_method=payment_method or bill.payment_method,
            money_box_id=bill.money_box_id,
            created_by=self._user(user),
        )
        logger.info(
            "Payment voucher created",
            extra={"voucher_id": str(voucher.id), "bill_id": str(bill.id), "amount": str(voucher.amount)},
        )
        return voucher

    # -----------------------------
    # Helpers
    # -----------------------------
    def _lock_bill(self, value, *, label: str = "Bill") -> Bill:
        try:
            return Bill.objects.select_for_update().get(id=_pk(value))
        except (Bill.DoesNotExist, ValueError, TypeError, DjangoValidationError):
            raise BillNotFound(f"{label} not found", errors={"bill_id": str(_pk(value))}) from None

    def _check_paid(self, paid: Decimal, net: Decimal) -> None:
        if paid < ZERO:
            raise ValidationError("paid_amount cannot be negative", errors={"paid_amount": str(paid)})
        if paid > money(net):
            raise OverpaymentError(paid=paid, net=money(net))

    def _payment_method(self, value, strategy: BillKindStrategy) -> str:
        method = (value or "").strip().lower() or strategy.default_payment_method
        if method not in Bill.PaymentMethod.values:
            raise ValidationError(
                f"Invalid payment_method: {method}",
                errors={"payment_method": [f"must be one of {', '.join(Bill.PaymentMethod.values)}"]},
            )
        return method

    def _bill_number(self, strategy: BillKindStrategy, supplied, day: datetime.date) -> str:
        supplied = (supplied or "").strip()
        if supplied:
            if Bill.objects.filter(number=supplied).exists():
                raise DuplicateBillNumber(
                    f"Bill number {supplied} already exists", errors={"number": supplied}
                )
            return supplied

        for _ in range(5):
            candidate = f"{strategy.number_prefix}-{day:%Y%m%d}-{secrets.token_hex(3).upper()}"
            if not Bill.objects.filter(number=candidate).exists():
                return candidate
        raise InternalError("Could not allocate a unique bill number")

    def _user(self, user):
        return user if getattr(user, "is_authenticated", False) else None

    def _notify(self, operation: Operation) -> None:
        router = self.router
        data_types = OPERATION_DATA_TYPES[operation]
        transaction.on_commit(lambda: router.invalidate(data_types))
