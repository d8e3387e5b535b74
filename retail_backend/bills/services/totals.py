# bills/services/totals.py

"""
BILL TOTALS (pure functions, no DB)

Order of application:
1. line_subtotal = qty * price
2. line discount% on the line subtotal
3. line tax% on the discounted line amount
4. header discount (fixed amount, or % of the discounted items total)
5. header tax_rate on the amount left after the header discount

add_months() derives default due dates (month-end clamped).

Every stored amount is quantized to 2dp ROUND_HALF_UP.
"""

from __future__ import annotations

import calendar
import datetime
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from common.exceptions import ValidationError
from common.numbers import HUNDRED, ZERO, money

FIXED = "fixed"
PERCENTAGE = "percentage"


@dataclass(frozen=True)
class LineTotals:
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal


@dataclass(frozen=True)
class BillTotals:
    subtotal: Decimal
    items_total: Decimal
    header_discount: Decimal
    header_tax: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    net_amount: Decimal
    lines: tuple[LineTotals, ...]


def compute_line(quantity: int, price, discount_percent=ZERO, tax_percent=ZERO) -> LineTotals:
    subtotal = money(Decimal(int(quantity)) * money(price))
    discount = money(subtotal * Decimal(discount_percent) / HUNDRED)
    tax = money((subtotal - discount) * Decimal(tax_percent) / HUNDRED)
    return LineTotals(
        subtotal=subtotal,
        discount=discount,
        tax=tax,
        total=money(subtotal - discount + tax),
    )


def compute_bill(lines: Iterable[LineTotals], *, discount=ZERO, discount_type: str = FIXED, tax_rate=ZERO) -> BillTotals:
    lines = tuple(lines)
    subtotal = money(sum((l.subtotal for l in lines), ZERO))
    items_total = money(sum((l.total for l in lines), ZERO))

    discount = money(discount)
    if discount < ZERO:
        raise ValidationError("discount cannot be negative", errors={"discount": str(discount)})

    if discount_type == PERCENTAGE:
        if discount > HUNDRED:
            raise ValidationError("Percentage discount cannot exceed 100", errors={"discount": str(discount)})
        header_discount = money(items_total * discount / HUNDRED)
    elif discount_type == FIXED:
        if discount > items_total:
            raise ValidationError(
                f"Discount cannot exceed the items total. Total: {items_total}, Discount: {discount}",
                errors={"discount": str(discount), "items_total": str(items_total)},
            )
        header_discount = discount
    else:
        raise ValidationError(f"Invalid discount_type: {discount_type}", errors={"discount_type": discount_type})

    taxable = items_total - header_discount
    header_tax = money(taxable * Decimal(tax_rate) / HUNDRED)

    return BillTotals(
        subtotal=subtotal,
        items_total=items_total,
        header_discount=header_discount,
        header_tax=header_tax,
        discount_amount=money(sum((l.discount for l in lines), ZERO) + header_discount),
        tax_amount=money(sum((l.tax for l in lines), ZERO) + header_tax),
        net_amount=money(taxable + header_tax),
        lines=lines,
    )


def payment_status_for(net_amount, paid_amount) -> str:
    net = money(net_amount)
    paid = money(paid_amount)
    if paid >= net:
        return "paid"
    if paid > ZERO:
        return "partial"
    return "unpaid"


def remaining_for(net_amount, paid_amount) -> Decimal:
    return money(money(net_amount) - money(paid_amount))


def add_months(day: datetime.date, months: int) -> datetime.date:
    """Same day `months` later, clamped to the last day of a shorter month."""
    index = day.month - 1 + months
    year = day.year + index // 12
    month = index % 12 + 1
    return day.replace(year=year, month=month, day=min(day.day, calendar.monthrange(year, month)[1]))
