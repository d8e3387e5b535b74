# bills/tests/test_totals.py

import datetime
from decimal import Decimal

from django.test import SimpleTestCase

from bills.services.totals import FIXED, PERCENTAGE, add_months, compute_bill, compute_line, payment_status_for
from common.exceptions import ValidationError


class BillTotalsTests(SimpleTestCase):
    """
    Bill money math.

    GUARANTEES:
    - 2dp ROUND_HALF_UP at every step
    - Header discount applies after line totals, header tax after discount
    - Payment status is derived from paid vs net only
    """

    def test_line_math(self):
        line = compute_line(3, "19.99", Decimal("10"), Decimal("5"))

        self.assertEqual(line.subtotal, Decimal("59.97"))
        self.assertEqual(line.discount, Decimal("6.00"))
        self.assertEqual(line.tax, Decimal("2.70"))
        self.assertEqual(line.total, Decimal("56.67"))

    def test_fixed_discount_and_header_tax(self):
        lines = [compute_line(2, "50.00"), compute_line(1, "25.00")]

        totals = compute_bill(lines, discount="25", discount_type=FIXED, tax_rate="10")

        self.assertEqual(totals.subtotal, Decimal("125.00"))
        self.assertEqual(totals.discount_amount, Decimal("25.00"))
        self.assertEqual(totals.tax_amount, Decimal("10.00"))
        self.assertEqual(totals.net_amount, Decimal("110.00"))

    def test_percentage_discount(self):
        totals = compute_bill([compute_line(1, "80.00")], discount="12.5", discount_type=PERCENTAGE)

        self.assertEqual(totals.header_discount, Decimal("10.00"))
        self.assertEqual(totals.net_amount, Decimal("70.00"))

    def test_discount_bounds(self):
        lines = [compute_line(1, "10.00")]

        with self.assertRaises(ValidationError):
            compute_bill(lines, discount="10.01", discount_type=FIXED)
        with self.assertRaises(ValidationError):
            compute_bill(lines, discount="101", discount_type=PERCENTAGE)
        with self.assertRaises(ValidationError):
            compute_bill(lines, discount="-1", discount_type=FIXED)
        with self.assertRaises(ValidationError):
            compute_bill(lines, discount="1", discount_type="bogus")

    def test_payment_status(self):
        self.assertEqual(payment_status_for("100", "100"), "paid")
        self.assertEqual(payment_status_for("100", "40"), "partial")
        self.assertEqual(payment_status_for("100", "0"), "unpaid")
        self.assertEqual(payment_status_for("0", "0"), "paid")

    def test_add_months_clamps_to_month_end(self):
        self.assertEqual(add_months(datetime.date(2026, 1, 31), 1), datetime.date(2026, 2, 28))
        self.assertEqual(add_months(datetime.date(2026, 11, 15), 3), datetime.date(2027, 2, 15))
