# common/tests/test_common.py

from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.test import SimpleTestCase
from rest_framework import exceptions as drf_exceptions

from common.exception_handler import api_exception_handler
from common.exceptions import ConflictError, ConstraintError, NotFoundError, ValidationError
from common.numbers import money, percent, to_decimal, to_int
from common.pagination import paginate_values


class NumberCoercionTests(SimpleTestCase):
    """
    GUARANTEES:
    - Money is 2dp ROUND_HALF_UP
    - Quantities are whole numbers; bools are rejected
    """

    def test_money_rounding(self):
        self.assertEqual(money("2.675"), Decimal("2.68"))
        self.assertEqual(money(None), Decimal("0.00"))

    def test_to_decimal(self):
        self.assertEqual(to_decimal("", default="0"), Decimal("0.00"))
        with self.assertRaises(ValidationError):
            to_decimal(None, field_name="price")
        with self.assertRaises(ValidationError):
            to_decimal("abc")
        with self.assertRaises(ValidationError):
            to_decimal(True)

    def test_to_int(self):
        self.assertEqual(to_int("7"), 7)
        self.assertEqual(to_int(Decimal("3.0")), 3)
        for bad in ("2.5", True, "x", None):
            with self.assertRaises(ValidationError):
                to_int(bad)

    def test_percent_range(self):
        self.assertEqual(percent(None), Decimal("0.00"))
        with self.assertRaises(ValidationError):
            percent("100.01")


class ExceptionHandlerTests(SimpleTestCase):
    """
    GUARANTEES:
    - Every failure renders {success: false, message, code}
    - Domain errors keep their own status code and error details
    """

    def _handle(self, exc):
        return api_exception_handler(exc, {"view": None})

    def test_domain_errors(self):
        cases = [
            (ValidationError("bad"), 400, "validation_error"),
            (NotFoundError("missing"), 404, "not_found"),
            (ConflictError("clash", errors={"available": 1}), 409, "conflict"),
            (ConstraintError("blocked"), 400, "constraint_violation"),
        ]
        for exc, status_code, code in cases:
            res = self._handle(exc)
            self.assertEqual(res.status_code, status_code)
            self.assertFalse(res.data["success"])
            self.assertEqual(res.data["code"], code)
            self.assertEqual(res.data["message"], exc.message)

        self.assertEqual(self._handle(cases[2][0]).data["errors"], {"available": 1})

    def test_drf_validation_error(self):
        res = self._handle(drf_exceptions.ValidationError({"name": ["This field is required."]}))

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["message"], "name: This field is required.")
        self.assertEqual(res.data["errors"], {"name": ["This field is required."]})

    def test_django_validation_and_integrity_errors(self):
        res = self._handle(DjangoValidationError("StockMovement records are immutable"))
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["message"], "StockMovement records are immutable")

        res = self._handle(IntegrityError("duplicate key"))
        self.assertEqual(res.status_code, 409)

    def test_not_authenticated(self):
        res = self._handle(drf_exceptions.NotAuthenticated())

        self.assertEqual(res.status_code, 401)
        self.assertEqual(res.data["code"], "not_authenticated")


class PaginateValuesTests(SimpleTestCase):
    def test_slices_and_reports(self):
        rows, meta = paginate_values(list(range(7)), page=2, limit=3)

        self.assertEqual(rows, [3, 4, 5])
        self.assertEqual(meta, {"page": 2, "limit": 3, "total": 7, "pages": 3})
