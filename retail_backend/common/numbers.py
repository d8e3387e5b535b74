# common/numbers.py

"""
NUMERIC COERCION HELPERS

Rules:
- Money is Decimal quantized to 2dp with ROUND_HALF_UP.
- Quantities are integers (bool is rejected even though it subclasses int).
- Bad input raises common.exceptions.ValidationError naming the field.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from common.exceptions import ValidationError

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def money(value) -> Decimal:
    return Decimal(str(value or "0")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def to_decimal(value, *, field_name: str = "value", default=None) -> Decimal:
    if value is None or value == "":
        if default is not None:
            return money(default)
        raise ValidationError(f"{field_name} is required", errors={field_name: ["required"]})
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number", errors={field_name: ["invalid"]})
    try:
        return money(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationError(
            f"{field_name} must be a valid decimal", errors={field_name: ["invalid"]}
        ) from exc


def to_int(value, *, field_name: str = "value") -> int:
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required", errors={field_name: ["required"]})
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer", errors={field_name: ["invalid"]})
    try:
        as_decimal = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationError(
            f"{field_name} must be an integer", errors={field_name: ["invalid"]}
        ) from exc
    if as_decimal != as_decimal.to_integral_value():
        raise ValidationError(f"{field_name} must be an integer", errors={field_name: ["invalid"]})
    return int(as_decimal)


def percent(value, *, field_name: str = "percent") -> Decimal:
    pct = to_decimal(value, field_name=field_name, default="0")
    if pct < ZERO or pct > HUNDRED:
        raise ValidationError(
            f"{field_name} must be between 0 and 100", errors={field_name: ["out_of_range"]}
        )
    return pct
