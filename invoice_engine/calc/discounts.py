"""Discount variants: conversion from loose fields, validation and amounts."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from invoice_engine.calc.errors import ValidationError
from invoice_engine.calc.models import (
    NO_DISCOUNT,
    Discount,
    FixedDiscount,
    NoDiscount,
    PercentageDiscount,
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _to_decimal(v: Any) -> Decimal | None:
    if v is None or v == "":
        return None
    try:
        return Decimal(str(v))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Not a number: {v!r}")


def discount_from_fields(discount_type: Optional[str], discount_value: Any) -> Discount:
    """Map legacy ``discount_type``/``discount_value`` columns to a discount variant.

    A type without a value, a value without a type, or a zero value all mean
    "no discount", as stored rows written by older editors do.
    """
    value = _to_decimal(discount_value)
    if not discount_type or value is None or value == ZERO:
        return NO_DISCOUNT
    if discount_type == "percentage":
        return PercentageDiscount(value=value)
    if discount_type == "fixed":
        return FixedDiscount(value=value)
    raise ValidationError(f"Unknown discount type: {discount_type!r}")


def discount_to_fields(discount: Discount) -> tuple[Optional[str], Optional[Decimal]]:
    if isinstance(discount, NoDiscount):
        return None, None
    return discount.kind, discount.value


def validate_discount(discount: Discount, max_amount: Decimal | None = None) -> None:
    """Reject negative values, percentages above 100 and fixed amounts above ``max_amount``."""
    if isinstance(discount, NoDiscount):
        return
    if discount.value < ZERO:
        raise ValidationError("Discount value cannot be negative")
    if isinstance(discount, PercentageDiscount) and discount.value > HUNDRED:
        raise ValidationError("Percentage discount cannot exceed 100%")
    if isinstance(discount, FixedDiscount) and max_amount is not None and discount.value > max_amount:
        raise ValidationError(f"Fixed discount cannot exceed {max_amount}")


def discount_amount(base: Decimal, discount: Discount) -> Decimal:
    """Effective discount on ``base``, never more than ``base`` itself (unrounded)."""
    if base <= ZERO or isinstance(discount, NoDiscount):
        return ZERO
    if isinstance(discount, PercentageDiscount):
        return min(base, base * discount.value / HUNDRED)
    return min(base, discount.value)
