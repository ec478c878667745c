"""Immutable records consumed and produced by the calculation core."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


# Discounts

class NoDiscount(_Record):
    kind: Literal["none"] = "none"


class PercentageDiscount(_Record):
    kind: Literal["percentage"] = "percentage"
    value: Decimal


class FixedDiscount(_Record):
    kind: Literal["fixed"] = "fixed"
    value: Decimal


Discount = Annotated[
    Union[NoDiscount, PercentageDiscount, FixedDiscount], Field(discriminator="kind")
]

NO_DISCOUNT = NoDiscount()


class TaxRatePolicy(_Record):
    """Tax rates an invoice may use and the rate applied when an item has none."""

    default_rate: Decimal = Decimal("19")
    allowed_rates: tuple[Decimal, ...] = (Decimal("0"), Decimal("7"), Decimal("19"))


# Line items and totals

class LineItem(_Record):
    id: str
    description: str = ""
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Optional[Decimal] = None
    discount: Discount = NO_DISCOUNT
    order: Optional[int] = None


class TaxBreakdownEntry(_Record):
    rate: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal


class LineTotals(_Record):
    id: str
    order: Optional[int] = None
    effective_tax_rate: Decimal
    pre_discount_total: Decimal
    discount_amount: Decimal
    net_total: Decimal


class InvoiceTotals(_Record):
    subtotal: Decimal
    item_discount_total: Decimal
    global_discount_amount: Decimal
    total_discount_amount: Decimal
    discounted_subtotal: Decimal
    tax_breakdown: list[TaxBreakdownEntry]
    tax_amount: Decimal
    total: Decimal
    applies_zero_tax_clause: bool
    force_zero_tax: bool
    lines: list[LineTotals] = Field(default_factory=list)


# Reminders

class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    REMINDED_1 = "reminded_1x"
    REMINDED_2 = "reminded_2x"
    REMINDED_3 = "reminded_3x"

    @classmethod
    def reminded(cls, stage: int) -> "InvoiceStatus":
        return cls(f"reminded_{stage}x")


class ReminderPolicy(_Record):
    enabled: bool = True
    days_after_due: int = 7
    days_between_stages: int = 7
    fee_stage1: Decimal = Decimal("0")
    fee_stage2: Decimal = Decimal("0")
    fee_stage3: Decimal = Decimal("0")

    def fee_for_stage(self, stage: int) -> Decimal:
        return (self.fee_stage1, self.fee_stage2, self.fee_stage3)[stage - 1]


class ReminderState(_Record):
    invoice_id: str
    status: InvoiceStatus
    due_date: date
    last_reminder_sent_at: Optional[Union[datetime, date]] = None
    max_reminder_stage_reached: int = Field(default=0, ge=0, le=3)


class ReminderEligibility(_Record):
    invoice_id: str
    next_stage: int
    is_eligible: bool
    days_since_due: int
    days_since_last_reminder: Optional[int] = None
    next_eligible_date: Optional[date] = None
    fee: Decimal = Decimal("0")
