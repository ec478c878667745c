"""Build immutable core snapshots from persisted rows."""

from __future__ import annotations

from decimal import Decimal

from invoice_engine.calc.discounts import discount_from_fields
from invoice_engine.calc.models import (
    NO_DISCOUNT,
    Discount,
    InvoiceStatus,
    LineItem,
    ReminderPolicy,
    ReminderState,
    TaxRatePolicy,
)
from invoice_engine.calc.ordering import sort_by_order
from invoice_engine.core.config import get_settings
from invoice_engine.db.models import Company, Invoice


def tax_policy_from_settings() -> TaxRatePolicy:
    settings = get_settings()
    return TaxRatePolicy(default_rate=settings.DEFAULT_TAX_RATE, allowed_rates=settings.ALLOWED_TAX_RATES)


def _discounts_enabled(company: Company | None) -> bool:
    return company is None or bool(company.discounts_enabled)


def build_line_items(invoice: Invoice, company: Company | None) -> list[LineItem]:
    """Items in display order; stored discounts are ignored while the company has discounts off."""
    use_discounts = _discounts_enabled(company)
    items = [
        LineItem(
            id=str(row.id),
            description=row.description or "",
            quantity=row.quantity,
            unit_price=row.unit_price,
            tax_rate=row.tax_rate,
            discount=discount_from_fields(row.discount_type, row.discount_value) if use_discounts else NO_DISCOUNT,
            order=row.item_order,
        )
        for row in invoice.items
    ]
    return sort_by_order(items)


def build_global_discount(invoice: Invoice, company: Company | None) -> Discount:
    if not _discounts_enabled(company):
        return NO_DISCOUNT
    return discount_from_fields(invoice.global_discount_type, invoice.global_discount_value)


def force_zero_tax(company: Company | None) -> bool:
    return bool(company and company.is_small_business)


def _or_default(value, default):
    return default if value is None else value


def policy_from_company(company: Company | None) -> ReminderPolicy:
    settings = get_settings()
    if company is None:
        return ReminderPolicy(
            enabled=False,
            days_after_due=settings.DEFAULT_REMINDER_DAYS_AFTER_DUE,
            days_between_stages=settings.DEFAULT_REMINDER_DAYS_BETWEEN,
        )
    return ReminderPolicy(
        enabled=bool(company.reminders_enabled),
        days_after_due=_or_default(company.reminder_days_after_due, settings.DEFAULT_REMINDER_DAYS_AFTER_DUE),
        days_between_stages=_or_default(company.reminder_days_between, settings.DEFAULT_REMINDER_DAYS_BETWEEN),
        fee_stage1=_or_default(company.reminder_fee_stage1, Decimal("0")),
        fee_stage2=_or_default(company.reminder_fee_stage2, Decimal("0")),
        fee_stage3=_or_default(company.reminder_fee_stage3, Decimal("0")),
    )


def build_reminder_state(invoice: Invoice) -> ReminderState:
    return ReminderState(
        invoice_id=str(invoice.id),
        status=InvoiceStatus(invoice.status),
        due_date=invoice.due_date,
        # the stored local calendar day; sent_at may come back from the database in UTC
        last_reminder_sent_at=invoice.last_reminder_date or invoice.last_reminder_sent_at,
        max_reminder_stage_reached=invoice.max_reminder_stage or 0,
    )
