"""Invoice access helpers: snapshot loads, totals write-back and reminder bookkeeping."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from invoice_engine.calc.models import InvoiceStatus, InvoiceTotals, LineItem
from invoice_engine.db.models import Invoice

# Statuses a reminder can still be issued for
OPEN_STATUSES = (
    InvoiceStatus.SENT.value,
    InvoiceStatus.OVERDUE.value,
    InvoiceStatus.REMINDED_1.value,
    InvoiceStatus.REMINDED_2.value,
)


def get_invoice_with_items(db: Session, invoice_id: int) -> Optional[Invoice]:
    return (
        db.query(Invoice)
        .options(joinedload(Invoice.items))
        .filter(Invoice.id == invoice_id)
        .one_or_none()
    )


def list_open_invoices(db: Session) -> list[Invoice]:
    return (
        db.query(Invoice)
        .filter(Invoice.status.in_(OPEN_STATUSES))
        .order_by(Invoice.due_date.asc())
        .all()
    )


def list_reminded_invoices(db: Session, limit: int = 100) -> list[Invoice]:
    """Invoices that have had at least one reminder, most recently reminded first."""
    return (
        db.query(Invoice)
        .filter(Invoice.last_reminder_date.is_not(None))
        .order_by(Invoice.last_reminder_sent_at.desc().nulls_last(), Invoice.created_at.desc())
        .limit(limit)
        .all()
    )


def save_totals_snapshot(db: Session, invoice: Invoice, items: list[LineItem], totals: InvoiceTotals) -> None:
    """Write renumbered items and the computed figures back onto the invoice."""
    by_id = {str(row.id): row for row in invoice.items}
    lines = {line.id: line for line in totals.lines}
    for item in items:
        row = by_id[item.id]
        line = lines[item.id]
        row.item_order = item.order
        row.discount_amount = line.discount_amount
        row.total = line.net_total
    invoice.subtotal = totals.subtotal
    invoice.tax_amount = totals.tax_amount
    invoice.total = totals.total
    invoice.global_discount_amount = totals.global_discount_amount
    db.flush()


def record_reminder_sent(
    db: Session, invoice_id: int, stage: int, expected_stage: int, sent_at: datetime
) -> bool:
    """Compare-and-set the reminder stage.

    The row is only updated while ``max_reminder_stage`` still equals
    ``expected_stage``; False means a concurrent request got there first.
    ``sent_at`` is local time; its date is stored as the reminder day.
    """
    result = db.execute(
        update(Invoice)
        .where(Invoice.id == invoice_id, Invoice.max_reminder_stage == expected_stage)
        .values(
            status=InvoiceStatus.reminded(stage).value,
            max_reminder_stage=max(expected_stage, stage),
            last_reminder_sent_at=sent_at,
            last_reminder_date=sent_at.date(),
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def mark_invoice_paid(db: Session, invoice: Invoice) -> None:
    # max_reminder_stage is left untouched on purpose: it records history.
    invoice.status = InvoiceStatus.PAID.value
    db.flush()
