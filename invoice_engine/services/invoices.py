"""Invoice totals orchestration: load, compute, write the snapshot back."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from invoice_engine.calc.models import InvoiceTotals
from invoice_engine.calc.totals import compute_totals, totals_match_snapshot
from invoice_engine.db.crud.company import get_company
from invoice_engine.db.crud.invoices import get_invoice_with_items, save_totals_snapshot
from invoice_engine.services.snapshots import (
    build_global_discount,
    build_line_items,
    force_zero_tax,
    tax_policy_from_settings,
)

log = logging.getLogger(__name__)


def recompute_invoice(db: Session, invoice_id: int) -> Optional[InvoiceTotals]:
    """Recompute an invoice's totals and persist the snapshot. Returns None if the invoice is missing."""
    invoice = get_invoice_with_items(db, invoice_id)
    if invoice is None:
        return None
    company = get_company(db)

    items = build_line_items(invoice, company)
    totals = compute_totals(
        items,
        build_global_discount(invoice, company),
        force_zero_tax=force_zero_tax(company),
        tax_policy=tax_policy_from_settings(),
    )
    if not totals_match_snapshot(totals, invoice.subtotal, invoice.tax_amount, invoice.total):
        log.info(
            "invoice %s snapshot updated: total %s -> %s", invoice.invoice_number, invoice.total, totals.total
        )
    save_totals_snapshot(db, invoice, items, totals)
    db.commit()
    return totals
