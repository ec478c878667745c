"""Dev seed script: create a company and one overdue invoice, then run the
totals recompute and the reminder evaluation end-to-end without Redis.

Usage:
  python scripts/dev_seed.py

Requirements:
  - DB schema applied (alembic upgrade head)
  - DATABASE_URL configured (e.g., via .env)
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from invoice_engine.db.crud.company import get_or_create_company
from invoice_engine.db.models import Customer, Invoice, InvoiceItem
from invoice_engine.db.session import SessionLocal
from invoice_engine.services.invoices import recompute_invoice
from invoice_engine.services.reminders import local_today, reminder_eligibility


def seed_invoice(db) -> int:
    company = get_or_create_company(db)
    company.name = "Muster Montage GmbH"
    company.reminders_enabled = True
    company.reminder_days_after_due = 7
    company.reminder_days_between = 7
    company.reminder_fee_stage2 = Decimal("5.00")
    company.reminder_fee_stage3 = Decimal("10.00")

    customer = Customer(name="Beispiel AG", email="buchhaltung@beispiel.de")
    db.add(customer)
    db.flush()

    today = local_today()
    invoice = Invoice(
        invoice_number=f"RE-{today:%Y%m%d}-001",
        customer_id=customer.id,
        issue_date=today - timedelta(days=24),
        due_date=today - timedelta(days=10),
        status="sent",
        global_discount_type="fixed",
        global_discount_value=Decimal("20"),
    )
    invoice.items = [
        InvoiceItem(
            description="Montagearbeiten",
            quantity=Decimal("1"),
            unit_price=Decimal("80.00"),
            tax_rate=Decimal("19"),
            discount_type="percentage",
            discount_value=Decimal("10"),
            item_order=1,
        ),
        InvoiceItem(
            description="Fachbuch",
            quantity=Decimal("1"),
            unit_price=Decimal("50.00"),
            tax_rate=Decimal("7"),
            item_order=2,
        ),
    ]
    db.add(invoice)
    db.commit()
    return int(invoice.id)


def main() -> None:
    db = SessionLocal()
    try:
        invoice_id = seed_invoice(db)
        totals = recompute_invoice(db, invoice_id)
        eligibility = reminder_eligibility(db, invoice_id, local_today())
        print({"invoice_id": invoice_id, "totals": totals.model_dump(mode="json")})
        print({"reminder": eligibility.model_dump(mode="json")})
    finally:
        db.close()


if __name__ == "__main__":
    main()
