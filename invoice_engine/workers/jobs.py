"""RQ job definitions for background processing."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from invoice_engine.db.session import SessionLocal
from invoice_engine.services.reminders import local_today, open_invoice_eligibilities

log = logging.getLogger(__name__)


def scan_due_reminders(today: Optional[str] = None) -> dict:
    """Background job: evaluate every open invoice and report which are due for a reminder.

    Sending stays with the reminder workflow; this job only advises.
    """
    day = date.fromisoformat(today) if today else local_today()
    db = SessionLocal()
    try:
        results = open_invoice_eligibilities(db, day)
    finally:
        db.close()
    eligible = [r for r in results if r.is_eligible]
    log.info("reminder scan %s: %d open, %d eligible", day.isoformat(), len(results), len(eligible))
    return {
        "date": day.isoformat(),
        "checked": len(results),
        "eligible": [{"invoice_id": r.invoice_id, "stage": r.next_stage, "fee": str(r.fee)} for r in eligible],
    }
