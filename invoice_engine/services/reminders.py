"""Reminder workflow around the eligibility evaluator.

Sending is read -> evaluate -> write. The write is a compare-and-set on the
invoice's reminder stage so two concurrent senders cannot both record the
same stage.

Calendar days are counted in the configured ``TIMEZONE``: a reminder sent at
00:30 in Berlin belongs to that Berlin day, whatever offset the timestamp
arrived with.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from invoice_engine.calc import reminders as reminder_rules
from invoice_engine.calc.errors import ReminderTransitionError
from invoice_engine.calc.models import ReminderEligibility, ReminderState
from invoice_engine.core.config import get_settings
from invoice_engine.db.crud import invoices as invoice_crud
from invoice_engine.db.crud.company import get_company
from invoice_engine.services.snapshots import build_reminder_state, policy_from_company

log = logging.getLogger(__name__)


class ReminderConflict(Exception):
    """Another request recorded a reminder for the invoice in the meantime."""


def local_zone() -> ZoneInfo:
    return ZoneInfo(get_settings().TIMEZONE)


def to_local(moment: datetime) -> datetime:
    """Aware timestamps are converted to local time; naive ones are taken as local already."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=local_zone())
    return moment.astimezone(local_zone())


def local_today() -> date:
    return datetime.now(local_zone()).date()


def reminder_eligibility(db: Session, invoice_id: int, today: date) -> Optional[ReminderEligibility]:
    invoice = invoice_crud.get_invoice_with_items(db, invoice_id)
    if invoice is None:
        return None
    policy = policy_from_company(get_company(db))
    return reminder_rules.evaluate(build_reminder_state(invoice), policy, today)


def open_invoice_eligibilities(db: Session, today: date) -> list[ReminderEligibility]:
    policy = policy_from_company(get_company(db))
    if not policy.enabled:
        return []
    states = [build_reminder_state(inv) for inv in invoice_crud.list_open_invoices(db)]
    return reminder_rules.eligible_reminders(states, policy, today)


def send_reminder(
    db: Session, invoice_id: int, stage: int, now: Optional[datetime] = None, force: bool = False
) -> Optional[ReminderState]:
    """Record that reminder ``stage`` was sent for the invoice.

    Unless ``force`` is set the stage must also be due under the company's
    reminder policy. ``force`` lets a user send a reminder by hand ahead of
    schedule; the stage order is enforced either way.

    Raises ``ReminderTransitionError`` when the stage is not the next one or
    not yet due, and ``ReminderConflict`` when a concurrent send won the race.
    """
    now = to_local(now or datetime.now(local_zone()))
    invoice = invoice_crud.get_invoice_with_items(db, invoice_id)
    if invoice is None:
        return None
    state = build_reminder_state(invoice)
    new_state = reminder_rules.record_reminder_sent(state, stage, now)

    if not force:
        policy = policy_from_company(get_company(db))
        eligibility = reminder_rules.evaluate(state, policy, now.date())
        if not policy.enabled:
            raise ReminderTransitionError("Reminders are disabled for this company")
        if not eligibility.is_eligible:
            when = eligibility.next_eligible_date
            raise ReminderTransitionError(
                f"Reminder stage {stage} is not due yet" + (f" (due from {when.isoformat()})" if when else "")
            )

    updated = invoice_crud.record_reminder_sent(
        db, invoice.id, stage, expected_stage=state.max_reminder_stage_reached, sent_at=now
    )
    if not updated:
        db.rollback()
        raise ReminderConflict(f"Invoice {invoice_id} reminder stage changed concurrently")
    db.commit()
    log.info("invoice %s: reminder stage %s recorded%s", invoice.invoice_number, stage, " (forced)" if force else "")
    return new_state


def reminder_history(db: Session, limit: int = 100) -> list[ReminderState]:
    return [build_reminder_state(inv) for inv in invoice_crud.list_reminded_invoices(db, limit=limit)]


def mark_paid(db: Session, invoice_id: int) -> Optional[ReminderState]:
    invoice = invoice_crud.get_invoice_with_items(db, invoice_id)
    if invoice is None:
        return None
    new_state = reminder_rules.mark_paid(build_reminder_state(invoice))
    invoice_crud.mark_invoice_paid(db, invoice)
    db.commit()
    return new_state
