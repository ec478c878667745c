"""Payment-reminder (dunning) eligibility.

Stages escalate ``0 -> 1 -> 2 -> 3`` and never regress. ``evaluate`` is purely
advisory; the caller sends the reminder and then applies
``record_reminder_sent`` to its own copy of the invoice state.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union

from invoice_engine.calc.errors import ReminderTransitionError
from invoice_engine.calc.models import (
    InvoiceStatus,
    ReminderEligibility,
    ReminderPolicy,
    ReminderState,
)

FINAL_STAGE = 3

_CLOSED_STATUSES = {InvoiceStatus.DRAFT, InvoiceStatus.PAID}


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def evaluate(state: ReminderState, policy: ReminderPolicy, today: date) -> ReminderEligibility:
    """Decide whether the next reminder stage may be issued on ``today``.

    ``policy`` is assumed to be valid; see ``validate_policy``.
    """
    today = _as_date(today)
    days_since_due = (today - state.due_date).days
    next_stage = min(state.max_reminder_stage_reached + 1, FINAL_STAGE)
    last_sent = _as_date(state.last_reminder_sent_at) if state.last_reminder_sent_at else None
    days_since_last = (today - last_sent).days if last_sent else None

    def result(is_eligible: bool, next_eligible_date: Optional[date] = None) -> ReminderEligibility:
        return ReminderEligibility(
            invoice_id=state.invoice_id,
            next_stage=next_stage,
            is_eligible=is_eligible,
            days_since_due=days_since_due,
            days_since_last_reminder=days_since_last,
            next_eligible_date=next_eligible_date,
            fee=policy.fee_for_stage(next_stage),
        )

    if not policy.enabled or state.status in _CLOSED_STATUSES:
        return result(False)
    # Stage 3 is the last automatic reminder; anything beyond is handled manually.
    if state.max_reminder_stage_reached >= FINAL_STAGE:
        return result(False)

    first_eligible_on = state.due_date + timedelta(days=policy.days_after_due)
    if today < state.due_date:
        return result(False, first_eligible_on if next_stage == 1 else None)

    if next_stage == 1:
        if days_since_due >= policy.days_after_due:
            return result(True)
        return result(False, first_eligible_on)

    if last_sent is None:
        return result(False)
    if days_since_last >= policy.days_between_stages:
        return result(True)
    return result(False, last_sent + timedelta(days=policy.days_between_stages))


def eligible_reminders(
    states: Iterable[ReminderState], policy: ReminderPolicy, today: date
) -> list[ReminderEligibility]:
    """Evaluate a batch of invoices, oldest due date first."""
    ordered = sorted(states, key=lambda s: s.due_date)
    return [evaluate(s, policy, today) for s in ordered]


def record_reminder_sent(state: ReminderState, stage: int, sent_at: datetime) -> ReminderState:
    """State after the caller has sent reminder ``stage``.

    Only the next stage may be recorded, and never for a draft or paid invoice.
    """
    if stage not in (1, 2, 3):
        raise ReminderTransitionError(f"Invalid stage {stage}. Must be 1, 2, or 3.")
    if state.status in _CLOSED_STATUSES:
        raise ReminderTransitionError(f"Cannot remind an invoice with status {state.status.value}")
    expected = state.max_reminder_stage_reached + 1
    if stage != expected:
        raise ReminderTransitionError(
            f"Invoice {state.invoice_id} is at stage {state.max_reminder_stage_reached}; "
            f"stage {stage} cannot be sent next"
        )
    return state.model_copy(
        update={
            "status": InvoiceStatus.reminded(stage),
            "last_reminder_sent_at": sent_at,
            "max_reminder_stage_reached": max(state.max_reminder_stage_reached, stage),
        }
    )


def mark_paid(state: ReminderState) -> ReminderState:
    # The reached stage is an audit fact and survives payment.
    return state.model_copy(update={"status": InvoiceStatus.PAID})
