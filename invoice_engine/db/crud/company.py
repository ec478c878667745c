"""Company settings: the single company row and its reminder policy."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from invoice_engine.calc.models import ReminderPolicy
from invoice_engine.db.models import Company


def get_company(db: Session) -> Optional[Company]:
    return db.query(Company).order_by(Company.id.asc()).first()


def get_or_create_company(db: Session) -> Company:
    company = get_company(db)
    if company is None:
        company = Company()
        db.add(company)
        db.flush()
    return company


def update_reminder_policy(db: Session, policy: ReminderPolicy) -> Company:
    company = get_or_create_company(db)
    company.reminders_enabled = policy.enabled
    company.reminder_days_after_due = policy.days_after_due
    company.reminder_days_between = policy.days_between_stages
    company.reminder_fee_stage1 = policy.fee_stage1
    company.reminder_fee_stage2 = policy.fee_stage2
    company.reminder_fee_stage3 = policy.fee_stage3
    db.flush()
    return company
