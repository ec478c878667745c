from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from invoice_engine.calc.models import ReminderEligibility
from invoice_engine.workers import jobs as jobs_mod


class DummyDB:
    closed = False

    def close(self):
        self.closed = True


@pytest.fixture()
def mock_scan(monkeypatch):
    db = DummyDB()
    seen_dates = []

    def fake_open_invoice_eligibilities(session, today: date):
        assert session is db
        seen_dates.append(today)
        return [
            ReminderEligibility(invoice_id="1", next_stage=1, is_eligible=True, days_since_due=12),
            ReminderEligibility(
                invoice_id="2", next_stage=2, is_eligible=False, days_since_due=20,
                days_since_last_reminder=3, next_eligible_date=date(2026, 3, 24), fee=Decimal("5.00"),
            ),
            ReminderEligibility(invoice_id="3", next_stage=3, is_eligible=True, days_since_due=40, fee=Decimal("10.00")),
        ]

    monkeypatch.setattr(jobs_mod, "SessionLocal", lambda: db)
    monkeypatch.setattr(jobs_mod, "open_invoice_eligibilities", fake_open_invoice_eligibilities)
    return db, seen_dates


def test_scan_due_reminders_reports_eligible_invoices(mock_scan):
    db, seen_dates = mock_scan
    out = jobs_mod.scan_due_reminders("2026-03-20")
    assert seen_dates == [date(2026, 3, 20)]
    assert db.closed is True
    assert out["checked"] == 3
    assert out["eligible"] == [
        {"invoice_id": "1", "stage": 1, "fee": "0"},
        {"invoice_id": "3", "stage": 3, "fee": "10.00"},
    ]
