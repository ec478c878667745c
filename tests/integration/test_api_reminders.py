from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import update

from invoice_engine.api import reminders as reminders_api
from invoice_engine.db.models import Invoice
from invoice_engine.services import reminders as reminder_service

ITEM = {"quantity": Decimal("1"), "unit_price": Decimal("100"), "tax_rate": Decimal("19")}


def test_eligibility_for_overdue_invoice(client, company, make_invoice):
    invoice = make_invoice([ITEM], due_date=date(2026, 3, 10))
    body = client.get(f"/invoices/{invoice.id}/reminder-eligibility", params={"today": "2026-03-20"}).json()
    assert body["is_eligible"] is True
    assert body["next_stage"] == 1
    assert body["days_since_due"] == 10
    assert Decimal(body["fee"]) == Decimal("0")


def test_eligibility_not_yet_reached(client, db, company, make_invoice):
    company.reminder_days_after_due = 14
    db.commit()
    invoice = make_invoice([ITEM], due_date=date(2026, 3, 10))
    body = client.get(f"/invoices/{invoice.id}/reminder-eligibility", params={"today": "2026-03-20"}).json()
    assert body["is_eligible"] is False
    assert body["next_eligible_date"] == "2026-03-24"


def test_eligibility_missing_invoice(client, company):
    assert client.get("/invoices/404/reminder-eligibility").status_code == 404


def test_eligible_list_skips_closed_invoices(client, company, make_invoice):
    make_invoice([ITEM], due_date=date(2026, 3, 1))
    make_invoice([ITEM], due_date=date(2026, 3, 18))
    make_invoice([ITEM], due_date=date(2026, 2, 1), status="paid")
    make_invoice([ITEM], due_date=date(2026, 2, 1), status="draft")

    body = client.get("/reminders/eligible", params={"today": "2026-03-20"}).json()
    assert [r["is_eligible"] for r in body] == [True, False]

    only = client.get("/reminders/eligible", params={"today": "2026-03-20", "only_eligible": True}).json()
    assert len(only) == 1


def test_eligible_list_is_empty_when_reminders_disabled(client, db, company, make_invoice):
    company.reminders_enabled = False
    db.commit()
    make_invoice([ITEM], due_date=date(2026, 1, 1))
    assert client.get("/reminders/eligible", params={"today": "2026-03-20"}).json() == []


def test_send_reminders_and_pay(client, db, company, make_invoice):
    invoice = make_invoice([ITEM], due_date=date(2026, 1, 1))

    first = client.post(f"/reminders/send/{invoice.id}", json={"stage": 1})
    assert first.status_code == 200
    assert first.json()["status"] == "reminded_1x"
    assert first.json()["max_reminder_stage_reached"] == 1

    # stage 3 cannot skip stage 2, and stage 1 cannot be repeated
    assert client.post(f"/reminders/send/{invoice.id}", json={"stage": 3}).status_code == 409
    assert client.post(f"/reminders/send/{invoice.id}", json={"stage": 1}).status_code == 409
    # stage 2 is only due days_between_stages after stage 1, unless sent by hand
    early = client.post(f"/reminders/send/{invoice.id}", json={"stage": 2})
    assert early.status_code == 409
    assert "not due yet" in early.json()["detail"]
    assert client.post(f"/reminders/send/{invoice.id}", json={"stage": 2, "force": True}).status_code == 200

    paid = client.post(f"/invoices/{invoice.id}/paid").json()
    assert paid["status"] == "paid"
    assert paid["max_reminder_stage_reached"] == 2

    stored = db.get(Invoice, invoice.id)
    db.refresh(stored)
    assert stored.status == "paid"
    assert stored.max_reminder_stage == 2
    assert stored.last_reminder_date is not None

    body = client.get(f"/invoices/{invoice.id}/reminder-eligibility").json()
    assert body["is_eligible"] is False


def test_send_rejects_out_of_range_stage(client, company, make_invoice):
    invoice = make_invoice([ITEM])
    assert client.post(f"/reminders/send/{invoice.id}", json={"stage": 4}).status_code == 422


def test_concurrent_send_loses_compare_and_set(db, company, make_invoice, monkeypatch):
    invoice = make_invoice([ITEM], due_date=date(2026, 1, 1))
    real_build = reminder_service.build_reminder_state

    def build_then_race(inv):
        state = real_build(inv)
        # another worker records stage 1 between our read and our write
        db.execute(update(Invoice).where(Invoice.id == inv.id).values(max_reminder_stage=1))
        return state

    monkeypatch.setattr(reminder_service, "build_reminder_state", build_then_race)

    with pytest.raises(reminder_service.ReminderConflict):
        reminder_service.send_reminder(db, invoice.id, 1, now=datetime(2026, 3, 20, 9, 0))


def test_scan_endpoint_enqueues_job(client, monkeypatch):
    enqueued = []

    class DummyQueue:
        def enqueue(self, func, *args):
            enqueued.append(func)
            return SimpleNamespace(get_id=lambda: "job-1")

    queue_names = []

    def fake_get_queue(name):
        queue_names.append(name)
        return DummyQueue()

    monkeypatch.setattr(reminders_api, "get_queue", fake_get_queue)
    resp = client.post("/reminders/scan")
    assert resp.json() == {"status": "accepted", "job_id": "job-1"}
    assert enqueued == [reminders_api.scan_due_reminders]
    assert queue_names == ["reminders"]


def test_send_is_refused_while_reminders_are_disabled(client, db, company, make_invoice):
    company.reminders_enabled = False
    db.commit()
    invoice = make_invoice([ITEM], due_date=date(2026, 1, 1))
    resp = client.post(f"/reminders/send/{invoice.id}", json={"stage": 1})
    assert resp.status_code == 409
    assert "disabled" in resp.json()["detail"]
    assert client.post(f"/reminders/send/{invoice.id}", json={"stage": 1, "force": True}).status_code == 200


def test_reminder_day_is_the_local_calendar_day(db, company, make_invoice):
    invoice = make_invoice([ITEM], due_date=date(2026, 1, 1))
    # 23:30 UTC on 19 March is 00:30 on 20 March in Berlin
    sent_at = datetime(2026, 3, 19, 23, 30, tzinfo=timezone.utc)
    reminder_service.send_reminder(db, invoice.id, 1, now=sent_at)

    stored = db.get(Invoice, invoice.id)
    db.refresh(stored)
    assert stored.last_reminder_date == date(2026, 3, 20)

    result = reminder_service.reminder_eligibility(db, invoice.id, date(2026, 3, 26))
    assert result.next_stage == 2
    assert result.days_since_last_reminder == 6
    assert result.is_eligible is False
    assert result.next_eligible_date == date(2026, 3, 27)


def test_reminder_history_lists_most_recent_first(client, db, company, make_invoice):
    older = make_invoice([ITEM], due_date=date(2026, 1, 1))
    newer = make_invoice([ITEM], due_date=date(2026, 1, 5))
    make_invoice([ITEM], due_date=date(2026, 1, 1))
    reminder_service.send_reminder(db, older.id, 1, now=datetime(2026, 3, 2, 10, 0))
    reminder_service.send_reminder(db, newer.id, 1, now=datetime(2026, 3, 9, 10, 0))

    body = client.get("/reminders/history").json()
    assert [r["invoice_id"] for r in body] == [str(newer.id), str(older.id)]
    assert body[0]["status"] == "reminded_1x"
    assert body[0]["last_reminder_sent_at"] == "2026-03-09"
