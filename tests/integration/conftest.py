from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from invoice_engine.db.base import Base
from invoice_engine.db.models import Company, Invoice, InvoiceItem
from invoice_engine.db.session import get_db
from invoice_engine.main import app


@pytest.fixture()
def db():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def client(db):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app, headers={"X-API-Key": "test-key"})
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def company(db):
    c = Company(
        name="Muster GmbH",
        is_small_business=False,
        discounts_enabled=True,
        reminders_enabled=True,
        reminder_days_after_due=7,
        reminder_days_between=7,
        reminder_fee_stage1=Decimal("0"),
        reminder_fee_stage2=Decimal("5.00"),
        reminder_fee_stage3=Decimal("10.00"),
    )
    db.add(c)
    db.commit()
    return c


@pytest.fixture()
def make_invoice(db):
    counter = {"n": 0}

    def _make(items, *, due_date=date(2026, 3, 10), status="sent", **fields) -> Invoice:
        counter["n"] += 1
        invoice = Invoice(
            invoice_number=f"RE-2026-{counter['n']:03d}",
            issue_date=date(2026, 2, 24),
            due_date=due_date,
            status=status,
            **fields,
        )
        invoice.items = [InvoiceItem(**it) for it in items]
        db.add(invoice)
        db.commit()
        return invoice

    return _make
