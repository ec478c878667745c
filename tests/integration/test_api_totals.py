from decimal import Decimal

from fastapi.testclient import TestClient

from invoice_engine.db.models import Invoice
from invoice_engine.main import app


def test_requests_without_api_key_are_rejected(client):
    bare = TestClient(app)
    assert bare.post("/totals/preview", json={"items": []}).status_code == 401
    assert bare.get("/health").status_code == 200


def test_preview_totals(client):
    resp = client.post(
        "/totals/preview",
        json={
            "items": [
                {"quantity": 1, "unit_price": 80, "tax_rate": 19, "discount": {"kind": "percentage", "value": 10}},
                {"quantity": 1, "unit_price": 50, "tax_rate": 7},
            ],
            "global_discount": {"kind": "fixed", "value": 20},
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert Decimal(body["discounted_subtotal"]) == Decimal("102.00")
    assert Decimal(body["tax_amount"]) == Decimal("14.37")
    assert Decimal(body["total"]) == Decimal("116.37")
    assert body["zero_tax_clause"] is None
    assert [line["order"] for line in body["lines"]] == [1, 2]
    assert [line["id"] for line in body["lines"]] == ["line-1", "line-2"]


def test_preview_small_business_clause(client):
    resp = client.post(
        "/totals/preview",
        json={"items": [{"quantity": 2, "unit_price": 50, "tax_rate": 19}], "force_zero_tax": True},
    )
    body = resp.json()
    assert Decimal(body["tax_amount"]) == 0
    assert body["applies_zero_tax_clause"] is True
    assert body["zero_tax_clause"] == "small_business"


def test_preview_rejects_negative_quantity(client):
    resp = client.post("/totals/preview", json={"items": [{"quantity": -1, "unit_price": 10}]})
    assert resp.status_code == 422
    assert "quantity" in resp.json()["detail"]


def test_preview_rejects_oversized_quantity(client):
    resp = client.post("/totals/preview", json={"items": [{"quantity": "1e27", "unit_price": 10}]})
    assert resp.status_code == 422
    assert "exceeds the maximum" in resp.json()["detail"]


def test_recompute_writes_snapshot_and_renumbers(client, db, company, make_invoice):
    invoice = make_invoice(
        [
            {"description": "Fachbuch", "quantity": Decimal("1"), "unit_price": Decimal("50"),
             "tax_rate": Decimal("7"), "item_order": 9},
            {"description": "Montage", "quantity": Decimal("1"), "unit_price": Decimal("80"),
             "tax_rate": Decimal("19"), "discount_type": "percentage", "discount_value": Decimal("10"),
             "item_order": 4},
        ],
        global_discount_type="fixed",
        global_discount_value=Decimal("20"),
    )

    resp = client.post(f"/invoices/{invoice.id}/totals/recompute")
    assert resp.status_code == 200
    assert Decimal(resp.json()["total"]) == Decimal("116.37")

    stored = db.get(Invoice, invoice.id)
    db.refresh(stored)
    assert stored.subtotal == Decimal("130.00")
    assert stored.tax_amount == Decimal("14.37")
    assert stored.total == Decimal("116.37")
    assert stored.global_discount_amount == Decimal("20.00")
    by_desc = {it.description: it for it in stored.items}
    assert by_desc["Montage"].item_order == 1
    assert by_desc["Fachbuch"].item_order == 2
    assert by_desc["Montage"].discount_amount == Decimal("8.00")
    assert by_desc["Montage"].total == Decimal("72.00")


def test_recompute_ignores_discounts_when_company_disabled_them(client, db, company, make_invoice):
    company.discounts_enabled = False
    db.commit()
    invoice = make_invoice(
        [{"quantity": Decimal("2"), "unit_price": Decimal("50"), "tax_rate": Decimal("19"),
          "discount_type": "fixed", "discount_value": Decimal("10")}],
    )
    body = client.post(f"/invoices/{invoice.id}/totals/recompute").json()
    assert Decimal(body["total"]) == Decimal("119.00")


def test_recompute_small_business_company(client, db, company, make_invoice):
    company.is_small_business = True
    db.commit()
    invoice = make_invoice([{"quantity": Decimal("1"), "unit_price": Decimal("100"), "tax_rate": Decimal("19")}])
    body = client.post(f"/invoices/{invoice.id}/totals/recompute").json()
    assert Decimal(body["total"]) == Decimal("100.00")
    assert body["zero_tax_clause"] == "small_business"


def test_recompute_missing_invoice(client):
    assert client.post("/invoices/999/totals/recompute").status_code == 404
