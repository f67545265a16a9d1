from datetime import date, timedelta
from decimal import Decimal

from shelfmarket.models import Invoice


def invoice_payload(**extra):
    payload = {
        "client_name": "Jane Roe",
        "client_email": "jane@example.com",
        "company_name": "Harbourline Trading Ltd",
        "lines": [
            {"description": "Company purchase", "quantity": "2", "unit_price": "100"},
            {"description": "Registered office", "quantity": "1", "unit_price": "50"},
        ],
    }
    payload.update(extra)
    return payload


def test_invoice_numbers_follow_yearly_sequence(client):
    year = date.today().year
    first = client.post("/api/invoices", json=invoice_payload())
    second = client.post("/api/invoices", json=invoice_payload())
    assert first.status_code == 201
    assert first.json()["invoice_number"] == f"INV-{year}-0001"
    assert second.json()["invoice_number"] == f"INV-{year}-0002"

    old = client.post("/api/invoices", json=invoice_payload(invoice_date="2023-05-01"))
    assert old.json()["invoice_number"] == "INV-2023-0001"


def test_totals_come_from_lines_and_tax_rate(client):
    body = client.post(
        "/api/invoices",
        json=invoice_payload(tax_rate="20", discount_amount="10", custom_fee="5"),
    ).json()
    assert Decimal(body["subtotal"]) == Decimal("250")
    assert Decimal(body["tax_amount"]) == Decimal("50")
    assert Decimal(body["amount"]) == Decimal("295")
    assert [line["sort_order"] for line in body["lines"]] == [1, 2]
    assert Decimal(body["lines"][0]["total"]) == Decimal("200")

    explicit = client.post("/api/invoices", json=invoice_payload(tax_rate="20", tax_amount="12.5")).json()
    assert Decimal(explicit["tax_amount"]) == Decimal("12.5")
    assert Decimal(explicit["amount"]) == Decimal("262.5")


def test_create_validation(client):
    today = date.today()
    resp = client.post(
        "/api/invoices",
        json=invoice_payload(invoice_date=today.isoformat(), due_date=(today - timedelta(days=1)).isoformat()),
    )
    assert resp.status_code == 400
    assert client.post("/api/invoices", json=invoice_payload(status="overdue")).status_code == 400
    assert client.post("/api/invoices", json=invoice_payload(company_id=999)).status_code == 404
    assert client.post("/api/invoices", json=invoice_payload(lines=[])).status_code == 422

    client.post("/api/invoices", json=invoice_payload(invoice_number="CUSTOM-1"))
    resp = client.post("/api/invoices", json=invoice_payload(invoice_number="CUSTOM-1"))
    assert resp.status_code == 409


def test_due_date_defaults_and_overdue_is_derived(client):
    issued = date.today() - timedelta(days=60)
    body = client.post("/api/invoices", json=invoice_payload(invoice_date=issued.isoformat())).json()
    assert body["due_date"] == (issued + timedelta(days=30)).isoformat()
    assert body["status"] == "pending"
    assert body["display_status"] == "overdue"

    client.post("/api/invoices", json=invoice_payload())
    overdue = client.get("/api/invoices", params={"status": "overdue"}).json()
    assert [inv["id"] for inv in overdue] == [body["id"]]
    pending = client.get("/api/invoices", params={"status": "pending"}).json()
    assert len(pending) == 1
    assert pending[0]["id"] != body["id"]


def test_status_change_records_history_and_payment(client):
    invoice = client.post("/api/invoices", json=invoice_payload()).json()
    resp = client.patch(f"/api/invoices/{invoice['id']}/status", json={"status": "paid", "reason": "Wire received"})
    body = resp.json()
    assert body["status"] == "paid"
    assert body["paid_date"] == date.today().isoformat()
    assert Decimal(body["paid_amount"]) == Decimal("250")
    assert body["status_history"][0]["from_status"] == "pending"
    assert body["status_history"][0]["reason"] == "Wire received"

    resp = client.patch(f"/api/invoices/{invoice['id']}/status", json={"status": "pending"})
    assert resp.status_code == 400


def test_bulk_status_counts_skips(client):
    a = client.post("/api/invoices", json=invoice_payload()).json()
    b = client.post("/api/invoices", json=invoice_payload(status="paid")).json()
    resp = client.post("/api/invoices/bulk-status", json={"invoice_ids": [a["id"], b["id"], 999], "status": "paid"})
    assert resp.json() == {"updated": 1, "skipped": 2}
    assert client.get(f"/api/invoices/{a['id']}").json()["status"] == "paid"


def test_patch_replaces_lines_and_recomputes(client):
    invoice = client.post("/api/invoices", json=invoice_payload()).json()
    resp = client.patch(
        f"/api/invoices/{invoice['id']}",
        json={"lines": [{"description": "Only line", "quantity": "3", "unit_price": "10"}], "tax_rate": "10"},
    )
    body = resp.json()
    assert len(body["lines"]) == 1
    assert Decimal(body["subtotal"]) == Decimal("30")
    assert Decimal(body["tax_amount"]) == Decimal("3")
    assert Decimal(body["amount"]) == Decimal("33")

    assert client.patch(f"/api/invoices/{invoice['id']}", json={"lines": []}).status_code == 400


def test_attachments_and_mark_sent(client, db_session):
    invoice = client.post("/api/invoices", json=invoice_payload()).json()
    resp = client.post(
        f"/api/invoices/{invoice['id']}/attachments",
        files={"file": ("receipt.pdf", b"%PDF-1.4 test", "application/pdf")},
    )
    assert resp.status_code == 201
    attachment = resp.json()["attachments"][0]
    assert attachment["name"] == "receipt.pdf"
    assert attachment["size"] == 13

    resp = client.delete(f"/api/invoices/{invoice['id']}/attachments/{attachment['id']}")
    assert resp.json()["attachments"] == []

    client.post(f"/api/invoices/{invoice['id']}/mark-sent")
    client.post(f"/api/invoices/{invoice['id']}/mark-sent")
    saved = db_session.get(Invoice, invoice["id"])
    db_session.refresh(saved)
    assert saved.sent_count == 2
    assert saved.last_sent_date is not None


def test_analytics_and_export(client):
    client.post("/api/invoices", json=invoice_payload(payment_method="card", status="paid"))
    client.post("/api/invoices", json=invoice_payload())
    late = (date.today() - timedelta(days=45)).isoformat()
    client.post("/api/invoices", json=invoice_payload(invoice_date=late))

    body = client.get("/api/invoices/analytics").json()
    assert body["count"] == 3
    assert Decimal(body["paid_amount"]) == Decimal("250")
    assert Decimal(body["pending_amount"]) == Decimal("250")
    assert Decimal(body["overdue_amount"]) == Decimal("250")
    assert body["by_status"] == {"paid": 1, "pending": 1, "overdue": 1}
    assert body["by_payment_method"] == {"card": 1, "N/A": 2}

    resp = client.get("/api/invoices/export", params={"payment_method": "card"})
    rows = resp.text.strip().splitlines()
    assert rows[0].startswith('"Invoice Number"')
    assert len(rows) == 2


def test_delete_invoice(client):
    invoice = client.post("/api/invoices", json=invoice_payload()).json()
    assert client.delete(f"/api/invoices/{invoice['id']}").json() == {"success": True}
    assert client.get(f"/api/invoices/{invoice['id']}").status_code == 404


def test_patch_rejects_null_for_required_fields(client):
    invoice = client.post("/api/invoices", json=invoice_payload()).json()
    resp = client.patch(f"/api/invoices/{invoice['id']}", json={"client_name": None})
    assert resp.status_code == 400
    assert resp.json() == {"error": "client_name cannot be null"}

    resp = client.patch(f"/api/invoices/{invoice['id']}", json={"description": None})
    assert resp.status_code == 200
    assert resp.json()["client_name"] == "Jane Roe"
