from datetime import date, timedelta
from decimal import Decimal

from shelfmarket.models import Company


def test_create_company_defaults_renewal_to_one_year(client, db_session):
    resp = client.post(
        "/api/companies",
        json={
            "name": "Harbourline Trading Ltd",
            "number": "14822901",
            "country": "United Kingdom",
            "incorporation_date": "2024-02-29",
            "purchase_price": "1500",
        },
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "available"
    assert body["renewal_date"] == "2025-02-28"
    assert body["expiry_date"] == "2025-02-28"
    assert body["incorporation_year"] == 2024
    assert body["renewal_days_left"] == 0
    assert body["activity_log"][0]["action"] == "Company Created"

    saved = db_session.query(Company).filter_by(number="14822901").first()
    assert saved is not None
    assert saved.purchase_price == Decimal("1500")


def test_duplicate_company_number_conflicts(client, make_company):
    make_company(number="555")
    resp = client.post(
        "/api/companies",
        json={"name": "Other Ltd", "number": "555", "country": "Ireland"},
    )
    assert resp.status_code == 409
    assert "already exists" in resp.json()["error"]


def test_create_rejects_unknown_status(client):
    resp = client.post(
        "/api/companies",
        json={"name": "X Ltd", "number": "1", "country": "Ireland", "status": "bogus"},
    )
    assert resp.status_code == 400


def test_list_filters_and_sorts(client, make_company):
    make_company(number="1", name="Alpha Ltd", price="500", country="Ireland")
    make_company(number="2", name="Bravo Ltd", price="1500", status="active")
    make_company(number="3", name="Charlie Ltd", price="900", renewal_in_days=10)

    resp = client.get("/api/companies", params={"sort_by": "price", "order": "asc"})
    assert [c["number"] for c in resp.json()] == ["1", "3", "2"]

    resp = client.get("/api/companies", params={"status": "available", "country": "United Kingdom"})
    assert [c["number"] for c in resp.json()] == ["3"]

    resp = client.get("/api/companies", params={"max_days": 30})
    assert [c["number"] for c in resp.json()] == ["3"]

    resp = client.get("/api/companies", params={"search": "bravo"})
    assert [c["name"] for c in resp.json()] == ["Bravo Ltd"]

    resp = client.get("/api/companies", params={"sort_by": "colour"})
    assert resp.status_code == 400


def test_stats_counts_statuses_and_revenue(client, make_company):
    make_company(number="1", price="1000")
    make_company(number="2", price="250.50", status="active", renewal_in_days=5)
    make_company(number="3", price="100", status="expired", renewal_in_days=-3)

    body = client.get("/api/companies/stats").json()
    assert body["total"] == 3
    assert body["available"] == 1
    assert body["active"] == 1
    assert body["expired"] == 1
    assert Decimal(body["total_revenue"]) == Decimal("1350.50")
    assert body["renewing_soon"] == 2
    assert body["payment_pending"] == 3


def test_illegal_status_change_is_rejected(client, make_company):
    company = make_company()
    resp = client.patch(f"/api/companies/{company.id}/status", json={"status": "active"})
    assert resp.status_code == 400
    assert "available -> active" in resp.json()["error"]

    resp = client.patch(f"/api/companies/{company.id}/status", json={"status": "pending"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "pending"


def test_renew_moves_renewal_date_forward(client, make_company):
    company = make_company(status="expired", renewal_in_days=-10)
    resp = client.post(f"/api/companies/{company.id}/renew")
    assert resp.status_code == 200
    body = resp.json()
    next_year = date.today() + timedelta(days=365)
    assert body["status"] == "active"
    assert abs((date.fromisoformat(body["renewal_date"]) - next_year).days) <= 1
    assert body["activity_log"][-1]["action"] == "Company Renewed"


def test_refund_then_reactivate(client, make_company):
    company = make_company(status="active", client_name="Jane Roe")
    resp = client.post(f"/api/companies/{company.id}/refund", json={"reason": "Changed mind", "amount": "800"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "refunded"
    assert body["payment_status"] == "refunded"
    assert body["refund_status"] == "fully-refunded"
    assert body["ownership_history"][0]["previous_owner"] == "Jane Roe"
    assert body["ownership_history"][0]["new_owner"] == "System"

    again = client.post(f"/api/companies/{company.id}/refund", json={"reason": "Twice", "amount": "1"})
    assert again.status_code == 400
    assert client.post(f"/api/companies/{company.id}/renew").status_code == 400

    resp = client.post(f"/api/companies/{company.id}/reactivate")
    assert resp.json()["status"] == "available"
    assert client.post(f"/api/companies/{company.id}/reactivate").status_code == 400


def test_cancel_and_transfer(client, make_company):
    company = make_company(status="active", client_name="Old Owner")
    resp = client.post(
        f"/api/companies/{company.id}/transfer",
        json={"new_owner_name": "New Owner", "new_owner_email": "new@example.com", "reason": "sale"},
    )
    body = resp.json()
    assert body["client_name"] == "New Owner"
    assert body["client_email"] == "new@example.com"
    assert body["ownership_history"][-1]["previous_owner"] == "Old Owner"

    resp = client.post(f"/api/companies/{company.id}/cancel", json={"reason": "Dissolved"})
    assert resp.json()["status"] == "cancelled"
    assert client.post(f"/api/companies/{company.id}/cancel", json={"reason": "Again"}).status_code == 400


def test_health_endpoint(client, make_company):
    company = make_company(status="active", payment_status="paid")
    body = client.get(f"/api/companies/{company.id}/health").json()
    assert body["score"] == 100
    assert body["healthy"] is True
    assert body["renewal_window"] == "active"

    late = make_company(number="2", status="active", renewal_in_days=-1)
    body = client.get(f"/api/companies/{late.id}/health").json()
    # pending payment 20, overdue 30 + 20 + 10
    assert body["score"] == 20
    assert body["expired"] is True


def test_auto_update_expires_overdue_companies(client, make_company, db_session):
    overdue = make_company(number="1", status="active", renewal_in_days=-1)
    make_company(number="2", status="available", renewal_in_days=-1)
    make_company(number="3", status="active", renewal_in_days=100)

    resp = client.post("/api/companies/auto-update")
    assert resp.json() == {"updated": 1, "checked": 3}
    db_session.refresh(overdue)
    assert overdue.status == "expired"
    assert overdue.activity_log[-1].performed_by == "system"


def test_renewal_notifications_and_attention(client, make_company):
    make_company(number="1", name="Urgent Ltd", status="active", renewal_in_days=3)
    make_company(number="2", name="Later Ltd", status="active", renewal_in_days=20, payment_status="paid")
    make_company(number="3", name="Stock Ltd", status="available", payment_status="paid")

    notes = client.get("/api/companies/renewal-notifications").json()
    assert [(n["company_name"], n["type"]) for n in notes] == [("Urgent Ltd", "urgent"), ("Later Ltd", "warning")]

    attention = client.get("/api/companies/attention").json()
    assert [c["name"] for c in attention] == ["Urgent Ltd"]


def test_update_and_delete(client, make_company):
    company = make_company()
    resp = client.patch(f"/api/companies/{company.id}", json={"industry": "Consulting"})
    assert resp.status_code == 200
    assert resp.json()["industry"] == "Consulting"
    assert "industry" in resp.json()["activity_log"][-1]["details"]

    assert client.delete(f"/api/companies/{company.id}").json() == {"success": True}
    resp = client.get(f"/api/companies/{company.id}")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Company not found"}


def test_patch_null_required_field_is_a_bad_request(client, make_company):
    company = make_company()
    resp = client.patch(f"/api/companies/{company.id}", json={"name": None})
    assert resp.status_code == 400
    assert resp.json() == {"error": "name cannot be null"}

    resp = client.patch(f"/api/companies/{company.id}", json={"renewal_date": None, "tags": None})
    assert resp.status_code == 400
    assert resp.json() == {"error": "renewal_date, tags cannot be null"}


def test_patch_number_conflicts_only_with_another_company(client, make_company):
    make_company(number="555")
    company = make_company(number="777")
    resp = client.patch(f"/api/companies/{company.id}", json={"number": "555"})
    assert resp.status_code == 409
    assert resp.json() == {"error": "Company number 555 already exists"}

    resp = client.patch(f"/api/companies/{company.id}", json={"number": "777", "industry": "Retail"})
    assert resp.status_code == 200
    assert resp.json()["industry"] == "Retail"
