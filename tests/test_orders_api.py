from decimal import Decimal

import pytest

from shelfmarket.models import Coupon, Fee, Order


@pytest.fixture
def storefront(db_session, make_company):
    db_session.add(Fee(name="Transfer Fee", fee_type="fixed", amount=Decimal("150")))
    db_session.add(Coupon(code="WELCOME10", discount_type="percentage", discount_value=Decimal("10")))
    db_session.commit()
    return make_company(price="1000", renewal_fee=Decimal("350"))


def place_order(client, company, **extra):
    payload = {"company_id": company.id, "customer_name": "Jane Roe", "customer_email": "jane@example.com"}
    payload.update(extra)
    return client.post("/api/orders", json=payload)


def move(client, order_number, *statuses):
    resp = None
    for status in statuses:
        resp = client.patch(f"/api/orders/{order_number}/status", json={"status": status})
        assert resp.status_code == 200, resp.json()
    return resp


def test_checkout_prices_order_and_reserves_company(client, db_session, storefront):
    resp = place_order(client, storefront, coupon_code="welcome10")
    assert resp.status_code == 201
    order = resp.json()
    assert order["order_number"].startswith("ORD-")
    assert order["status"] == "pending-payment"
    assert Decimal(order["subtotal"]) == Decimal("1000")
    assert Decimal(order["fees_total"]) == Decimal("150")
    assert Decimal(order["discount"]) == Decimal("115")
    assert Decimal(order["amount"]) == Decimal("1035")
    assert Decimal(order["renewal_fees"]) == Decimal("350")
    assert order["fees_applied"][0]["name"] == "Transfer Fee"
    assert order["country"] == "United Kingdom"

    db_session.refresh(storefront)
    assert storefront.status == "pending"
    coupon = db_session.query(Coupon).filter_by(code="WELCOME10").one()
    db_session.refresh(coupon)
    assert coupon.used_count == 1


def test_checkout_rejects_unavailable_company(client, make_company):
    sold = make_company(status="sold")
    resp = place_order(client, sold)
    assert resp.status_code == 400
    assert "not available" in resp.json()["error"]
    assert place_order(client, sold, company_id=9999).status_code == 404


def test_checkout_rejects_unknown_coupon(client, db_session, storefront):
    resp = place_order(client, storefront, coupon_code="NOPE")
    assert resp.status_code == 404
    assert db_session.query(Order).count() == 0


def test_full_order_flow_sells_company(client, db_session, storefront):
    number = place_order(client, storefront).json()["order_number"]
    resp = move(client, number, "paid", "transfer-form-pending", "under-review", "pending-transfer", "completed")
    body = resp.json()
    assert body["status"] == "completed"
    assert body["payment_status"] == "completed"
    assert body["payment_date"] is not None
    assert len(body["status_history"]) == 5

    db_session.refresh(storefront)
    assert storefront.status == "sold"
    assert storefront.client_name == "Jane Roe"
    assert storefront.ownership_history[-1].reason == "sale"


def test_cancelled_order_returns_company_to_inventory(client, db_session, storefront):
    number = place_order(client, storefront).json()["order_number"]
    move(client, number, "cancelled")
    db_session.refresh(storefront)
    assert storefront.status == "available"


def test_illegal_order_transition(client, storefront):
    number = place_order(client, storefront).json()["order_number"]
    resp = client.patch(f"/api/orders/{number}/status", json={"status": "completed"})
    assert resp.status_code == 400
    assert "pending-payment -> completed" in resp.json()["error"]


def test_refund_request_approve_and_reject(client, storefront):
    number = place_order(client, storefront).json()["order_number"]

    resp = client.post(f"/api/orders/{number}/refund-request", json={"reason": "Wrong company", "requested_amount": "500"})
    assert resp.status_code == 400
    move(client, number, "paid")

    too_much = client.post(f"/api/orders/{number}/refund-request", json={"reason": "x", "requested_amount": "5000"})
    assert too_much.status_code == 400

    resp = client.post(f"/api/orders/{number}/refund-request", json={"reason": "Wrong company", "requested_amount": "500"})
    assert resp.json()["refund_status"] == "requested"
    dup = client.post(f"/api/orders/{number}/refund-request", json={"reason": "again", "requested_amount": "1"})
    assert dup.status_code == 400

    resp = client.post(f"/api/orders/{number}/refund-reject", json={"reason": "Outside policy"})
    assert resp.json()["refund_status"] == "rejected"
    assert resp.json()["refund_request"]["rejection_reason"] == "Outside policy"

    client.post(f"/api/orders/{number}/refund-request", json={"reason": "Appeal", "requested_amount": "400"})
    bad_fee = client.post(f"/api/orders/{number}/refund-approve", json={"approved_amount": "100", "refund_fee": "150"})
    assert bad_fee.status_code == 400

    resp = client.post(f"/api/orders/{number}/refund-approve", json={"approved_amount": "400", "refund_fee": "25"})
    refund = resp.json()["refund_request"]
    assert refund["status"] == "approved"
    assert Decimal(refund["net_refund_amount"]) == Decimal("375")
    assert resp.json()["status"] == "paid"


def test_lookup_by_id_or_number_and_export(client, storefront):
    order = place_order(client, storefront).json()
    assert client.get(f"/api/orders/{order['id']}").json()["order_number"] == order["order_number"]
    assert client.get(f"/api/orders/{order['order_number']}").json()["id"] == order["id"]
    assert client.get("/api/orders/ORD-MISSING").status_code == 404

    resp = client.get("/api/orders/export")
    assert resp.headers["content-type"].startswith("text/csv")
    assert "attachment" in resp.headers["content-disposition"]
    lines = resp.text.strip().splitlines()
    assert lines[0].startswith('"Order ID"')
    assert order["order_number"] in lines[1]


def test_delete_pending_order_releases_company(client, db_session, storefront):
    number = place_order(client, storefront).json()["order_number"]
    assert client.delete(f"/api/orders/{number}").json() == {"success": True}
    db_session.refresh(storefront)
    assert storefront.status == "available"


def test_patch_rejects_null_for_required_fields(client, db_session, storefront):
    number = place_order(client, storefront).json()["order_number"]
    resp = client.patch(f"/api/orders/{number}", json={"customer_name": None})
    assert resp.status_code == 400
    assert resp.json() == {"error": "customer_name cannot be null"}

    resp = client.patch(f"/api/orders/{number}", json={"admin_notes": None, "customer_phone": "+44 20 0000"})
    assert resp.status_code == 200
    assert resp.json()["customer_name"] == "Jane Roe"
    assert resp.json()["customer_phone"] == "+44 20 0000"


def test_documents_upload_versions_and_visibility(client, storefront):
    number = place_order(client, storefront).json()["order_number"]
    url = f"/api/orders/{number}/documents"

    resp = client.post(url, files={"file": ("certificate.pdf", b"%PDF-1.4", "application/pdf")})
    assert resp.status_code == 201
    first = resp.json()["documents"][0]
    assert first["visibility"] == "both"
    assert first["version"] == 1
    assert resp.json()["status"] == "pending-payment"

    resp = client.post(url, files={"file": ("certificate.pdf", b"%PDF-1.5")}, data={"visibility": "admin"})
    assert [d["version"] for d in resp.json()["documents"]] == [1, 2]

    assert [d["version"] for d in client.get(url, params={"audience": "user"}).json()] == [1]
    assert len(client.get(url, params={"audience": "admin"}).json()) == 2
    assert client.get(url, params={"audience": "public"}).status_code == 400

    bad = client.post(url, files={"file": ("x.pdf", b"data")}, data={"visibility": "everyone"})
    assert bad.status_code == 400
    empty = client.post(url, files={"file": ("empty.pdf", b"")})
    assert empty.json() == {"error": "File data is empty"}

    resp = client.delete(f"{url}/{first['id']}")
    assert [d["version"] for d in resp.json()["documents"]] == [2]
    assert client.delete(f"{url}/{first['id']}").status_code == 404
    assert client.post("/api/orders/ORD-MISSING/documents", files={"file": ("a.pdf", b"a")}).status_code == 404
