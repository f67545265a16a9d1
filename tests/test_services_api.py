from decimal import Decimal

import pytest


@pytest.fixture
def service(client):
    resp = client.post(
        "/api/services",
        json={
            "name": "Nominee Director",
            "description": "Local nominee director for one year",
            "price": "450",
            "category": "Compliance",
            "application_form_fields": [
                {"name": "passport_number", "label": "Passport", "required": True},
                {"name": "notes", "label": "Notes"},
            ],
        },
    )
    assert resp.status_code == 201
    return resp.json()


def order_payload(service, **extra):
    payload = {
        "service_id": service["id"],
        "customer_name": "Jane Roe",
        "customer_email": "jane@example.com",
        "application_data": {"passport_number": "X1234567"},
    }
    payload.update(extra)
    return payload


def test_catalogue_hides_inactive_services(client, service):
    client.post("/api/services", json={"name": "Apostille", "description": "Legalised documents", "price": "90"})
    assert [s["name"] for s in client.get("/api/services").json()] == ["Apostille", "Nominee Director"]
    assert [s["name"] for s in client.get("/api/services", params={"category": "Compliance"}).json()] == [
        "Nominee Director"
    ]

    client.patch(f"/api/services/{service['id']}", json={"status": "inactive"})
    assert [s["name"] for s in client.get("/api/services").json()] == ["Apostille"]
    assert len(client.get("/api/services", params={"include_inactive": True}).json()) == 2
    assert client.patch(f"/api/services/{service['id']}", json={"status": "archived"}).status_code == 400


def test_service_order_copies_price_and_checks_required_fields(client, service):
    resp = client.post("/api/service-orders", json=order_payload(service))
    assert resp.status_code == 201
    body = resp.json()
    assert body["service_name"] == "Nominee Director"
    assert Decimal(body["amount"]) == Decimal("450")
    assert body["status"] == "pending"

    resp = client.post("/api/service-orders", json=order_payload(service, application_data={"passport_number": " "}))
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing required fields: passport_number"


def test_inactive_service_cannot_be_ordered(client, service):
    client.patch(f"/api/services/{service['id']}", json={"status": "inactive"})
    assert client.post("/api/service-orders", json=order_payload(service)).status_code == 404


def test_service_order_status_flow_and_comments(client, service):
    order = client.post("/api/service-orders", json=order_payload(service)).json()
    url = f"/api/service-orders/{order['id']}"

    assert client.patch(f"{url}/status", json={"status": "completed"}).status_code == 400
    client.patch(f"{url}/status", json={"status": "processing"})
    body = client.patch(f"{url}/status", json={"status": "completed"}).json()
    assert body["completion_date"] is not None
    assert [h["to_status"] for h in body["status_history"]] == ["processing", "completed"]

    resp = client.post(f"{url}/comments", json={"text": "Documents filed", "is_admin_only": True})
    assert resp.status_code == 201
    assert resp.json()["comments"][0]["is_admin_only"] is True

    listed = client.get("/api/service-orders", params={"status": "completed"}).json()
    assert [o["id"] for o in listed] == [order["id"]]


def test_service_with_orders_cannot_be_deleted(client, service):
    order = client.post("/api/service-orders", json=order_payload(service)).json()
    assert client.delete(f"/api/services/{service['id']}").status_code == 409
    assert client.delete(f"/api/service-orders/{order['id']}").json() == {"success": True}
    assert client.delete(f"/api/services/{service['id']}").json() == {"success": True}


def test_patch_rejects_null_for_required_fields(client, service):
    resp = client.patch(f"/api/services/{service['id']}", json={"price": None})
    assert resp.status_code == 400
    assert resp.json() == {"error": "price cannot be null"}

    order = client.post("/api/service-orders", json=order_payload(service)).json()
    resp = client.patch(f"/api/service-orders/{order['id']}", json={"customer_email": None})
    assert resp.status_code == 400
    assert resp.json() == {"error": "customer_email cannot be null"}
    resp = client.patch(f"/api/service-orders/{order['id']}", json={"notes": None})
    assert resp.status_code == 200
