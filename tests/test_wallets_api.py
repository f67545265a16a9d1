from decimal import Decimal

from shelfmarket.models import Wallet


def test_wallet_is_created_on_first_lookup(client):
    resp = client.get("/api/wallets/user-1", params={"email": "Jane@Example.com", "name": "Jane"})
    body = resp.json()
    assert body["user_id"] == "user-1"
    assert Decimal(body["balance"]) == Decimal("0")
    assert body["status"] == "active"

    again = client.get("/api/wallets/jane@example.com").json()
    assert again["id"] == body["id"]


def test_add_funds_and_deduct(client):
    client.get("/api/wallets/user-1", params={"email": "jane@example.com"})
    txn = client.post("/api/wallets/user-1/add-funds", json={"amount": "200"}).json()
    assert txn["txn_type"] == "admin_add"
    assert Decimal(txn["balance_after"]) == Decimal("200")

    resp = client.post("/api/wallets/user-1/deduct", json={"amount": "75.25", "order_number": "ORD-1"})
    body = resp.json()
    assert body["success"] is True
    assert Decimal(body["new_balance"]) == Decimal("124.75")
    assert body["transaction"]["order_number"] == "ORD-1"

    resp = client.post("/api/wallets/user-1/deduct", json={"amount": "500"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Insufficient balance"}
    assert client.post("/api/wallets/user-1/add-funds", json={"amount": "-5"}).status_code == 400
    assert client.post("/api/wallets/nobody/add-funds", json={"amount": "5"}).status_code == 404


def test_frozen_wallet_rejects_payments(client):
    client.get("/api/wallets/user-1")
    client.post("/api/wallets/user-1/add-funds", json={"amount": "50"})
    assert client.post("/api/wallets/user-1/freeze").json()["status"] == "frozen"
    resp = client.post("/api/wallets/user-1/deduct", json={"amount": "10"})
    assert resp.json() == {"error": "Wallet is frozen"}
    assert client.post("/api/wallets/user-1/unfreeze").json()["status"] == "active"
    assert client.post("/api/wallets/user-1/deduct", json={"amount": "10"}).status_code == 200


def test_transactions_and_report(client):
    client.get("/api/wallets/user-1")
    client.get("/api/wallets/user-2")
    client.post("/api/wallets/user-1/add-funds", json={"amount": "100"})
    client.post("/api/wallets/user-2/add-funds", json={"amount": "40"})
    client.post("/api/wallets/user-1/deduct", json={"amount": "30"})

    own = client.get("/api/wallets/user-1/transactions").json()
    assert [t["txn_type"] for t in own] == ["payment", "admin_add"]
    payments = client.get("/api/wallets/transactions", params={"type": "payment"}).json()
    assert len(payments) == 1

    report = client.get("/api/wallets/report").json()
    assert report["total_users"] == 2
    assert Decimal(report["total_balance"]) == Decimal("110")
    assert Decimal(report["total_deposited"]) == Decimal("140")
    assert Decimal(report["total_payments"]) == Decimal("30")

    rich = client.get("/api/wallets", params={"min_balance": "50"}).json()
    assert [w["user_id"] for w in rich] == ["user-1"]


def test_report_totals_one_currency_at_a_time(client, db_session):
    client.get("/api/wallets/user-1")
    client.get("/api/wallets/user-2")
    euro = db_session.query(Wallet).filter_by(user_id="user-2").one()
    euro.currency = "EUR"
    db_session.commit()
    client.post("/api/wallets/user-1/add-funds", json={"amount": "100"})
    client.post("/api/wallets/user-2/add-funds", json={"amount": "40"})

    usd = client.get("/api/wallets/report").json()
    assert usd["currency"] == "USD"
    assert usd["total_users"] == 1
    assert Decimal(usd["total_balance"]) == Decimal("100")
    assert Decimal(usd["total_deposited"]) == Decimal("100")

    eur = client.get("/api/wallets/report", params={"currency": "eur"}).json()
    assert eur["currency"] == "EUR"
    assert Decimal(eur["total_balance"]) == Decimal("40")
