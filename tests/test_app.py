from shelfmarket.models import Company, Coupon, Fee
from shelfmarket.seed import seed


def test_ping_and_health(client):
    assert client.get("/api/ping").json() == {"message": "pong"}
    assert client.get("/api/health").json() == {"status": "ok"}


def test_transition_tables_are_published(client):
    body = client.get("/api/transitions/order").json()
    assert body["pending-payment"] == ["cancelled", "paid"]
    assert body["refunded"] == []
    assert client.get("/api/transitions/widget").status_code == 404


def test_seed_only_fills_empty_tables(db_session):
    counts = seed(db_session)
    assert counts == {"coupons": 2, "fees": 1, "companies": 4, "roles": 6}
    assert seed(db_session) == {"coupons": 0, "fees": 0, "companies": 0, "roles": 0}
    assert db_session.query(Company).filter_by(status="available").count() == 4
    assert db_session.query(Coupon).filter_by(code="SAVE50").one().applicable_to == "companies"
    assert db_session.query(Fee).count() == 1
