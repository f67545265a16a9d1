from datetime import date, timedelta
from decimal import Decimal

from shelfmarket import automation
from shelfmarket.models import Company, Order

TODAY = date(2025, 6, 1)


def make_company(status="active", renewal_in_days=100, payment_status="paid", **values):
    return Company(
        name=values.pop("name", "Acme Ltd"),
        number=values.pop("number", "123"),
        country="United Kingdom",
        renewal_date=TODAY + timedelta(days=renewal_in_days),
        status=status,
        payment_status=payment_status,
        purchase_price=values.pop("purchase_price", Decimal("1000")),
        **values,
    )


def test_determine_status_past_renewal_expires_active_company():
    assert automation.determine_status(TODAY - timedelta(days=3), "active", TODAY) == "expired"
    assert automation.determine_status(TODAY, "active", TODAY) == "expired"


def test_determine_status_keeps_holding_statuses():
    for renewal in (TODAY - timedelta(days=400), TODAY + timedelta(days=400)):
        assert automation.determine_status(renewal, "available", TODAY) == "available"
        assert automation.determine_status(renewal, "pending", TODAY) == "pending"


def test_determine_status_recycles_refunded_company_with_future_renewal():
    assert automation.determine_status(TODAY + timedelta(days=30), "refunded", TODAY) == "available"
    assert automation.determine_status(TODAY + timedelta(days=30), "cancelled", TODAY) == "available"


def test_determine_status_future_renewal_is_active():
    assert automation.determine_status(TODAY + timedelta(days=30), "expired", TODAY) == "active"


def test_auto_update_is_idempotent():
    company = make_company(renewal_in_days=-5)
    assert automation.auto_update_status(company, TODAY) is True
    assert company.status == "expired"
    assert len(company.activity_log) == 1

    assert automation.auto_update_status(company, TODAY) is False
    assert company.status == "expired"
    assert len(company.activity_log) == 1


def test_batch_auto_update_counts_changes():
    companies = [
        make_company(renewal_in_days=-1),
        make_company(renewal_in_days=50),
        make_company(status="available", renewal_in_days=-10),
    ]
    assert automation.batch_auto_update_statuses(companies, TODAY) == 1


def test_process_renewal_moves_dates_forward():
    company = make_company(status="expired", renewal_in_days=-2)
    assert automation.process_renewal(company, TODAY) is True
    assert company.renewal_date == date(2026, 6, 1)
    assert company.expiry_date == date(2027, 6, 1)
    assert company.status == "active"
    assert company.payment_status == "paid"
    assert company.activity_log[-1].action == "Company Renewed"


def test_process_renewal_keeps_pending_payment():
    company = make_company(status="active", payment_status="pending")
    automation.process_renewal(company, TODAY)
    assert company.payment_status == "pending"


def test_process_renewal_refused_for_refunded_company():
    company = make_company(status="refunded")
    assert automation.process_renewal(company, TODAY) is False
    assert company.activity_log == []


def test_process_refund_records_ownership_change():
    company = make_company(client_name="Jane Buyer")
    assert automation.process_refund(company, "changed mind", Decimal("500")) is True
    assert company.status == "refunded"
    assert company.payment_status == "refunded"
    assert company.refund_status == "fully-refunded"
    entry = company.ownership_history[-1]
    assert entry.previous_owner == "Jane Buyer"
    assert entry.new_owner == "System"
    assert entry.reason == "refund"
    assert automation.process_refund(company, "again", Decimal("1")) is False


def test_reactivate_only_from_refunded_or_cancelled():
    assert automation.reactivate_company(make_company(status="active")) is False
    company = make_company(status="cancelled")
    assert automation.reactivate_company(company) is True
    assert company.status == "available"


def test_cancel_company_is_noop_when_already_cancelled():
    company = make_company()
    assert automation.cancel_company(company, "fraud") is True
    assert company.ownership_history[-1].reason == "cancellation"
    assert automation.cancel_company(company, "fraud") is False
    assert len(company.activity_log) == 1


def test_transfer_ownership_updates_client():
    company = make_company(client_name="Old Owner", client_email="old@example.com")
    automation.transfer_ownership(company, "New Owner", "new@example.com", "private sale")
    assert company.client_name == "New Owner"
    assert company.client_email == "new@example.com"
    assert company.ownership_history[-1].previous_owner == "Old Owner"
    assert company.ownership_history[-1].reason == "sale"


def test_order_automation_completed_marks_company_sold():
    company = make_company(status="pending")
    order = Order(
        order_number="ORD-1",
        customer_name="Buyer",
        customer_email="buyer@example.com",
        company=company,
        company_name=company.name,
        company_number=company.number,
        status="completed",
        renewal_date=date(2026, 1, 1),
    )
    automation.apply_order_automation(order)
    assert company.status == "sold"
    assert company.client_email == "buyer@example.com"
    assert company.renewal_date == date(2026, 1, 1)


def test_order_automation_cancelled_returns_company_to_inventory():
    company = make_company(status="pending")
    order = Order(order_number="ORD-2", company=company, status="cancelled")
    automation.apply_order_automation(order)
    assert company.status == "available"


def test_order_automation_paid_stamps_payment():
    order = Order(order_number="ORD-3", status="paid")
    automation.apply_order_automation(order)
    assert order.payment_status == "completed"
    assert order.payment_date is not None


def test_health_score_deductions_stack():
    assert automation.company_health_score(make_company(renewal_in_days=100), TODAY) == 100
    # pending payment (-20), due within 7 days (-20) and within 30 days (-10)
    company = make_company(renewal_in_days=5, payment_status="pending")
    assert automation.company_health_score(company, TODAY) == 50
    expired = make_company(status="expired", renewal_in_days=-3, payment_status="failed")
    assert automation.company_health_score(expired, TODAY) == 0


def test_renewal_notifications_sorted_and_classified():
    companies = [
        make_company(name="Later", renewal_in_days=60),
        make_company(name="Soon", renewal_in_days=20),
        make_company(name="Urgent", renewal_in_days=3),
        make_company(name="Sold", status="sold", renewal_in_days=3),
    ]
    notes = automation.renewal_notifications(companies, TODAY)
    assert [n["company_name"] for n in notes] == ["Urgent", "Soon", "Later"]
    assert [n["type"] for n in notes] == ["urgent", "warning", "info"]


def test_reminders_report_overdue_magnitude():
    companies = [
        make_company(name="A", renewal_in_days=30),
        make_company(name="B", renewal_in_days=0),
        make_company(name="C", renewal_in_days=-4),
        make_company(name="D", renewal_in_days=12),
    ]
    reminders = automation.generate_renewal_reminders(companies, TODAY)
    assert reminders == [
        "30-day renewal reminder: A (123)",
        "CRITICAL: B renewal due today!",
        "OVERDUE: C renewal overdue by 4 days!",
    ]


def test_company_statistics():
    companies = [
        make_company(status="active", renewal_in_days=10, payment_status="pending"),
        make_company(status="sold", purchase_price=Decimal("250.50")),
        make_company(status="available"),
    ]
    stats = automation.company_statistics(companies, TODAY)
    assert stats["total"] == 3
    assert stats["active"] == 1
    assert stats["sold"] == 1
    assert stats["available"] == 1
    assert stats["total_revenue"] == Decimal("2250.50")
    assert stats["renewing_soon"] == 1
    assert stats["payment_pending"] == 1


def test_companies_needing_attention():
    ok = make_company(renewal_in_days=100)
    overdue = make_company(renewal_in_days=-1)
    unpaid = make_company(renewal_in_days=100, payment_status="failed")
    assert automation.companies_needing_attention([ok, overdue, unpaid], TODAY) == [overdue, unpaid]
