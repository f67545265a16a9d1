from datetime import date, timedelta
from decimal import Decimal

import pytest

from shelfmarket.models import Coupon, Fee, InvoiceLine
from shelfmarket.services import (
    CouponError,
    calculate_fees,
    check_coupon,
    checkout_quote,
    invoice_analytics,
    invoice_display_status,
    invoice_summary,
    money_round,
    normalize_fee_type,
    validate_coupon,
)

TODAY = date(2025, 6, 1)


def fee(fee_type, amount, enabled=True, fee_id=None):
    return Fee(id=fee_id, name=f"{fee_type} fee", fee_type=fee_type, amount=Decimal(amount), enabled=enabled)


def coupon(**values):
    values.setdefault("code", "TEST")
    values.setdefault("discount_type", "percentage")
    values.setdefault("discount_value", Decimal("10"))
    values.setdefault("applicable_to", "all")
    return Coupon(**values)


def test_fee_engine_flat_and_percentage():
    result = calculate_fees(Decimal("1000"), [fee("flat", "50"), fee("percentage", "10")])
    assert result["total_fees"] == Decimal("150.00")
    assert result["final_total"] == Decimal("1150.00")
    assert [f["amount"] for f in result["fees"]] == [Decimal("50.00"), Decimal("100.00")]


def test_disabled_fees_are_skipped():
    result = calculate_fees(Decimal("200"), [fee("fixed", "25", enabled=False), fee("fixed", "5")])
    assert result["total_fees"] == Decimal("5.00")
    assert len(result["fees"]) == 1


def test_percentage_fee_rounds_half_up_to_cents():
    result = calculate_fees(Decimal("10.05"), [fee("percentage", "5")])
    # 0.5025 -> 0.50
    assert result["total_fees"] == Decimal("0.50")
    assert money_round(Decimal("0.125")) == Decimal("0.13")


def test_unknown_fee_type_rejected():
    assert normalize_fee_type("Flat") == "fixed"
    with pytest.raises(ValueError):
        normalize_fee_type("tiered")


def test_percentage_coupon_discount():
    result = validate_coupon(coupon(discount_value=Decimal("10")), Decimal("1150"), TODAY)
    assert result["valid"] is True
    assert result["discount"] == Decimal("115.00")
    assert result["discounted_total"] == Decimal("1035.00")


def test_fixed_coupon_never_drives_total_negative():
    result = validate_coupon(coupon(discount_type="fixed", discount_value=Decimal("80")), Decimal("50"), TODAY)
    assert result["discount"] == Decimal("50.00")
    assert result["discounted_total"] == Decimal("0.00")


@pytest.mark.parametrize(
    "values, total, message",
    [
        ({"active": False}, "100", "Coupon is no longer active"),
        ({"expiry_date": TODAY - timedelta(days=1)}, "100", "Coupon has expired"),
        ({"max_uses": 2, "used_count": 2}, "100", "Coupon usage limit reached"),
        ({"min_order_value": Decimal("500")}, "100", "Minimum order value of 500.00 required"),
    ],
)
def test_coupon_rejections(values, total, message):
    result = validate_coupon(coupon(**values), Decimal(total), TODAY)
    assert result["valid"] is False
    assert result["message"] == message
    assert result["discounted_total"] == Decimal(total)


def test_missing_coupon_is_flagged_not_found():
    result = validate_coupon(None, Decimal("100"), TODAY)
    assert result["valid"] is False
    assert result["not_found"] is True


def test_coupon_scope():
    services_only = coupon(applicable_to="services")
    with pytest.raises(CouponError):
        check_coupon(services_only, Decimal("100"), TODAY, scope="companies")
    assert check_coupon(services_only, Decimal("100"), TODAY, scope="services") == Decimal("10.00")


def test_expiry_day_itself_is_still_valid():
    assert validate_coupon(coupon(expiry_date=TODAY), Decimal("100"), TODAY)["valid"] is True


def test_checkout_quote_applies_coupon_to_fee_inclusive_total():
    quote = checkout_quote(
        Decimal("1000"),
        [fee("flat", "50"), fee("percentage", "10")],
        coupon(discount_value=Decimal("10")),
        TODAY,
    )
    assert quote.subtotal == Decimal("1000.00")
    assert quote.total_fees == Decimal("150.00")
    assert quote.discount == Decimal("115.00")
    assert quote.total == Decimal("1035.00")
    assert quote.coupon_code == "TEST"


def test_checkout_quote_without_coupon():
    quote = checkout_quote(Decimal("99.99"), [], None, TODAY)
    assert quote.total == Decimal("99.99")
    assert quote.discount == Decimal("0")


def test_invoice_summary():
    lines = [
        InvoiceLine(description="Company", quantity=Decimal("1"), unit_price=Decimal("150")),
        InvoiceLine(description="Apostille", quantity=Decimal("2"), unit_price=Decimal("25")),
    ]
    totals = invoice_summary(lines, tax_amount=Decimal("20"), discount_amount=Decimal("30"),
                             custom_fee=Decimal("10"))
    assert totals["subtotal"] == Decimal("200.00")
    assert totals["total"] == Decimal("200.00")


def test_overdue_is_derived_from_due_date():
    assert invoice_display_status("pending", TODAY - timedelta(days=1), TODAY) == "overdue"
    assert invoice_display_status("partial", TODAY - timedelta(days=1), TODAY) == "overdue"
    assert invoice_display_status("pending", TODAY, TODAY) == "pending"
    assert invoice_display_status("paid", TODAY - timedelta(days=10), TODAY) == "paid"


def test_invoice_analytics_buckets_amounts():
    class Row:
        def __init__(self, status, due, amount, method=None):
            self.status = status
            self.due_date = due
            self.amount = Decimal(amount)
            self.payment_method = method

    rows = [
        Row("paid", TODAY, "100", "card"),
        Row("pending", TODAY + timedelta(days=5), "40"),
        Row("pending", TODAY - timedelta(days=5), "60", "card"),
    ]
    summary = invoice_analytics(rows, TODAY)
    assert summary["count"] == 3
    assert summary["total_amount"] == Decimal("200.00")
    assert summary["paid_amount"] == Decimal("100.00")
    assert summary["pending_amount"] == Decimal("40.00")
    assert summary["overdue_amount"] == Decimal("60.00")
    assert summary["by_status"] == {"paid": 1, "pending": 1, "overdue": 1}
    assert summary["by_payment_method"] == {"card": 2, "N/A": 1}
