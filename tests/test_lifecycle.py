import pytest

from shelfmarket.lifecycle import (
    COMPANY_STATUSES,
    INVOICE_STATUSES,
    ORDER_STATUSES,
    SERVICE_ORDER_STATUSES,
    TRANSFER_FORM_STATUSES,
    TRANSITIONS,
    InvalidTransition,
    advance_status,
    allowed_next,
    change_invoice_status,
    change_order_status,
    change_transfer_form_status,
)
from shelfmarket.models import Company, Invoice, Order, ServiceOrder, TransferForm


def test_every_status_has_a_table_row():
    assert set(TRANSITIONS["order"]) == set(ORDER_STATUSES)
    assert set(TRANSITIONS["invoice"]) == set(INVOICE_STATUSES)
    assert set(TRANSITIONS["transfer-form"]) == set(TRANSFER_FORM_STATUSES)
    assert set(TRANSITIONS["service-order"]) == set(SERVICE_ORDER_STATUSES)
    assert set(TRANSITIONS["company"]) == set(COMPANY_STATUSES)


def test_targets_are_known_statuses_and_never_self():
    for rules in TRANSITIONS.values():
        for source, targets in rules.items():
            assert targets <= set(rules)
            assert source not in targets


def test_order_happy_path_records_history():
    order = Order(order_number="ORD-1", status="pending-payment")
    for status in ("paid", "transfer-form-pending", "under-review", "pending-transfer", "completed"):
        change_order_status(order, status, changed_by="ops")
    assert order.status == "completed"
    assert [h.to_status for h in order.status_history] == [
        "paid", "transfer-form-pending", "under-review", "pending-transfer", "completed",
    ]
    assert order.status_history[0].from_status == "pending-payment"
    assert order.status_history[0].changed_by == "ops"


def test_illegal_order_transition_leaves_order_untouched():
    order = Order(order_number="ORD-2", status="paid")
    with pytest.raises(InvalidTransition) as exc:
        change_order_status(order, "completed")
    assert "paid -> completed" in str(exc.value)
    assert order.status == "paid"
    assert order.status_history == []


def test_terminal_statuses_and_self_moves_rejected():
    assert allowed_next(TRANSITIONS["order"], "refunded") == set()
    order = Order(order_number="ORD-3", status="paid")
    with pytest.raises(InvalidTransition):
        change_order_status(order, "paid")


def test_overdue_cannot_be_stored_on_invoice():
    invoice = Invoice(invoice_number="INV-1", status="pending")
    with pytest.raises(InvalidTransition):
        change_invoice_status(invoice, "overdue")


def test_paying_an_invoice_stamps_payment():
    invoice = Invoice(invoice_number="INV-2", status="pending", amount=120)
    change_invoice_status(invoice, "paid")
    assert invoice.paid_date is not None
    assert invoice.paid_amount == 120


def test_amend_required_counts_amendments():
    form = TransferForm(form_number="FORM-1", status="under-review")
    change_transfer_form_status(form, "amend-required", notes="missing passport")
    change_transfer_form_status(form, "under-review")
    change_transfer_form_status(form, "amend-required")
    assert form.amendments_required_count == 2
    assert form.last_amendment_date is not None
    assert form.status_history[0].notes == "missing passport"


def test_advance_status_dispatches_on_type():
    service_order = ServiceOrder(status="pending")
    advance_status(service_order, "processing")
    advance_status(service_order, "completed")
    assert service_order.completion_date is not None

    company = Company(number="1", status="available")
    advance_status(company, "pending")
    assert company.activity_log[-1].new_status == "pending"

    with pytest.raises(TypeError):
        advance_status(object(), "paid")
