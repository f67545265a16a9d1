"""State-transition guards for orders, invoices, transfer forms, service
orders and the admin side of companies.

Each entity has one table mapping a status to the set of statuses that
may follow it.  The ``change_*_status`` helpers validate a move against
the table, mutate the ORM object **in-place** and append a history row;
committing is left to the caller.
"""

import logging
from datetime import date, datetime
from typing import Dict, Optional, Set

from .models import (
    Company,
    CompanyActivity,
    Invoice,
    InvoiceStatusChange,
    Order,
    OrderStatusChange,
    ServiceOrder,
    ServiceOrderStatusChange,
    TransferForm,
    TransferFormStatusChange,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# Status values
# ---------------------------------------------------------------------
COMPANY_STATUSES = ("active", "expired", "cancelled", "refunded", "available", "pending", "sold")

ORDER_STATUSES = (
    "pending-payment",
    "paid",
    "transfer-form-pending",
    "under-review",
    "amend-required",
    "pending-transfer",
    "completed",
    "cancelled",
    "refunded",
    "disputed",
)

# "overdue" is derived from the due date, never stored
INVOICE_STATUSES = ("pending", "paid", "partial", "refunded")

TRANSFER_FORM_STATUSES = (
    "under-review",
    "amend-required",
    "confirm-application",
    "transferring",
    "complete-transfer",
    "canceled",
)

SERVICE_ORDER_STATUSES = ("pending", "processing", "completed", "cancelled")

# ---------------------------------------------------------------------
# Allowed transitions: source status -> set[valid target statuses]
# ---------------------------------------------------------------------
ORDER_TRANSITIONS: Dict[str, Set[str]] = {
    "pending-payment":       {"paid", "cancelled"},
    "paid":                  {"transfer-form-pending", "refunded", "disputed", "cancelled"},
    "transfer-form-pending": {"under-review", "cancelled", "refunded"},
    "under-review":          {"amend-required", "pending-transfer", "cancelled"},
    "amend-required":        {"under-review", "cancelled"},
    "pending-transfer":      {"completed", "disputed"},
    "completed":             {"refunded", "disputed"},
    "disputed":              {"refunded", "completed", "cancelled"},
    "cancelled":             set(),
    "refunded":              set(),
}

INVOICE_TRANSITIONS: Dict[str, Set[str]] = {
    "pending":  {"paid", "partial", "refunded"},
    "partial":  {"paid", "refunded"},
    "paid":     {"refunded"},
    "refunded": set(),
}

TRANSFER_FORM_TRANSITIONS: Dict[str, Set[str]] = {
    "under-review":        {"amend-required", "confirm-application", "canceled"},
    "amend-required":      {"under-review", "canceled"},
    "confirm-application": {"transferring", "amend-required", "canceled"},
    "transferring":        {"complete-transfer", "canceled"},
    "complete-transfer":   set(),
    "canceled":            set(),
}

SERVICE_ORDER_TRANSITIONS: Dict[str, Set[str]] = {
    "pending":    {"processing", "cancelled"},
    "processing": {"completed", "cancelled"},
    "completed":  set(),
    "cancelled":  set(),
}

COMPANY_TRANSITIONS: Dict[str, Set[str]] = {
    "active":    {"expired", "cancelled", "refunded", "sold"},
    "expired":   {"active", "cancelled"},
    "cancelled": {"available"},
    "refunded":  {"available"},
    "available": {"pending", "sold"},
    "pending":   {"available", "active", "sold"},
    "sold":      {"active", "refunded"},
}

TRANSITIONS: Dict[str, Dict[str, Set[str]]] = {
    "order": ORDER_TRANSITIONS,
    "invoice": INVOICE_TRANSITIONS,
    "transfer-form": TRANSFER_FORM_TRANSITIONS,
    "service-order": SERVICE_ORDER_TRANSITIONS,
    "company": COMPANY_TRANSITIONS,
}


class InvalidTransition(ValueError):
    """Raised when a status change is not allowed from the current status."""


def allowed_next(rules: Dict[str, Set[str]], current: str) -> Set[str]:
    return set(rules.get(current, set()))


def check_transition(rules: Dict[str, Set[str]], current: str, new_status: str, kind: str) -> None:
    """
    Raise :class:`InvalidTransition` unless ``current -> new_status`` is legal.

    Examples
    --------
    >>> check_transition(ORDER_TRANSITIONS, "paid", "completed", "order")
    Traceback (most recent call last):
        ...
    InvalidTransition: illegal order transition paid -> completed
    """
    if new_status not in rules:
        raise InvalidTransition(f"unknown {kind} status {new_status!r}")
    if new_status not in rules.get(current, set()):
        raise InvalidTransition(f"illegal {kind} transition {current} -> {new_status}")


def change_order_status(
    order: Order,
    new_status: str,
    changed_by: str = "admin",
    reason: Optional[str] = None,
) -> OrderStatusChange:
    check_transition(ORDER_TRANSITIONS, order.status, new_status, "order")
    now = datetime.now()
    entry = OrderStatusChange(
        from_status=order.status,
        to_status=new_status,
        changed_date=now,
        changed_by=changed_by,
        reason=reason,
        notes=f"Status changed from {order.status} to {new_status}",
    )
    order.status_history.append(entry)
    logger.info("Order %s: %s -> %s", order.order_number, order.status, new_status)
    order.status = new_status
    order.status_changed_date = now
    order.updated_at = now
    return entry


def change_invoice_status(
    invoice: Invoice,
    new_status: str,
    changed_by: str = "admin",
    reason: Optional[str] = None,
) -> InvoiceStatusChange:
    check_transition(INVOICE_TRANSITIONS, invoice.status, new_status, "invoice")
    entry = InvoiceStatusChange(
        from_status=invoice.status,
        to_status=new_status,
        changed_by=changed_by,
        reason=reason,
    )
    invoice.status_history.append(entry)
    logger.info("Invoice %s: %s -> %s", invoice.invoice_number, invoice.status, new_status)
    invoice.status = new_status
    if new_status == "paid":
        invoice.paid_date = invoice.paid_date or date.today()
        if invoice.paid_amount is None:
            invoice.paid_amount = invoice.amount
    invoice.updated_at = datetime.now()
    return entry


def change_transfer_form_status(
    form: TransferForm,
    new_status: str,
    changed_by: str = "admin",
    reason: Optional[str] = None,
    notes: Optional[str] = None,
) -> TransferFormStatusChange:
    check_transition(TRANSFER_FORM_TRANSITIONS, form.status, new_status, "transfer form")
    now = datetime.now()
    entry = TransferFormStatusChange(
        from_status=form.status,
        to_status=new_status,
        changed_date=now,
        changed_by=changed_by,
        reason=reason,
        notes=notes,
    )
    form.status_history.append(entry)
    logger.info("Transfer form %s: %s -> %s", form.form_number, form.status, new_status)
    form.status = new_status
    if new_status == "amend-required":
        form.amendments_required_count = (form.amendments_required_count or 0) + 1
        form.last_amendment_date = now
    if new_status == "complete-transfer":
        form.completed_at = now
    form.updated_at = now
    return entry


def change_service_order_status(
    service_order: ServiceOrder,
    new_status: str,
    changed_by: str = "admin",
    reason: Optional[str] = None,
) -> ServiceOrderStatusChange:
    check_transition(SERVICE_ORDER_TRANSITIONS, service_order.status, new_status, "service order")
    entry = ServiceOrderStatusChange(
        from_status=service_order.status,
        to_status=new_status,
        changed_by=changed_by,
        reason=reason,
    )
    service_order.status_history.append(entry)
    logger.info("Service order %s: %s -> %s", service_order.id, service_order.status, new_status)
    service_order.status = new_status
    if new_status == "completed":
        service_order.completion_date = date.today()
    service_order.updated_at = datetime.now()
    return entry


def change_company_status(
    company: Company,
    new_status: str,
    performed_by: str = "admin",
    details: Optional[str] = None,
) -> CompanyActivity:
    check_transition(COMPANY_TRANSITIONS, company.status, new_status, "company")
    entry = CompanyActivity(
        action="Status Changed",
        performed_by=performed_by,
        details=details or f"Status changed from {company.status} to {new_status}",
        previous_status=company.status,
        new_status=new_status,
    )
    company.activity_log.append(entry)
    logger.info("Company %s: %s -> %s", company.number, company.status, new_status)
    company.status = new_status
    company.updated_at = datetime.now()
    return entry


def advance_status(entity, new_status: str, changed_by: str = "admin", reason: Optional[str] = None):
    """Move any guarded entity to ``new_status`` and return the history row."""
    if isinstance(entity, Order):
        return change_order_status(entity, new_status, changed_by, reason)
    if isinstance(entity, Invoice):
        return change_invoice_status(entity, new_status, changed_by, reason)
    if isinstance(entity, TransferForm):
        return change_transfer_form_status(entity, new_status, changed_by, reason)
    if isinstance(entity, ServiceOrder):
        return change_service_order_status(entity, new_status, changed_by, reason)
    if isinstance(entity, Company):
        return change_company_status(entity, new_status, changed_by, reason)
    raise TypeError(f"{type(entity).__name__} has no status transitions")
