"""Company lifecycle operations and the status automation that follows an
order through checkout.

Every operation works **in-place** on an ORM :class:`~shelfmarket.models.Company`
and appends to its activity log (and, when ownership moves, to its
ownership history).  Callers commit.
"""

import logging
from collections import Counter
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from .models import Company, CompanyActivity, Order, OwnershipHistoryEntry
from .renewal import (
    calculate_expiry_date,
    calculate_renewal_days_left,
    days_until_renewal,
)

logger = logging.getLogger(__name__)

HOLDING_STATUSES = ("available", "pending")


def determine_status(renewal_date, current_status: str, today: Optional[date] = None) -> str:
    """
    Status a company should have given its renewal date.

    ``available`` and ``pending`` are left alone.  A company whose renewal
    date has arrived is ``expired``.  A refunded or cancelled company with a
    future renewal date goes back to ``available``; everything else is
    ``active``.
    """
    if current_status in HOLDING_STATUSES:
        return current_status
    if days_until_renewal(renewal_date, today) <= 0:
        return "expired"
    if current_status in ("refunded", "cancelled"):
        return "available"
    return "active"


def renewal_days_left(company: Company, today: Optional[date] = None) -> int:
    return calculate_renewal_days_left(company.renewal_date, today)


def log_activity(company: Company, action: str, details: str, performed_by: str = "admin",
                 previous_status: Optional[str] = None, new_status: Optional[str] = None) -> CompanyActivity:
    entry = CompanyActivity(
        timestamp=datetime.now(),
        action=action,
        performed_by=performed_by,
        details=details,
        previous_status=previous_status,
        new_status=new_status,
    )
    company.activity_log.append(entry)
    company.updated_at = datetime.now()
    return entry


def _record_owner_change(company: Company, new_owner: str, reason: str, notes: str) -> OwnershipHistoryEntry:
    entry = OwnershipHistoryEntry(
        previous_owner=company.client_name,
        new_owner=new_owner,
        transfer_date=date.today(),
        reason=reason,
        notes=notes,
    )
    company.ownership_history.append(entry)
    return entry


def auto_update_status(company: Company, today: Optional[date] = None) -> bool:
    """Apply :func:`determine_status`; return True when the status changed."""
    if company.status in HOLDING_STATUSES:
        return False
    new_status = determine_status(company.renewal_date, company.status, today)
    if new_status == company.status:
        return False
    previous = company.status
    log_activity(
        company,
        "Automatic Status Update",
        f"Status automatically changed from {previous} to {new_status} based on renewal date",
        performed_by="system",
        previous_status=previous,
        new_status=new_status,
    )
    company.status = new_status
    logger.info("Company %s auto-updated %s -> %s", company.number, previous, new_status)
    return True


def batch_auto_update_statuses(companies: Iterable[Company], today: Optional[date] = None) -> int:
    return sum(1 for company in companies if auto_update_status(company, today))


def process_renewal(company: Company, today: Optional[date] = None) -> bool:
    if company.status in ("refunded", "cancelled"):
        return False
    today = today or date.today()
    new_renewal = calculate_expiry_date(today)
    new_expiry = calculate_expiry_date(new_renewal)
    previous = company.status
    company.renewal_date = new_renewal
    company.expiry_date = new_expiry
    company.status = "active"
    company.payment_status = "pending" if company.payment_status == "pending" else "paid"
    log_activity(
        company,
        "Company Renewed",
        f"Company renewed successfully. New renewal date: {new_renewal.isoformat()}. "
        f"New expiry date: {new_expiry.isoformat()}",
        performed_by="system",
        previous_status=previous,
        new_status="active",
    )
    logger.info("Company %s renewed until %s", company.number, new_renewal)
    return True


def process_refund(company: Company, reason: str, amount: Decimal) -> bool:
    if company.status == "refunded":
        return False
    previous = company.status
    _record_owner_change(company, "System", "refund", f"Refunded to system. Original reason: {reason}")
    company.status = "refunded"
    company.payment_status = "refunded"
    company.refund_status = "fully-refunded"
    log_activity(
        company,
        "Company Refunded",
        f"Company refunded. Reason: {reason}. Refund amount: {amount}",
        previous_status=previous,
        new_status="refunded",
    )
    logger.info("Company %s refunded (%s)", company.number, amount)
    return True


def reactivate_company(company: Company) -> bool:
    if company.status not in ("refunded", "cancelled"):
        return False
    previous = company.status
    company.status = "available"
    log_activity(
        company,
        "Company Reactivated",
        "Company made available for purchase again",
        previous_status=previous,
        new_status="available",
    )
    return True


def cancel_company(company: Company, reason: str) -> bool:
    if company.status == "cancelled":
        return False
    previous = company.status
    _record_owner_change(company, "System", "cancellation", f"Cancelled. Reason: {reason}")
    company.status = "cancelled"
    log_activity(
        company,
        "Company Cancelled",
        f"Company cancelled. Reason: {reason}",
        previous_status=previous,
        new_status="cancelled",
    )
    logger.info("Company %s cancelled", company.number)
    return True


def transfer_ownership(company: Company, new_owner_name: str, new_owner_email: str, reason: str) -> None:
    previous_owner = company.client_name
    _record_owner_change(
        company,
        new_owner_name,
        "sale",
        f"Transferred to {new_owner_name} ({new_owner_email}). Reason: {reason}",
    )
    company.client_name = new_owner_name
    company.client_email = new_owner_email
    log_activity(
        company,
        "Ownership Transferred",
        f"Ownership transferred from {previous_owner} to {new_owner_name}. Reason: {reason}",
    )


def mark_sold(company: Company, buyer_name: str, buyer_email: str, performed_by: str = "system") -> None:
    previous = company.status
    _record_owner_change(company, buyer_name, "sale", f"Sold to {buyer_name} ({buyer_email})")
    company.client_name = buyer_name
    company.client_email = buyer_email
    company.status = "sold"
    company.payment_status = "paid"
    log_activity(
        company,
        "Company Sold",
        f"Company sold to {buyer_name}",
        performed_by=performed_by,
        previous_status=previous,
        new_status="sold",
    )


def make_available(company: Company, details: str, performed_by: str = "system") -> None:
    previous = company.status
    if previous == "available":
        return
    company.status = "available"
    log_activity(company, "Returned To Inventory", details, performed_by=performed_by,
                 previous_status=previous, new_status="available")


def reserve_for_order(company: Company, order_number: str) -> None:
    previous = company.status
    company.status = "pending"
    log_activity(
        company,
        "Reserved",
        f"Reserved by order {order_number}",
        performed_by="system",
        previous_status=previous,
        new_status="pending",
    )


# ---------------------------------------------------------------------
# Order status automation
# ---------------------------------------------------------------------
def apply_order_automation(order: Order) -> None:
    """Side effects on the order and its company after a status change."""
    company = order.company
    if order.status == "paid":
        order.payment_status = "completed"
        order.payment_date = order.payment_date or datetime.now()
    elif order.status == "completed" and company is not None:
        mark_sold(company, order.customer_name, order.customer_email)
        company.renewal_date = order.renewal_date or company.renewal_date
    elif order.status in ("cancelled", "refunded") and company is not None:
        make_available(company, f"Order {order.order_number} {order.status}")
    if order.status == "refunded":
        order.payment_status = "refunded"


# ---------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------
def is_renewal_due_soon(company: Company, today: Optional[date] = None, warning_days: int = 30) -> bool:
    days = renewal_days_left(company, today)
    return 0 < days <= warning_days


def is_expired(company: Company, today: Optional[date] = None) -> bool:
    return renewal_days_left(company, today) <= 0


def is_healthy(company: Company, today: Optional[date] = None) -> bool:
    return (
        company.status == "active"
        and company.payment_status == "paid"
        and renewal_days_left(company, today) > 30
    )


def companies_needing_attention(companies: Iterable[Company], today: Optional[date] = None) -> List[Company]:
    return [
        c
        for c in companies
        if is_expired(c, today)
        or (is_renewal_due_soon(c, today) and c.payment_status != "paid")
        or c.payment_status in ("failed", "pending")
    ]


def renewal_notifications(
    companies: Iterable[Company],
    today: Optional[date] = None,
    urgent_days: int = 7,
    warning_days: int = 30,
) -> List[Dict]:
    notifications = []
    for c in companies:
        days = renewal_days_left(c, today)
        if c.status != "active" or days <= 0:
            continue
        if days <= urgent_days:
            kind = "urgent"
            message = f"Company renewal due in {days} days - URGENT"
        elif days <= warning_days:
            kind = "warning"
            message = f"Company renewal due in {days} days"
        else:
            kind = "info"
            message = f"Company renewal due on {c.renewal_date.isoformat()}"
        notifications.append(
            {
                "company_id": c.id,
                "company_name": c.name,
                "days_left": days,
                "renewal_date": c.renewal_date,
                "type": kind,
                "message": message,
            }
        )
    return sorted(notifications, key=lambda n: n["days_left"])


def generate_renewal_reminders(companies: Iterable[Company], today: Optional[date] = None) -> List[str]:
    reminders = []
    for c in companies:
        if c.status != "active":
            continue
        days = days_until_renewal(c.renewal_date, today)
        if days == 30:
            reminders.append(f"30-day renewal reminder: {c.name} ({c.number})")
        elif days == 14:
            reminders.append(f"2-week renewal reminder: {c.name} ({c.number})")
        elif days == 7:
            reminders.append(f"7-day renewal reminder: {c.name} ({c.number})")
        elif days == 1:
            reminders.append(f"URGENT: {c.name} renews tomorrow!")
        elif days == 0:
            reminders.append(f"CRITICAL: {c.name} renewal due today!")
        elif days < 0:
            reminders.append(f"OVERDUE: {c.name} renewal overdue by {abs(days)} days!")
    return reminders


def company_health_score(company: Company, today: Optional[date] = None) -> int:
    score = 100
    score -= {"pending": 20, "failed": 40, "refunded": 50}.get(company.payment_status, 0)

    # deductions stack: an overdue company also counts as due within 7 and 30 days
    days = renewal_days_left(company, today)
    if days <= 0:
        score -= 30
    if days <= 7:
        score -= 20
    if days <= 30:
        score -= 10

    score -= {"expired": 30, "cancelled": 50, "refunded": 40}.get(company.status, 0)
    return max(0, score)


def company_statistics(companies: Iterable[Company], today: Optional[date] = None) -> Dict:
    companies = list(companies)
    by_status = Counter(c.status for c in companies)
    return {
        "total": len(companies),
        "active": by_status["active"],
        "expired": by_status["expired"],
        "available": by_status["available"],
        "cancelled": by_status["cancelled"],
        "refunded": by_status["refunded"],
        "sold": by_status["sold"],
        "total_revenue": sum((Decimal(c.purchase_price or 0) for c in companies), Decimal("0")),
        "renewing_soon": sum(1 for c in companies if renewal_days_left(c, today) <= 30),
        "payment_pending": sum(1 for c in companies if c.payment_status == "pending"),
    }
