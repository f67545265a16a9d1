"""Date arithmetic for the yearly renewal cycle of a shelf company.

All helpers accept either a :class:`datetime.date` or an ISO ``YYYY-MM-DD``
string and take an optional ``today`` so callers (and tests) can pin the
clock.
"""

from datetime import date, datetime
from typing import Optional, Union

DateLike = Union[date, str]

RENEWAL_ACTIVE = "active"
RENEWAL_REQUIRED = "renewal-required"
RENEWAL_EXPIRED = "expired"
RENEWAL_CANCELLED = "cancelled"


def to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value[:10], "%Y-%m-%d").date()


def add_years(value: date, years: int) -> date:
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        # 29 February in a non-leap target year
        return value.replace(year=value.year + years, day=28)


def calculate_expiry_date(base: DateLike) -> date:
    """One calendar year after ``base``."""
    return add_years(to_date(base), 1)


def days_until_renewal(renewal_date: DateLike, today: Optional[date] = None) -> int:
    """Signed number of days until ``renewal_date``; negative once overdue."""
    today = today or date.today()
    return (to_date(renewal_date) - today).days


def calculate_renewal_days_left(renewal_date: DateLike, today: Optional[date] = None) -> int:
    """Days left until renewal, never below zero."""
    return max(0, days_until_renewal(renewal_date, today))


def renewal_window_status(renewal_date: DateLike, today: Optional[date] = None) -> str:
    """
    Classify where a company sits in its renewal window:

    * 15 days or more left: ``active``
    * 0 to 14 days left: ``renewal-required``
    * 1 to 24 days overdue: ``expired``
    * 25 days or more overdue: ``cancelled``
    """
    days = days_until_renewal(renewal_date, today)
    if days >= 15:
        return RENEWAL_ACTIVE
    if days >= 0:
        return RENEWAL_REQUIRED
    if days > -25:
        return RENEWAL_EXPIRED
    return RENEWAL_CANCELLED


def renewal_button_enabled(renewal_date: DateLike, today: Optional[date] = None) -> bool:
    days = days_until_renewal(renewal_date, today)
    return -25 <= days <= 15


def calculate_smart_renewal_date(original: DateLike, today: Optional[date] = None) -> date:
    """
    Next renewal date that keeps the original month and day.

    The date lands in next year, or the year after when that would
    already be in the past.
    """
    original = to_date(original)
    today = today or date.today()
    candidate = add_years(original, today.year + 1 - original.year)
    if candidate < today:
        candidate = add_years(original, today.year + 2 - original.year)
    return candidate
