from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence

from .models import Company
from .renewal import calculate_renewal_days_left

SORT_FIELDS = ("name", "date", "price", "renewal", "status")


@dataclass
class CompanyFilter:
    status: List[str] = field(default_factory=list)
    country: List[str] = field(default_factory=list)
    company_type: List[str] = field(default_factory=list)
    payment_status: List[str] = field(default_factory=list)
    refund_status: List[str] = field(default_factory=list)
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    min_days: Optional[int] = None
    max_days: Optional[int] = None
    tags: List[str] = field(default_factory=list)
    search: Optional[str] = None


def _tag_ids(company: Company) -> List[str]:
    ids = []
    for tag in company.tags or []:
        ids.append(tag.get("id") if isinstance(tag, dict) else tag)
    return ids


def matches(company: Company, flt: CompanyFilter, today: Optional[date] = None) -> bool:
    if flt.status and company.status not in flt.status:
        return False
    if flt.country and company.country not in flt.country:
        return False
    if flt.company_type and company.company_type not in flt.company_type:
        return False
    if flt.payment_status and company.payment_status not in flt.payment_status:
        return False
    if flt.refund_status and company.refund_status not in flt.refund_status:
        return False

    price = company.purchase_price or Decimal("0")
    if flt.min_price is not None and price < flt.min_price:
        return False
    if flt.max_price is not None and price > flt.max_price:
        return False

    days = calculate_renewal_days_left(company.renewal_date, today)
    if flt.min_days is not None and days < flt.min_days:
        return False
    if flt.max_days is not None and days > flt.max_days:
        return False

    if flt.tags:
        tag_ids = _tag_ids(company)
        if not all(tag in tag_ids for tag in flt.tags):
            return False

    if flt.search:
        term = flt.search.lower()
        haystack = (
            company.name,
            company.number,
            company.client_name or "",
            company.client_email or "",
        )
        return any(term in value.lower() for value in haystack)

    return True


def filter_companies(
    companies: Sequence[Company], flt: CompanyFilter, today: Optional[date] = None
) -> List[Company]:
    return [c for c in companies if matches(c, flt, today)]


def sort_companies(companies: Sequence[Company], sort_by: str = "date", order: str = "desc") -> List[Company]:
    if sort_by not in SORT_FIELDS:
        raise ValueError(f"unknown sort field {sort_by!r}")
    keys = {
        "name": lambda c: (c.name or "").lower(),
        "date": lambda c: c.created_at,
        "price": lambda c: c.purchase_price or Decimal("0"),
        "renewal": lambda c: c.renewal_date,
        "status": lambda c: c.status or "",
    }
    return sorted(companies, key=keys[sort_by], reverse=(order == "desc"))
