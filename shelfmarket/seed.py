"""Insert demo coupons, a default fee, a few available companies and the system roles.

Run with ``python -m shelfmarket.seed`` after ``alembic upgrade head``.
Tables that already hold rows are left alone.
"""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from .access import ensure_system_roles
from .database import SessionLocal
from .models import Company, Coupon, Fee
from .renewal import calculate_expiry_date

logger = logging.getLogger(__name__)

COUPONS = [
    {
        "code": "WELCOME10",
        "description": "10% off your first purchase",
        "discount_type": "percentage",
        "discount_value": Decimal("10"),
        "applicable_to": "all",
    },
    {
        "code": "SAVE50",
        "description": "50 off orders over 500",
        "discount_type": "fixed",
        "discount_value": Decimal("50"),
        "min_order_value": Decimal("500"),
        "applicable_to": "companies",
    },
]

FEES = [
    {
        "name": "Transfer Fee",
        "description": "Share transfer and registry filing",
        "fee_type": "fixed",
        "amount": Decimal("150"),
        "sort_order": 1,
    },
]

COMPANIES = [
    ("Harbourline Trading Ltd", "14822901", "United Kingdom", "LTD", date(2019, 3, 12), Decimal("1500")),
    ("Northgate Ventures Ltd", "15011376", "United Kingdom", "LTD", date(2020, 7, 1), Decimal("1250")),
    ("Blue Ridge Holdings LLC", "DE-7743120", "United States", "LLC", date(2018, 11, 20), Decimal("2400")),
    ("Meridian Consulting Ltd", "IE-681204", "Ireland", "LTD", date(2021, 2, 8), Decimal("990")),
]


def seed(db: Session) -> dict:
    counts = {"coupons": 0, "fees": 0, "companies": 0, "roles": 0}
    if not db.query(Coupon).first():
        db.add_all(Coupon(**values) for values in COUPONS)
        counts["coupons"] = len(COUPONS)
    if not db.query(Fee).first():
        db.add_all(Fee(**values) for values in FEES)
        counts["fees"] = len(FEES)
    if not db.query(Company).first():
        for name, number, country, company_type, incorporated, price in COMPANIES:
            renewal = calculate_expiry_date(date.today())
            db.add(
                Company(
                    name=name,
                    number=number,
                    country=country,
                    company_type=company_type,
                    incorporation_date=incorporated,
                    incorporation_year=incorporated.year,
                    purchase_price=price,
                    renewal_fee=Decimal("350"),
                    renewal_date=renewal,
                    expiry_date=renewal,
                    status="available",
                )
            )
        counts["companies"] = len(COMPANIES)
    counts["roles"] = ensure_system_roles(db)
    db.commit()
    return counts


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    db = SessionLocal()
    try:
        counts = seed(db)
    finally:
        db.close()
    logger.info("Seeded %(coupons)d coupons, %(fees)d fees, %(companies)d companies, %(roles)d roles", counts)


if __name__ == "__main__":
    main()
