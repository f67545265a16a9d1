from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from .models import Coupon, Fee, InvoiceLine

ZERO = Decimal("0")
HUNDRED = Decimal("100")

FEE_TYPES = ("fixed", "percentage")
DISCOUNT_TYPES = ("percentage", "fixed")
COUPON_SCOPES = ("all", "companies", "services")


def money_round(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def normalize_fee_type(fee_type: str) -> str:
    fee_type = (fee_type or "").strip().lower()
    if fee_type == "flat":
        return "fixed"
    if fee_type not in FEE_TYPES:
        raise ValueError(f"unknown fee type {fee_type!r}")
    return fee_type


# ---------------------------------------------------------------------
# Fees
# ---------------------------------------------------------------------
def calculate_fee_amount(fee: Fee, subtotal: Decimal) -> Decimal:
    amount = to_decimal(fee.amount)
    if normalize_fee_type(fee.fee_type) == "fixed":
        return money_round(amount)
    return money_round(to_decimal(subtotal) * amount / HUNDRED)


def calculate_fees(subtotal: Decimal, fees: Iterable[Fee]) -> Dict:
    subtotal = money_round(to_decimal(subtotal))
    applied = []
    total_fees = ZERO
    for fee in fees:
        if fee.enabled is False:
            continue
        amount = calculate_fee_amount(fee, subtotal)
        applied.append({"id": fee.id, "name": fee.name, "amount": amount})
        total_fees += amount
    total_fees = money_round(total_fees)
    return {
        "fees": applied,
        "total_fees": total_fees,
        "final_total": money_round(subtotal + total_fees),
    }


# ---------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------
class CouponError(ValueError):
    """A coupon code that cannot be applied to the current order."""

    def __init__(self, message: str, not_found: bool = False):
        super().__init__(message)
        self.message = message
        self.not_found = not_found


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def coupon_discount(coupon: Coupon, order_total: Decimal) -> Decimal:
    order_total = to_decimal(order_total)
    value = to_decimal(coupon.discount_value)
    if coupon.discount_type == "percentage":
        discount = money_round(order_total * value / HUNDRED)
    else:
        discount = money_round(value)
    # never discount below zero
    return min(discount, money_round(order_total))


def check_coupon(
    coupon: Optional[Coupon],
    order_total: Decimal,
    today: Optional[date] = None,
    scope: str = "all",
) -> Decimal:
    """Return the discount ``coupon`` grants on ``order_total`` or raise :class:`CouponError`."""
    today = today or date.today()
    order_total = to_decimal(order_total)
    if coupon is None:
        raise CouponError("Coupon code not found", not_found=True)
    if coupon.active is False:
        raise CouponError("Coupon is no longer active")
    if coupon.expiry_date and today > coupon.expiry_date:
        raise CouponError("Coupon has expired")
    if coupon.max_uses and (coupon.used_count or 0) >= coupon.max_uses:
        raise CouponError("Coupon usage limit reached")
    if coupon.min_order_value and order_total < to_decimal(coupon.min_order_value):
        raise CouponError(f"Minimum order value of {money_round(to_decimal(coupon.min_order_value))} required")
    if scope != "all" and coupon.applicable_to not in ("all", scope):
        raise CouponError(f"Coupon is only valid for {coupon.applicable_to}")
    return coupon_discount(coupon, order_total)


def validate_coupon(
    coupon: Optional[Coupon],
    order_total: Decimal,
    today: Optional[date] = None,
    scope: str = "all",
) -> Dict:
    order_total = money_round(to_decimal(order_total))
    try:
        discount = check_coupon(coupon, order_total, today, scope)
    except CouponError as exc:
        return {
            "valid": False,
            "discount": ZERO,
            "discounted_total": order_total,
            "coupon": None,
            "message": exc.message,
            "not_found": exc.not_found,
        }
    return {
        "valid": True,
        "discount": discount,
        "discounted_total": max(ZERO, order_total - discount),
        "coupon": coupon,
        "message": "Coupon applied successfully",
        "not_found": False,
    }


# ---------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------
@dataclass
class Quote:
    subtotal: Decimal
    fees: List[Dict] = field(default_factory=list)
    total_fees: Decimal = ZERO
    discount: Decimal = ZERO
    coupon_code: Optional[str] = None
    total: Decimal = ZERO


def checkout_quote(
    subtotal: Decimal,
    fees: Iterable[Fee],
    coupon: Optional[Coupon] = None,
    today: Optional[date] = None,
    scope: str = "companies",
) -> Quote:
    """
    Price a cart: fees on the subtotal, then at most one coupon on the
    fee-inclusive total.  Raises :class:`CouponError` for a rejected coupon.
    """
    breakdown = calculate_fees(subtotal, fees)
    quote = Quote(
        subtotal=money_round(to_decimal(subtotal)),
        fees=breakdown["fees"],
        total_fees=breakdown["total_fees"],
        total=breakdown["final_total"],
    )
    if coupon is not None:
        quote.discount = check_coupon(coupon, quote.total, today, scope)
        quote.coupon_code = coupon.code
        quote.total = max(ZERO, quote.total - quote.discount)
    return quote


# ---------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------
def line_total(line: InvoiceLine) -> Decimal:
    return money_round(to_decimal(line.quantity) * to_decimal(line.unit_price))


def invoice_summary(
    lines: Iterable[InvoiceLine],
    tax_amount=ZERO,
    discount_amount=ZERO,
    custom_fee=ZERO,
) -> Dict[str, Decimal]:
    subtotal = money_round(sum((line_total(line) for line in lines), ZERO))
    taxes = money_round(to_decimal(tax_amount))
    discount = money_round(to_decimal(discount_amount))
    fee = money_round(to_decimal(custom_fee))
    return {
        "subtotal": subtotal,
        "tax": taxes,
        "discount": discount,
        "custom_fee": fee,
        "total": money_round(subtotal + taxes + fee - discount),
    }


def invoice_display_status(status: str, due_date, today: Optional[date] = None) -> str:
    """``overdue`` for an unpaid invoice past its due date, else the stored status."""
    today = today or date.today()
    if status in ("pending", "partial") and due_date is not None and due_date < today:
        return "overdue"
    return status


def invoice_analytics(invoices: Iterable, today: Optional[date] = None) -> Dict:
    by_status: Dict[str, int] = {}
    by_payment_method: Dict[str, int] = {}
    paid = pending = overdue = total = ZERO
    count = 0
    for inv in invoices:
        count += 1
        amount = to_decimal(inv.amount)
        total += amount
        display = invoice_display_status(inv.status, inv.due_date, today)
        by_status[display] = by_status.get(display, 0) + 1
        method = inv.payment_method or "N/A"
        by_payment_method[method] = by_payment_method.get(method, 0) + 1
        if display == "paid":
            paid += amount
        elif display == "overdue":
            overdue += amount
        elif display in ("pending", "partial"):
            pending += amount
    return {
        "count": count,
        "total_amount": money_round(total),
        "paid_amount": money_round(paid),
        "pending_amount": money_round(pending),
        "overdue_amount": money_round(overdue),
        "by_status": by_status,
        "by_payment_method": by_payment_method,
    }
