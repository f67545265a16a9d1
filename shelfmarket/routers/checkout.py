import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Coupon, Fee
from ..repository import Repository
from ..schemas import FeeIn, FeeOut, FeeUpdate, QuoteIn, QuoteOut
from ..services import CouponError, checkout_quote, normalize_code
from .common import RequiredFieldError, error_response, not_found, update_values

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["checkout"])


def enabled_fees(db: Session) -> List[Fee]:
    return Repository(db, Fee).list(Fee.enabled.is_(True), order_by=Fee.sort_order)


@router.get("/fees", response_model=List[FeeOut])
def list_fees(include_disabled: bool = False, db: Session = Depends(get_db)):
    if include_disabled:
        return Repository(db, Fee).list(order_by=Fee.sort_order)
    return enabled_fees(db)


@router.post("/fees", response_model=FeeOut, status_code=status.HTTP_201_CREATED)
def create_fee(payload: FeeIn, db: Session = Depends(get_db)):
    fee = Repository(db, Fee).create(**payload.model_dump())
    logger.info("Fee %r created", fee.name)
    return fee


@router.patch("/fees/{fee_id}", response_model=FeeOut)
def update_fee(fee_id: int, payload: FeeUpdate, db: Session = Depends(get_db)):
    repo = Repository(db, Fee)
    fee = repo.get(fee_id)
    if not fee:
        return not_found("Fee")
    try:
        values = update_values(Fee, payload)
    except RequiredFieldError as exc:
        return error_response(str(exc))
    return repo.update(fee, values)


@router.post("/fees/{fee_id}/toggle", response_model=FeeOut)
def toggle_fee(fee_id: int, db: Session = Depends(get_db)):
    repo = Repository(db, Fee)
    fee = repo.get(fee_id)
    if not fee:
        return not_found("Fee")
    return repo.update(fee, {"enabled": not fee.enabled})


@router.delete("/fees/{fee_id}")
def delete_fee(fee_id: int, db: Session = Depends(get_db)):
    repo = Repository(db, Fee)
    fee = repo.get(fee_id)
    if not fee:
        return not_found("Fee")
    repo.delete(fee)
    return {"success": True}


@router.post("/checkout/quote", response_model=QuoteOut)
def quote(payload: QuoteIn, db: Session = Depends(get_db)):
    coupon = None
    if payload.coupon_code:
        coupon = Repository(db, Coupon).get_by(code=normalize_code(payload.coupon_code))
        if coupon is None:
            return not_found("Coupon code")
    try:
        result = checkout_quote(payload.subtotal, enabled_fees(db), coupon, scope=payload.scope)
    except CouponError as exc:
        return error_response(exc.message)
    return result
