import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Coupon
from ..repository import Repository
from ..schemas import CouponIn, CouponOut, CouponUpdate, CouponValidateIn, CouponValidationOut
from ..services import COUPON_SCOPES, DISCOUNT_TYPES, normalize_code, validate_coupon
from .common import RequiredFieldError, error_response, not_found, update_values

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/coupons", tags=["coupons"])


def _by_code(db: Session, code: str):
    return Repository(db, Coupon).get_by(code=normalize_code(code))


def _validation_response(result: dict) -> JSONResponse:
    body = CouponValidationOut(
        valid=result["valid"],
        discount=result["discount"],
        discounted_total=result["discounted_total"],
        coupon=CouponOut.model_validate(result["coupon"]) if result["coupon"] else None,
        message=result["message"],
    )
    if result["valid"]:
        code = status.HTTP_200_OK
    elif result["not_found"]:
        code = status.HTTP_404_NOT_FOUND
    else:
        code = status.HTTP_400_BAD_REQUEST
    return JSONResponse(content=jsonable_encoder(body), status_code=code)


@router.get("", response_model=List[CouponOut])
def list_coupons(include_inactive: bool = False, db: Session = Depends(get_db)):
    if include_inactive:
        return Repository(db, Coupon).list()
    return Repository(db, Coupon).list(Coupon.active.is_(True))


@router.post("", response_model=CouponOut, status_code=status.HTTP_201_CREATED)
def create_coupon(payload: CouponIn, db: Session = Depends(get_db)):
    try:
        coupon = Repository(db, Coupon).create(**payload.model_dump())
    except IntegrityError:
        db.rollback()
        return error_response("Coupon code already exists", status_code=status.HTTP_409_CONFLICT)
    logger.info("Coupon %s created", coupon.code)
    return coupon


@router.post("/validate", response_model=CouponValidationOut)
def validate(payload: CouponValidateIn, db: Session = Depends(get_db)):
    result = validate_coupon(_by_code(db, payload.code), payload.order_total, scope=payload.scope)
    return _validation_response(result)


@router.post("/apply", response_model=CouponValidationOut)
def apply(payload: CouponValidateIn, db: Session = Depends(get_db)):
    coupon = _by_code(db, payload.code)
    result = validate_coupon(coupon, payload.order_total, scope=payload.scope)
    if result["valid"]:
        coupon.used_count = (coupon.used_count or 0) + 1
        coupon.updated_at = datetime.now()
        db.commit()
        db.refresh(coupon)
        logger.info("Coupon %s applied (%d uses)", coupon.code, coupon.used_count)
    return _validation_response(result)


@router.get("/{code}", response_model=CouponOut)
def get_coupon(code: str, db: Session = Depends(get_db)):
    coupon = _by_code(db, code)
    if not coupon:
        return not_found("Coupon")
    return coupon


@router.patch("/{code}", response_model=CouponOut)
def update_coupon(code: str, payload: CouponUpdate, db: Session = Depends(get_db)):
    coupon = _by_code(db, code)
    if not coupon:
        return not_found("Coupon")
    try:
        values = update_values(Coupon, payload)
    except RequiredFieldError as exc:
        return error_response(str(exc))
    if values.get("discount_type", DISCOUNT_TYPES[0]) not in DISCOUNT_TYPES:
        return error_response("discount_type must be percentage or fixed")
    if values.get("applicable_to", COUPON_SCOPES[0]) not in COUPON_SCOPES:
        return error_response("applicable_to must be all, companies or services")
    return Repository(db, Coupon).update(coupon, values)


@router.delete("/{code}")
def delete_coupon(code: str, db: Session = Depends(get_db)):
    coupon = _by_code(db, code)
    if not coupon:
        return not_found("Coupon")
    Repository(db, Coupon).delete(coupon)
    return {"success": True}
