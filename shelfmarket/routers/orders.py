import logging
import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from .. import automation
from ..airtable import AirtableSync, get_airtable_sync
from ..config import Settings, get_settings
from ..database import get_db
from ..exports import orders_csv
from ..lifecycle import InvalidTransition, change_order_status
from ..models import Company, Coupon, Order, OrderDocument, RefundRequest
from ..repository import Repository
from ..schemas import (
    OrderCreate,
    OrderDocumentOut,
    OrderOut,
    OrderUpdate,
    RefundApproveIn,
    RefundRejectIn,
    RefundRequestIn,
    StatusChangeIn,
)
from ..services import CouponError, checkout_quote, money_round, normalize_code
from .checkout import enabled_fees
from .common import RequiredFieldError, apply_updates, error_response, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])

REFUNDABLE_STATUSES = ("paid", "transfer-form-pending", "under-review", "completed", "disputed")
DOCUMENT_VISIBILITY = ("admin", "user", "both")


def _new_order_number() -> str:
    return f"ORD-{uuid.uuid4().hex[:8].upper()}"


def _get_order(db: Session, ref: str) -> Optional[Order]:
    """Orders are addressable by numeric id or by order number."""
    if ref.isdigit():
        return Repository(db, Order).get(int(ref))
    return Repository(db, Order).get_by(order_number=ref)


def _filtered_orders(db: Session, status_: Optional[List[str]], country: Optional[List[str]]) -> List[Order]:
    criteria = []
    if status_:
        criteria.append(Order.status.in_(status_))
    if country:
        criteria.append(Order.country.in_(country))
    return Repository(db, Order).list(*criteria, order_by=Order.created_at.desc())


@router.get("", response_model=List[OrderOut])
def list_orders(
    status_: Optional[List[str]] = Query(None, alias="status"),
    country: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db),
):
    return _filtered_orders(db, status_, country)


@router.get("/export")
def export_orders(
    status_: Optional[List[str]] = Query(None, alias="status"),
    country: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db),
) -> Response:
    content = orders_csv(_filtered_orders(db, status_, country))
    filename = f"orders-{datetime.now():%Y-%m-%d}.csv"
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def checkout(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    sync: AirtableSync = Depends(get_airtable_sync),
):
    company = Repository(db, Company).get(payload.company_id)
    if not company:
        return not_found("Company")
    if company.status != "available":
        return error_response(f"Company {company.number} is not available for purchase")

    coupon = None
    if payload.coupon_code:
        coupon = Repository(db, Coupon).get_by(code=normalize_code(payload.coupon_code))
        if coupon is None:
            return not_found("Coupon code")
    try:
        quote = checkout_quote(company.purchase_price, enabled_fees(db), coupon, scope="companies")
    except CouponError as exc:
        return error_response(exc.message)

    order = Order(
        order_number=_new_order_number(),
        customer_name=payload.customer_name,
        customer_email=payload.customer_email,
        customer_phone=payload.customer_phone,
        billing_address=payload.billing_address,
        country=payload.country or company.country,
        company=company,
        company_name=company.name,
        company_number=company.number,
        payment_method=payload.payment_method,
        subtotal=quote.subtotal,
        fees_total=quote.total_fees,
        discount=quote.discount,
        amount=quote.total,
        currency=company.currency,
        # JSON columns hold amounts as strings
        fees_applied=[{**fee, "amount": str(fee["amount"])} for fee in quote.fees],
        coupon_code=quote.coupon_code,
        renewal_date=company.renewal_date,
        renewal_fees=company.renewal_fee,
    )
    db.add(order)
    automation.reserve_for_order(company, order.order_number)
    if coupon is not None:
        coupon.used_count = (coupon.used_count or 0) + 1
    db.commit()
    logger.info("Order %s placed for company %s: %s %s", order.order_number, company.number,
                order.amount, order.currency)
    if sync.sync_company(company):
        db.commit()
    db.refresh(order)
    return order


@router.get("/{ref}", response_model=OrderOut)
def get_order(ref: str, db: Session = Depends(get_db)):
    order = _get_order(db, ref)
    if not order:
        return not_found("Order")
    return order


@router.patch("/{ref}", response_model=OrderOut)
def update_order(ref: str, payload: OrderUpdate, db: Session = Depends(get_db)):
    order = _get_order(db, ref)
    if not order:
        return not_found("Order")
    try:
        apply_updates(order, payload)
    except RequiredFieldError as exc:
        return error_response(str(exc))
    order.updated_at = datetime.now()
    db.commit()
    db.refresh(order)
    return order


@router.delete("/{ref}")
def delete_order(ref: str, db: Session = Depends(get_db)):
    order = _get_order(db, ref)
    if not order:
        return not_found("Order")
    company = order.company
    if order.status == "pending-payment" and company is not None and company.status == "pending":
        automation.make_available(company, f"Order {order.order_number} deleted")
    Repository(db, Order).delete(order)
    logger.info("Order %s deleted", ref)
    return {"success": True}


@router.patch("/{ref}/status", response_model=OrderOut)
def change_status(
    ref: str,
    payload: StatusChangeIn,
    db: Session = Depends(get_db),
    sync: AirtableSync = Depends(get_airtable_sync),
):
    order = _get_order(db, ref)
    if not order:
        return not_found("Order")
    previous_company_status = order.company.status if order.company else None
    try:
        change_order_status(order, payload.status, payload.changed_by, payload.reason)
    except InvalidTransition as exc:
        return error_response(str(exc))
    automation.apply_order_automation(order)
    db.commit()
    if order.company is not None and order.company.status != previous_company_status:
        if sync.sync_company(order.company):
            db.commit()
    db.refresh(order)
    return order


@router.post("/{ref}/refund-request", response_model=OrderOut)
def request_refund(ref: str, payload: RefundRequestIn, db: Session = Depends(get_db)):
    order = _get_order(db, ref)
    if not order:
        return not_found("Order")
    if order.status not in REFUNDABLE_STATUSES:
        return error_response(f"A {order.status} order cannot be refunded")
    if order.refund_request is not None and order.refund_request.status in ("requested", "approved"):
        return error_response("A refund has already been requested for this order")
    if payload.requested_amount > order.amount:
        return error_response("Requested amount exceeds the order amount")
    # a rejected request is reopened in place, one refund record per order
    refund = order.refund_request or RefundRequest()
    refund.request_date = datetime.now()
    refund.requested_by = payload.requested_by
    refund.reason = payload.reason
    refund.status = "requested"
    refund.requested_amount = money_round(payload.requested_amount)
    refund.rejection_reason = None
    order.refund_request = refund
    order.refund_status = "requested"
    order.updated_at = datetime.now()
    db.commit()
    logger.info("Refund of %s requested on order %s", payload.requested_amount, order.order_number)
    db.refresh(order)
    return order


@router.post("/{ref}/refund-approve", response_model=OrderOut)
def approve_refund(ref: str, payload: RefundApproveIn, db: Session = Depends(get_db)):
    order = _get_order(db, ref)
    if not order:
        return not_found("Order")
    refund = order.refund_request
    if refund is None or refund.status != "requested":
        return error_response("No pending refund request for this order")
    if payload.refund_fee > payload.approved_amount:
        return error_response("Refund fee cannot exceed the approved amount")
    refund.status = "approved"
    refund.approved_amount = money_round(payload.approved_amount)
    refund.refund_fee = money_round(payload.refund_fee)
    refund.net_refund_amount = money_round(payload.approved_amount - payload.refund_fee)
    refund.approved_by = payload.approved_by
    refund.approved_date = datetime.now()
    order.refund_status = "approved"
    order.updated_at = datetime.now()
    db.commit()
    logger.info("Refund on order %s approved: net %s", order.order_number, refund.net_refund_amount)
    db.refresh(order)
    return order


@router.post("/{ref}/refund-reject", response_model=OrderOut)
def reject_refund(ref: str, payload: RefundRejectIn, db: Session = Depends(get_db)):
    order = _get_order(db, ref)
    if not order:
        return not_found("Order")
    refund = order.refund_request
    if refund is None or refund.status != "requested":
        return error_response("No pending refund request for this order")
    refund.status = "rejected"
    refund.rejection_reason = payload.reason
    order.refund_status = "rejected"
    order.updated_at = datetime.now()
    db.commit()
    db.refresh(order)
    return order


@router.get("/{ref}/documents", response_model=List[OrderDocumentOut])
def list_documents(ref: str, audience: Optional[str] = None, db: Session = Depends(get_db)):
    """Documents of an order, optionally only those an ``admin`` or ``user`` may see."""
    order = _get_order(db, ref)
    if not order:
        return not_found("Order")
    if audience is None:
        return order.documents
    if audience not in ("admin", "user"):
        return error_response("audience must be admin or user")
    return [doc for doc in order.documents if doc.visibility in (audience, "both")]


@router.post("/{ref}/documents", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def upload_document(
    ref: str,
    file: UploadFile = File(...),
    visibility: str = Form("both"),
    uploaded_by: str = Form("admin"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    order = _get_order(db, ref)
    if not order:
        return not_found("Order")
    if visibility not in DOCUMENT_VISIBILITY:
        return error_response(f"visibility must be one of {', '.join(DOCUMENT_VISIBILITY)}")
    if not file.filename:
        return error_response("Document needs a file name")
    size = len(file.file.read())
    if not size:
        return error_response("File data is empty")
    if size > settings.max_upload_bytes:
        return error_response(f"File size exceeds the {settings.max_upload_bytes} byte limit")
    # re-uploading a file name adds a new version next to the old one
    version = 1 + max((doc.version for doc in order.documents if doc.name == file.filename), default=0)
    order.documents.append(
        OrderDocument(
            name=file.filename,
            content_type=file.content_type or "application/octet-stream",
            size=size,
            visibility=visibility,
            version=version,
            uploaded_by=uploaded_by,
        )
    )
    order.updated_at = datetime.now()
    db.commit()
    logger.info("Document %s v%d uploaded to order %s", file.filename, version, order.order_number)
    db.refresh(order)
    return order


@router.delete("/{ref}/documents/{document_id}", response_model=OrderOut)
def delete_document(ref: str, document_id: int, db: Session = Depends(get_db)):
    order = _get_order(db, ref)
    if not order:
        return not_found("Order")
    document = next((d for d in order.documents if d.id == document_id), None)
    if document is None:
        return not_found("Document")
    order.documents.remove(document)
    order.updated_at = datetime.now()
    db.commit()
    db.refresh(order)
    return order
