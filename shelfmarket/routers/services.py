import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from ..lifecycle import InvalidTransition, change_service_order_status
from ..models import Service, ServiceOrder, ServiceOrderComment
from ..repository import Repository
from ..schemas import (
    CommentIn,
    ServiceIn,
    ServiceOrderCreate,
    ServiceOrderOut,
    ServiceOrderUpdate,
    ServiceOut,
    ServiceUpdate,
    StatusChangeIn,
)
from .common import RequiredFieldError, apply_updates, error_response, not_found, update_values

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/services", tags=["services"])
orders_router = APIRouter(prefix="/api/service-orders", tags=["service-orders"])

SERVICE_STATUSES = ("active", "inactive")


def missing_required_fields(service: Service, application_data: dict) -> List[str]:
    """Names of required form fields left empty in ``application_data``."""
    missing = []
    for field in service.application_form_fields or []:
        if not field.get("required"):
            continue
        value = application_data.get(field["name"])
        if value is None or (isinstance(value, str) and not value.strip()) or value == []:
            missing.append(field["name"])
    return missing


# ---------------------------------------------------------------------
# Service catalogue
# ---------------------------------------------------------------------
@router.get("", response_model=List[ServiceOut])
def list_services(
    category: Optional[str] = None,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
):
    criteria = []
    if not include_inactive:
        criteria.append(Service.status == "active")
    if category:
        criteria.append(Service.category == category)
    return Repository(db, Service).list(*criteria, order_by=Service.name)


@router.post("", response_model=ServiceOut, status_code=status.HTTP_201_CREATED)
def create_service(payload: ServiceIn, db: Session = Depends(get_db)):
    if payload.status not in SERVICE_STATUSES:
        return error_response(f"Invalid service status {payload.status!r}")
    service = Repository(db, Service).create(**payload.model_dump())
    logger.info("Service %r created", service.name)
    return service


@router.get("/{service_id}", response_model=ServiceOut)
def get_service(service_id: int, db: Session = Depends(get_db)):
    service = Repository(db, Service).get(service_id)
    if not service:
        return not_found("Service")
    return service


@router.patch("/{service_id}", response_model=ServiceOut)
def update_service(service_id: int, payload: ServiceUpdate, db: Session = Depends(get_db)):
    repo = Repository(db, Service)
    service = repo.get(service_id)
    if not service:
        return not_found("Service")
    if payload.status is not None and payload.status not in SERVICE_STATUSES:
        return error_response(f"Invalid service status {payload.status!r}")
    try:
        values = update_values(Service, payload)
    except RequiredFieldError as exc:
        return error_response(str(exc))
    return repo.update(service, values)


@router.delete("/{service_id}")
def delete_service(service_id: int, db: Session = Depends(get_db)):
    service = Repository(db, Service).get(service_id)
    if not service:
        return not_found("Service")
    try:
        Repository(db, Service).delete(service)
    except IntegrityError:
        db.rollback()
        return error_response("Service has orders, deactivate it instead", status_code=status.HTTP_409_CONFLICT)
    return {"success": True}


# ---------------------------------------------------------------------
# Service orders
# ---------------------------------------------------------------------
def _get_service_order(db: Session, order_id: int) -> Optional[ServiceOrder]:
    return Repository(db, ServiceOrder).get(order_id)


@orders_router.get("", response_model=List[ServiceOrderOut])
def list_service_orders(
    status_: Optional[List[str]] = Query(None, alias="status"),
    service_id: Optional[int] = None,
    customer_email: Optional[str] = None,
    db: Session = Depends(get_db),
):
    criteria = []
    if status_:
        criteria.append(ServiceOrder.status.in_(status_))
    if service_id:
        criteria.append(ServiceOrder.service_id == service_id)
    if customer_email:
        criteria.append(ServiceOrder.customer_email == customer_email)
    return Repository(db, ServiceOrder).list(*criteria, order_by=ServiceOrder.created_at.desc())


@orders_router.post("", response_model=ServiceOrderOut, status_code=status.HTTP_201_CREATED)
def create_service_order(payload: ServiceOrderCreate, db: Session = Depends(get_db)):
    service = Repository(db, Service).get(payload.service_id)
    if not service or service.status != "active":
        return not_found("Service")
    missing = missing_required_fields(service, payload.application_data)
    if missing:
        return error_response(f"Missing required fields: {', '.join(missing)}")
    service_order = Repository(db, ServiceOrder).create(
        service_id=service.id,
        service_name=service.name,
        customer_name=payload.customer_name,
        customer_email=payload.customer_email,
        customer_phone=payload.customer_phone,
        amount=service.price,
        currency=service.currency,
        application_data=payload.application_data,
        notes=payload.notes,
    )
    logger.info("Service order %s placed for %r", service_order.id, service.name)
    return service_order


@orders_router.get("/{order_id}", response_model=ServiceOrderOut)
def get_service_order(order_id: int, db: Session = Depends(get_db)):
    service_order = _get_service_order(db, order_id)
    if not service_order:
        return not_found("Service order")
    return service_order


@orders_router.patch("/{order_id}", response_model=ServiceOrderOut)
def update_service_order(order_id: int, payload: ServiceOrderUpdate, db: Session = Depends(get_db)):
    service_order = _get_service_order(db, order_id)
    if not service_order:
        return not_found("Service order")
    try:
        apply_updates(service_order, payload)
    except RequiredFieldError as exc:
        return error_response(str(exc))
    service_order.updated_at = datetime.now()
    db.commit()
    db.refresh(service_order)
    return service_order


@orders_router.delete("/{order_id}")
def delete_service_order(order_id: int, db: Session = Depends(get_db)):
    service_order = _get_service_order(db, order_id)
    if not service_order:
        return not_found("Service order")
    Repository(db, ServiceOrder).delete(service_order)
    return {"success": True}


@orders_router.patch("/{order_id}/status", response_model=ServiceOrderOut)
def change_status(order_id: int, payload: StatusChangeIn, db: Session = Depends(get_db)):
    service_order = _get_service_order(db, order_id)
    if not service_order:
        return not_found("Service order")
    try:
        change_service_order_status(service_order, payload.status, payload.changed_by, payload.reason)
    except InvalidTransition as exc:
        return error_response(str(exc))
    db.commit()
    db.refresh(service_order)
    return service_order


@orders_router.post("/{order_id}/comments", response_model=ServiceOrderOut, status_code=status.HTTP_201_CREATED)
def add_comment(order_id: int, payload: CommentIn, db: Session = Depends(get_db)):
    service_order = _get_service_order(db, order_id)
    if not service_order:
        return not_found("Service order")
    service_order.comments.append(
        ServiceOrderComment(author=payload.author, text=payload.text.strip(), is_admin_only=payload.is_admin_only)
    )
    service_order.updated_at = datetime.now()
    db.commit()
    db.refresh(service_order)
    return service_order
