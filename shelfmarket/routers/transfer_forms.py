import logging
import uuid
from collections import Counter
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..database import get_db
from ..lifecycle import InvalidTransition, change_transfer_form_status
from ..models import Order, TransferForm, TransferFormAttachment, TransferFormComment, TransferFormStatusChange
from ..repository import Repository
from ..schemas import (
    CommentIn,
    DirectorIn,
    ShareholderIn,
    StatusChangeIn,
    TransferFormAnalyticsOut,
    TransferFormCreate,
    TransferFormOut,
    TransferFormUpdate,
)
from ..services import money_round
from .common import RequiredFieldError, apply_updates, error_response, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/transfer-forms", tags=["transfer-forms"])

LOCKED_STATUSES = ("complete-transfer", "canceled")


def _get_form(db: Session, form_id: int) -> Optional[TransferForm]:
    return Repository(db, TransferForm).get(form_id)


def _add_party(db: Session, form_id: int, column: str, payload):
    form = _get_form(db, form_id)
    if not form:
        return not_found("Transfer form")
    if form.status in LOCKED_STATUSES:
        return error_response(f"A {form.status} transfer form cannot be edited")
    entry = {"id": f"{column[:-1]}_{uuid.uuid4().hex[:8]}", **payload.model_dump(mode="json")}
    # JSON columns only notice reassignment
    setattr(form, column, [*(getattr(form, column) or []), entry])
    form.updated_at = datetime.now()
    db.commit()
    db.refresh(form)
    return form


def _remove_party(db: Session, form_id: int, column: str, entry_id: str):
    form = _get_form(db, form_id)
    if not form:
        return not_found("Transfer form")
    if form.status in LOCKED_STATUSES:
        return error_response(f"A {form.status} transfer form cannot be edited")
    entries = getattr(form, column) or []
    remaining = [entry for entry in entries if entry.get("id") != entry_id]
    if len(remaining) == len(entries):
        return not_found(column[:-1].capitalize())
    setattr(form, column, remaining)
    form.updated_at = datetime.now()
    db.commit()
    db.refresh(form)
    return form


@router.get("", response_model=List[TransferFormOut])
def list_forms(
    status_: Optional[List[str]] = Query(None, alias="status"),
    order_id: Optional[int] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    criteria = []
    if status_:
        criteria.append(TransferForm.status.in_(status_))
    if order_id:
        criteria.append(TransferForm.order_id == order_id)
    if search:
        pattern = f"%{search}%"
        criteria.append(
            TransferForm.company_name.ilike(pattern)
            | TransferForm.company_number.ilike(pattern)
            | TransferForm.form_number.ilike(pattern)
        )
    return Repository(db, TransferForm).list(*criteria, order_by=TransferForm.created_at.desc())


@router.get("/analytics", response_model=TransferFormAnalyticsOut)
def analytics(db: Session = Depends(get_db)):
    forms = Repository(db, TransferForm).list()
    by_status = Counter(form.status for form in forms)
    return {
        "total": len(forms),
        "by_status": dict(by_status),
        "amendments_requested": sum(form.amendments_required_count or 0 for form in forms),
        "completed": by_status["complete-transfer"],
    }


@router.post("", response_model=TransferFormOut, status_code=status.HTTP_201_CREATED)
def create_form(payload: TransferFormCreate, db: Session = Depends(get_db)):
    if payload.order_id and not Repository(db, Order).get(payload.order_id):
        return not_found("Order")
    now = datetime.now()
    form = TransferForm(
        **payload.model_dump(),
        form_number=f"FORM-{uuid.uuid4().hex[:8].upper()}",
        price_per_share=money_round(payload.total_share_capital / payload.total_shares),
        status="under-review",
        submitted_at=now,
    )
    form.status_history.append(
        TransferFormStatusChange(
            from_status="submitted",
            to_status="under-review",
            changed_date=now,
            changed_by=payload.buyer_email or "customer",
            reason="Form submitted",
        )
    )
    form = Repository(db, TransferForm).save(form)
    logger.info("Transfer form %s submitted for company %s", form.form_number, form.company_number)
    return form


@router.get("/{form_id}", response_model=TransferFormOut)
def get_form(form_id: int, db: Session = Depends(get_db)):
    form = _get_form(db, form_id)
    if not form:
        return not_found("Transfer form")
    return form


@router.patch("/{form_id}", response_model=TransferFormOut)
def update_form(form_id: int, payload: TransferFormUpdate, db: Session = Depends(get_db)):
    form = _get_form(db, form_id)
    if not form:
        return not_found("Transfer form")
    if form.status in LOCKED_STATUSES:
        return error_response(f"A {form.status} transfer form cannot be edited")
    try:
        apply_updates(form, payload)
    except RequiredFieldError as exc:
        return error_response(str(exc))
    form.updated_at = datetime.now()
    db.commit()
    db.refresh(form)
    return form


@router.delete("/{form_id}")
def delete_form(form_id: int, db: Session = Depends(get_db)):
    form = _get_form(db, form_id)
    if not form:
        return not_found("Transfer form")
    Repository(db, TransferForm).delete(form)
    return {"success": True}


@router.patch("/{form_id}/status", response_model=TransferFormOut)
def change_status(form_id: int, payload: StatusChangeIn, db: Session = Depends(get_db)):
    form = _get_form(db, form_id)
    if not form:
        return not_found("Transfer form")
    try:
        change_transfer_form_status(form, payload.status, payload.changed_by, payload.reason, payload.notes)
    except InvalidTransition as exc:
        return error_response(str(exc))
    db.commit()
    db.refresh(form)
    return form


@router.post("/{form_id}/comments", response_model=TransferFormOut, status_code=status.HTTP_201_CREATED)
def add_comment(form_id: int, payload: CommentIn, db: Session = Depends(get_db)):
    form = _get_form(db, form_id)
    if not form:
        return not_found("Transfer form")
    form.comments.append(
        TransferFormComment(author=payload.author, text=payload.text.strip(), is_admin_only=payload.is_admin_only)
    )
    form.updated_at = datetime.now()
    db.commit()
    db.refresh(form)
    return form


@router.post("/{form_id}/directors", response_model=TransferFormOut, status_code=status.HTTP_201_CREATED)
def add_director(form_id: int, payload: DirectorIn, db: Session = Depends(get_db)):
    return _add_party(db, form_id, "directors", payload)


@router.delete("/{form_id}/directors/{director_id}", response_model=TransferFormOut)
def remove_director(form_id: int, director_id: str, db: Session = Depends(get_db)):
    return _remove_party(db, form_id, "directors", director_id)


@router.post("/{form_id}/shareholders", response_model=TransferFormOut, status_code=status.HTTP_201_CREATED)
def add_shareholder(form_id: int, payload: ShareholderIn, db: Session = Depends(get_db)):
    return _add_party(db, form_id, "shareholders", payload)


@router.delete("/{form_id}/shareholders/{shareholder_id}", response_model=TransferFormOut)
def remove_shareholder(form_id: int, shareholder_id: str, db: Session = Depends(get_db)):
    return _remove_party(db, form_id, "shareholders", shareholder_id)


@router.post("/{form_id}/attachments", response_model=TransferFormOut, status_code=status.HTTP_201_CREATED)
def upload_attachment(
    form_id: int,
    file: UploadFile = File(...),
    uploaded_by: str = Form("admin"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    form = _get_form(db, form_id)
    if not form:
        return not_found("Transfer form")
    if not file.filename:
        return error_response("Attachment needs a file name")
    size = len(file.file.read())
    if size > settings.max_upload_bytes:
        return error_response(f"File size exceeds the {settings.max_upload_bytes} byte limit")
    form.attachments.append(
        TransferFormAttachment(
            name=file.filename,
            content_type=file.content_type or "application/octet-stream",
            size=size,
            uploaded_by=uploaded_by,
        )
    )
    form.updated_at = datetime.now()
    db.commit()
    logger.info("Attachment %s added to transfer form %s", file.filename, form.form_number)
    db.refresh(form)
    return form


@router.delete("/{form_id}/attachments/{attachment_id}", response_model=TransferFormOut)
def delete_attachment(form_id: int, attachment_id: int, db: Session = Depends(get_db)):
    form = _get_form(db, form_id)
    if not form:
        return not_found("Transfer form")
    attachment = next((a for a in form.attachments if a.id == attachment_id), None)
    if attachment is None:
        return not_found("Attachment")
    form.attachments.remove(attachment)
    form.updated_at = datetime.now()
    db.commit()
    db.refresh(form)
    return form
