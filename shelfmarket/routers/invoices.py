import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..airtable import AirtableSync, get_airtable_sync
from ..database import get_db
from ..exports import invoices_csv
from ..lifecycle import INVOICE_STATUSES, InvalidTransition, change_invoice_status
from ..models import Company, Invoice, InvoiceAttachment, InvoiceLine, InvoiceSequence
from ..repository import Repository
from ..schemas import (
    BulkStatusIn,
    BulkStatusOut,
    InvoiceAnalyticsOut,
    InvoiceCreate,
    InvoiceOut,
    InvoiceUpdate,
    StatusChangeIn,
)
from ..services import (
    HUNDRED,
    invoice_analytics,
    invoice_display_status,
    invoice_summary,
    line_total,
    money_round,
    to_decimal,
)
from .common import RequiredFieldError, error_response, not_found, update_values

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/invoices", tags=["invoices"])

DEFAULT_PAYMENT_TERMS_DAYS = 30


def _get_invoice(db: Session, invoice_id: int) -> Optional[Invoice]:
    return Repository(db, Invoice).get(invoice_id)


def _set_lines(invoice: Invoice, lines) -> None:
    invoice.lines = [
        InvoiceLine(
            description=line.description.strip(),
            quantity=line.quantity,
            unit_price=money_round(line.unit_price),
            sort_order=position,
        )
        for position, line in enumerate(lines, start=1)
    ]
    for line in invoice.lines:
        line.total = line_total(line)


def _recompute_totals(invoice: Invoice, derive_tax: bool) -> None:
    """Subtotal and amount always come from the lines; tax from the rate when asked."""
    if derive_tax and invoice.tax_rate is not None:
        subtotal = sum((line_total(line) for line in invoice.lines), to_decimal(0))
        invoice.tax_amount = money_round(subtotal * to_decimal(invoice.tax_rate) / HUNDRED)
    totals = invoice_summary(
        invoice.lines,
        tax_amount=invoice.tax_amount,
        discount_amount=invoice.discount_amount,
        custom_fee=invoice.custom_fee,
    )
    invoice.subtotal = totals["subtotal"]
    invoice.tax_amount = totals["tax"]
    invoice.discount_amount = totals["discount"]
    invoice.custom_fee = totals["custom_fee"]
    invoice.amount = totals["total"]


def _next_invoice_number(db: Session, year_full: int) -> str:
    seq = (
        db.query(InvoiceSequence)
        .filter(InvoiceSequence.year_full == year_full)
        .with_for_update()
        .first()
    )
    if not seq:
        seq = InvoiceSequence(year_full=year_full, next_number=1)
        db.add(seq)
        db.flush()
    n = seq.next_number
    seq.next_number = n + 1
    return f"INV-{year_full}-{n:04d}"


def _commit_and_sync(db: Session, invoice: Invoice, sync: AirtableSync) -> Invoice:
    db.commit()
    if sync.sync_invoice(invoice):
        db.commit()
    db.refresh(invoice)
    return invoice


def _filtered_invoices(
    db: Session,
    status_: Optional[List[str]],
    payment_method: Optional[List[str]],
    date_from: Optional[date],
    date_to: Optional[date],
    client: Optional[str],
    company: Optional[str],
    number: Optional[str],
) -> List[Invoice]:
    criteria = []
    if payment_method:
        criteria.append(Invoice.payment_method.in_(payment_method))
    if date_from:
        criteria.append(Invoice.invoice_date >= date_from)
    if date_to:
        criteria.append(Invoice.invoice_date <= date_to)
    if client:
        criteria.append(Invoice.client_name.ilike(f"%{client}%"))
    if company:
        criteria.append(Invoice.company_name.ilike(f"%{company}%"))
    if number:
        criteria.append(Invoice.invoice_number.ilike(f"%{number}%"))
    invoices = Repository(db, Invoice).list(*criteria, order_by=Invoice.invoice_date.desc())
    if status_:
        # overdue is derived, so status filters run on the display status
        today = date.today()
        invoices = [
            inv for inv in invoices if invoice_display_status(inv.status, inv.due_date, today) in status_
        ]
    return invoices


def invoice_filters(
    status_: Optional[List[str]] = Query(None, alias="status"),
    payment_method: Optional[List[str]] = Query(None),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    client: Optional[str] = None,
    company: Optional[str] = None,
    number: Optional[str] = None,
) -> dict:
    return {
        "status_": status_,
        "payment_method": payment_method,
        "date_from": date_from,
        "date_to": date_to,
        "client": client,
        "company": company,
        "number": number,
    }


@router.get("", response_model=List[InvoiceOut])
def list_invoices(filters: dict = Depends(invoice_filters), db: Session = Depends(get_db)):
    return _filtered_invoices(db, **filters)


@router.get("/export")
def export_invoices(filters: dict = Depends(invoice_filters), db: Session = Depends(get_db)) -> Response:
    content = invoices_csv(_filtered_invoices(db, **filters))
    filename = f"invoices-{datetime.now():%Y-%m-%d}.csv"
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/analytics", response_model=InvoiceAnalyticsOut)
def analytics(filters: dict = Depends(invoice_filters), db: Session = Depends(get_db)):
    return invoice_analytics(_filtered_invoices(db, **filters))


@router.post("/bulk-status", response_model=BulkStatusOut)
def bulk_status(
    payload: BulkStatusIn,
    db: Session = Depends(get_db),
    sync: AirtableSync = Depends(get_airtable_sync),
):
    updated, skipped = [], 0
    for invoice_id in payload.invoice_ids:
        invoice = _get_invoice(db, invoice_id)
        if not invoice:
            skipped += 1
            continue
        try:
            change_invoice_status(invoice, payload.status, reason=payload.reason)
        except InvalidTransition as exc:
            logger.info("Bulk status skipped invoice %s: %s", invoice.invoice_number, exc)
            skipped += 1
            continue
        updated.append(invoice)
    db.commit()
    if any([sync.sync_invoice(invoice) for invoice in updated]):
        db.commit()
    return {"updated": len(updated), "skipped": skipped}


@router.post("", response_model=InvoiceOut, status_code=status.HTTP_201_CREATED)
def create_invoice(
    payload: InvoiceCreate,
    db: Session = Depends(get_db),
    sync: AirtableSync = Depends(get_airtable_sync),
):
    if payload.status not in INVOICE_STATUSES:
        return error_response(f"Invalid invoice status {payload.status!r}")
    invoice_date = payload.invoice_date or date.today()
    due_date = payload.due_date or invoice_date + timedelta(days=DEFAULT_PAYMENT_TERMS_DAYS)
    if due_date < invoice_date:
        return error_response("Due date cannot be before the invoice date")
    if payload.company_id and not Repository(db, Company).get(payload.company_id):
        return not_found("Company")
    if payload.invoice_number and Repository(db, Invoice).get_by(invoice_number=payload.invoice_number):
        return error_response(
            f"Invoice number {payload.invoice_number} already exists", status_code=status.HTTP_409_CONFLICT
        )

    data = payload.model_dump(exclude={"lines", "invoice_number", "invoice_date", "due_date"})

    def build_invoice() -> Invoice:
        invoice = Invoice(**data, invoice_date=invoice_date, due_date=due_date)
        _set_lines(invoice, payload.lines)
        _recompute_totals(invoice, derive_tax=not payload.tax_amount)
        if invoice.status == "paid":
            invoice.paid_date = invoice_date
            invoice.paid_amount = invoice.amount
        invoice.invoice_number = payload.invoice_number or _next_invoice_number(db, invoice_date.year)
        db.add(invoice)
        return invoice

    for attempt in range(2):
        try:
            invoice = build_invoice()
            db.commit()
            break
        except IntegrityError:
            db.rollback()
            if attempt == 1:
                raise
    logger.info("Invoice %s created for %s: %s %s", invoice.invoice_number, invoice.client_name,
                invoice.amount, invoice.currency)
    if sync.sync_invoice(invoice):
        db.commit()
    db.refresh(invoice)
    return invoice


@router.get("/{invoice_id}", response_model=InvoiceOut)
def get_invoice(invoice_id: int, db: Session = Depends(get_db)):
    invoice = _get_invoice(db, invoice_id)
    if not invoice:
        return not_found("Invoice")
    return invoice


@router.patch("/{invoice_id}", response_model=InvoiceOut)
def update_invoice(
    invoice_id: int,
    payload: InvoiceUpdate,
    db: Session = Depends(get_db),
    sync: AirtableSync = Depends(get_airtable_sync),
):
    invoice = _get_invoice(db, invoice_id)
    if not invoice:
        return not_found("Invoice")
    if payload.due_date and payload.due_date < invoice.invoice_date:
        return error_response("Due date cannot be before the invoice date")
    if "lines" in payload.model_fields_set and not payload.lines:
        return error_response("An invoice needs at least one line")
    try:
        changed = update_values(Invoice, payload)
    except RequiredFieldError as exc:
        return error_response(str(exc))
    changed.pop("lines", None)
    for key, value in changed.items():
        setattr(invoice, key, value)
    if payload.lines:
        _set_lines(invoice, payload.lines)
    _recompute_totals(invoice, derive_tax="tax_rate" in changed and "tax_amount" not in changed)
    invoice.updated_at = datetime.now()
    return _commit_and_sync(db, invoice, sync)


@router.delete("/{invoice_id}")
def delete_invoice(invoice_id: int, db: Session = Depends(get_db)):
    invoice = _get_invoice(db, invoice_id)
    if not invoice:
        return not_found("Invoice")
    Repository(db, Invoice).delete(invoice)
    logger.info("Invoice %s deleted", invoice_id)
    return {"success": True}


@router.patch("/{invoice_id}/status", response_model=InvoiceOut)
def change_status(
    invoice_id: int,
    payload: StatusChangeIn,
    db: Session = Depends(get_db),
    sync: AirtableSync = Depends(get_airtable_sync),
):
    invoice = _get_invoice(db, invoice_id)
    if not invoice:
        return not_found("Invoice")
    try:
        change_invoice_status(invoice, payload.status, payload.changed_by, payload.reason)
    except InvalidTransition as exc:
        return error_response(str(exc))
    return _commit_and_sync(db, invoice, sync)


@router.post("/{invoice_id}/mark-sent", response_model=InvoiceOut)
def mark_sent(invoice_id: int, db: Session = Depends(get_db)):
    invoice = _get_invoice(db, invoice_id)
    if not invoice:
        return not_found("Invoice")
    invoice.sent_count = (invoice.sent_count or 0) + 1
    invoice.last_sent_date = datetime.now()
    db.commit()
    db.refresh(invoice)
    return invoice


@router.post("/{invoice_id}/attachments", response_model=InvoiceOut, status_code=status.HTTP_201_CREATED)
def upload_attachment(invoice_id: int, file: UploadFile = File(...), db: Session = Depends(get_db)):
    invoice = _get_invoice(db, invoice_id)
    if not invoice:
        return not_found("Invoice")
    if not file.filename:
        return error_response("Attachment needs a file name")
    size = len(file.file.read())
    invoice.attachments.append(
        InvoiceAttachment(
            name=file.filename,
            content_type=file.content_type or "application/octet-stream",
            size=size,
        )
    )
    invoice.updated_at = datetime.now()
    db.commit()
    db.refresh(invoice)
    return invoice


@router.delete("/{invoice_id}/attachments/{attachment_id}", response_model=InvoiceOut)
def delete_attachment(invoice_id: int, attachment_id: int, db: Session = Depends(get_db)):
    invoice = _get_invoice(db, invoice_id)
    if not invoice:
        return not_found("Invoice")
    attachment = next((a for a in invoice.attachments if a.id == attachment_id), None)
    if attachment is None:
        return not_found("Attachment")
    invoice.attachments.remove(attachment)
    db.commit()
    db.refresh(invoice)
    return invoice
