import logging
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import automation
from ..airtable import AirtableSync, get_airtable_sync
from ..config import Settings, get_settings
from ..database import get_db
from ..filters import SORT_FIELDS, CompanyFilter, filter_companies, sort_companies
from ..lifecycle import COMPANY_STATUSES, InvalidTransition, change_company_status
from ..models import Company
from ..renewal import calculate_expiry_date, days_until_renewal, renewal_window_status
from ..repository import Repository
from ..schemas import (
    CancelIn,
    CompanyCreate,
    CompanyHealthOut,
    CompanyOut,
    CompanyStatisticsOut,
    CompanyUpdate,
    RefundIn,
    RenewalNotificationOut,
    StatusChangeIn,
    TransferOwnershipIn,
)
from .common import RequiredFieldError, apply_updates, error_response, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/companies", tags=["companies"])


def _get_company(db: Session, company_id: int) -> Optional[Company]:
    return Repository(db, Company).get(company_id)


def _commit_and_sync(db: Session, company: Company, sync: AirtableSync) -> Company:
    db.commit()
    if sync.sync_company(company):
        db.commit()
    db.refresh(company)
    return company


@router.get("", response_model=List[CompanyOut])
def list_companies(
    status_: Optional[List[str]] = Query(None, alias="status"),
    country: Optional[List[str]] = Query(None),
    company_type: Optional[List[str]] = Query(None),
    payment_status: Optional[List[str]] = Query(None),
    refund_status: Optional[List[str]] = Query(None),
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    min_days: Optional[int] = None,
    max_days: Optional[int] = None,
    tags: Optional[List[str]] = Query(None),
    search: Optional[str] = None,
    sort_by: str = "date",
    order: str = "desc",
    db: Session = Depends(get_db),
):
    if sort_by not in SORT_FIELDS:
        return error_response(f"sort_by must be one of {', '.join(SORT_FIELDS)}")
    flt = CompanyFilter(
        status=status_ or [],
        country=country or [],
        company_type=company_type or [],
        payment_status=payment_status or [],
        refund_status=refund_status or [],
        min_price=min_price,
        max_price=max_price,
        min_days=min_days,
        max_days=max_days,
        tags=tags or [],
        search=search,
    )
    companies = filter_companies(Repository(db, Company).list(), flt)
    return sort_companies(companies, sort_by, order)


@router.get("/stats", response_model=CompanyStatisticsOut)
def company_stats(db: Session = Depends(get_db)):
    return automation.company_statistics(Repository(db, Company).list())


@router.get("/attention", response_model=List[CompanyOut])
def companies_needing_attention(db: Session = Depends(get_db)):
    return automation.companies_needing_attention(Repository(db, Company).list())


@router.get("/renewal-notifications", response_model=List[RenewalNotificationOut])
def renewal_notifications(db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    return automation.renewal_notifications(
        Repository(db, Company).list(),
        urgent_days=settings.renewal_urgent_days,
        warning_days=settings.renewal_warning_days,
    )


@router.get("/renewal-reminders", response_model=List[str])
def renewal_reminders(db: Session = Depends(get_db)):
    return automation.generate_renewal_reminders(Repository(db, Company).list())


@router.post("/auto-update")
def auto_update_statuses(db: Session = Depends(get_db)):
    companies = Repository(db, Company).list()
    updated = automation.batch_auto_update_statuses(companies)
    db.commit()
    logger.info("Automatic status pass updated %d of %d companies", updated, len(companies))
    return {"updated": updated, "checked": len(companies)}


@router.post("", response_model=CompanyOut, status_code=status.HTTP_201_CREATED)
def create_company(
    payload: CompanyCreate,
    db: Session = Depends(get_db),
    sync: AirtableSync = Depends(get_airtable_sync),
):
    if payload.status not in COMPANY_STATUSES:
        return error_response(f"Invalid company status {payload.status!r}")
    data = payload.model_dump()
    renewal_date = data.pop("renewal_date") or calculate_expiry_date(
        payload.incorporation_date or date.today()
    )
    expiry_date = data.pop("expiry_date") or renewal_date
    if not data["incorporation_year"] and payload.incorporation_date:
        data["incorporation_year"] = payload.incorporation_date.year
    company = Company(**data, renewal_date=renewal_date, expiry_date=expiry_date)
    db.add(company)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        return error_response(
            f"Company number {payload.number} already exists", status_code=status.HTTP_409_CONFLICT
        )
    automation.log_activity(company, "Company Created", f"Company {company.name} added to inventory",
                             new_status=company.status)
    return _commit_and_sync(db, company, sync)


@router.get("/{company_id}", response_model=CompanyOut)
def get_company(company_id: int, db: Session = Depends(get_db)):
    company = _get_company(db, company_id)
    if not company:
        return not_found("Company")
    return company


@router.get("/{company_id}/health", response_model=CompanyHealthOut)
def company_health(company_id: int, db: Session = Depends(get_db)):
    company = _get_company(db, company_id)
    if not company:
        return not_found("Company")
    return {
        "company_id": company.id,
        "score": automation.company_health_score(company),
        "healthy": automation.is_healthy(company),
        "renewal_due_soon": automation.is_renewal_due_soon(company),
        "expired": automation.is_expired(company),
        "days_until_renewal": days_until_renewal(company.renewal_date),
        "renewal_window": renewal_window_status(company.renewal_date),
    }


@router.patch("/{company_id}", response_model=CompanyOut)
def update_company(
    company_id: int,
    payload: CompanyUpdate,
    db: Session = Depends(get_db),
    sync: AirtableSync = Depends(get_airtable_sync),
):
    company = _get_company(db, company_id)
    if not company:
        return not_found("Company")
    if payload.number and payload.number != company.number:
        if Repository(db, Company).get_by(number=payload.number):
            return error_response(
                f"Company number {payload.number} already exists", status_code=status.HTTP_409_CONFLICT
            )
    try:
        changed = apply_updates(company, payload)
    except RequiredFieldError as exc:
        return error_response(str(exc))
    if changed:
        automation.log_activity(company, "Company Updated", f"Updated fields: {', '.join(sorted(changed))}")
    company.updated_at = datetime.now()
    return _commit_and_sync(db, company, sync)


@router.delete("/{company_id}")
def delete_company(company_id: int, db: Session = Depends(get_db)):
    company = _get_company(db, company_id)
    if not company:
        return not_found("Company")
    try:
        Repository(db, Company).delete(company)
    except IntegrityError:
        db.rollback()
        return error_response("Company is referenced by orders or invoices", status_code=status.HTTP_409_CONFLICT)
    logger.info("Company %s deleted", company_id)
    return {"success": True}


@router.patch("/{company_id}/status", response_model=CompanyOut)
def change_status(
    company_id: int,
    payload: StatusChangeIn,
    db: Session = Depends(get_db),
    sync: AirtableSync = Depends(get_airtable_sync),
):
    company = _get_company(db, company_id)
    if not company:
        return not_found("Company")
    try:
        change_company_status(company, payload.status, payload.changed_by, payload.reason)
    except InvalidTransition as exc:
        return error_response(str(exc))
    return _commit_and_sync(db, company, sync)


@router.post("/{company_id}/renew", response_model=CompanyOut)
def renew_company(
    company_id: int,
    db: Session = Depends(get_db),
    sync: AirtableSync = Depends(get_airtable_sync),
):
    company = _get_company(db, company_id)
    if not company:
        return not_found("Company")
    if not automation.process_renewal(company):
        return error_response(f"A {company.status} company cannot be renewed")
    return _commit_and_sync(db, company, sync)


@router.post("/{company_id}/refund", response_model=CompanyOut)
def refund_company(
    company_id: int,
    payload: RefundIn,
    db: Session = Depends(get_db),
    sync: AirtableSync = Depends(get_airtable_sync),
):
    company = _get_company(db, company_id)
    if not company:
        return not_found("Company")
    if not automation.process_refund(company, payload.reason, payload.amount):
        return error_response("Company is already refunded")
    return _commit_and_sync(db, company, sync)


@router.post("/{company_id}/reactivate", response_model=CompanyOut)
def reactivate_company(
    company_id: int,
    db: Session = Depends(get_db),
    sync: AirtableSync = Depends(get_airtable_sync),
):
    company = _get_company(db, company_id)
    if not company:
        return not_found("Company")
    if not automation.reactivate_company(company):
        return error_response("Only refunded or cancelled companies can be reactivated")
    return _commit_and_sync(db, company, sync)


@router.post("/{company_id}/cancel", response_model=CompanyOut)
def cancel_company(
    company_id: int,
    payload: CancelIn,
    db: Session = Depends(get_db),
    sync: AirtableSync = Depends(get_airtable_sync),
):
    company = _get_company(db, company_id)
    if not company:
        return not_found("Company")
    if not automation.cancel_company(company, payload.reason):
        return error_response("Company is already cancelled")
    return _commit_and_sync(db, company, sync)


@router.post("/{company_id}/transfer", response_model=CompanyOut)
def transfer_company(
    company_id: int,
    payload: TransferOwnershipIn,
    db: Session = Depends(get_db),
    sync: AirtableSync = Depends(get_airtable_sync),
):
    company = _get_company(db, company_id)
    if not company:
        return not_found("Company")
    automation.transfer_ownership(company, payload.new_owner_name, payload.new_owner_email, payload.reason)
    return _commit_and_sync(db, company, sync)
