import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import wallet as wallets
from ..database import get_db
from ..models import Wallet, WalletTransaction
from ..repository import Repository
from ..schemas import DeductOut, WalletAmountIn, WalletOut, WalletReportOut, WalletTransactionOut
from ..services import money_round, to_decimal
from .common import error_response, not_found

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/wallets", tags=["wallets"])

CREDIT_TYPES = ("deposit", "admin_add", "refund")
DEBIT_TYPES = ("withdrawal", "admin_deduct")


def _find_wallet(db: Session, ref: str) -> Optional[Wallet]:
    """Wallets are addressable by user id or by email."""
    return (
        db.query(Wallet)
        .filter((Wallet.user_id == ref) | (func.lower(Wallet.user_email) == ref.lower()))
        .first()
    )


def _transactions_query(db: Session, txn_type, date_from, date_to):
    query = db.query(WalletTransaction)
    if txn_type:
        query = query.filter(WalletTransaction.txn_type.in_(txn_type))
    if date_from:
        query = query.filter(WalletTransaction.created_at >= datetime.combine(date_from, time.min))
    if date_to:
        query = query.filter(WalletTransaction.created_at <= datetime.combine(date_to, time.max))
    return query.order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())


@router.get("", response_model=List[WalletOut])
def list_wallets(
    status_: Optional[str] = Query(None, alias="status"),
    currency: Optional[str] = None,
    min_balance: Optional[Decimal] = None,
    max_balance: Optional[Decimal] = None,
    db: Session = Depends(get_db),
):
    criteria = []
    if status_:
        criteria.append(Wallet.status == status_)
    if currency:
        criteria.append(Wallet.currency == currency)
    if min_balance is not None:
        criteria.append(Wallet.balance >= min_balance)
    if max_balance is not None:
        criteria.append(Wallet.balance <= max_balance)
    return Repository(db, Wallet).list(*criteria, order_by=Wallet.created_at.desc())


@router.get("/report", response_model=WalletReportOut)
def report(currency: str = "USD", db: Session = Depends(get_db)):
    """Totals over the wallets held in one currency."""
    currency = currency.upper()
    all_wallets = Repository(db, Wallet).list(Wallet.currency == currency)
    totals = {"credit": Decimal("0"), "debit": Decimal("0"), "payment": Decimal("0")}
    for txn in db.query(WalletTransaction).filter(WalletTransaction.currency == currency):
        if txn.txn_type in CREDIT_TYPES:
            totals["credit"] += to_decimal(txn.amount)
        elif txn.txn_type in DEBIT_TYPES:
            totals["debit"] += to_decimal(txn.amount)
        elif txn.txn_type == "payment":
            totals["payment"] += to_decimal(txn.amount)
    return {
        "total_users": len(all_wallets),
        "total_balance": money_round(sum((to_decimal(w.balance) for w in all_wallets), Decimal("0"))),
        "total_deposited": money_round(totals["credit"]),
        "total_withdrawn": money_round(totals["debit"]),
        "total_payments": money_round(totals["payment"]),
        "currency": currency,
    }


@router.get("/transactions", response_model=List[WalletTransactionOut])
def all_transactions(
    txn_type: Optional[List[str]] = Query(None, alias="type"),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return _transactions_query(db, txn_type, date_from, date_to).offset(offset).limit(limit).all()


@router.get("/{user_ref}", response_model=WalletOut)
def get_or_create_wallet(
    user_ref: str,
    email: Optional[str] = None,
    name: Optional[str] = None,
    db: Session = Depends(get_db),
):
    wallet = _find_wallet(db, user_ref) or (email and _find_wallet(db, email))
    if wallet:
        return wallet
    wallet = Repository(db, Wallet).create(
        user_id=user_ref,
        user_email=email or user_ref,
        user_name=name,
    )
    logger.info("Wallet created for %s", user_ref)
    return wallet


@router.post("/{user_ref}/add-funds", response_model=WalletTransactionOut)
def add_funds(user_ref: str, payload: WalletAmountIn, db: Session = Depends(get_db)):
    wallet = _find_wallet(db, user_ref)
    if not wallet:
        return not_found("Wallet")
    try:
        txn = wallets.credit(wallet, payload.amount, reason=payload.reason or "Admin added funds")
    except wallets.WalletError as exc:
        return error_response(str(exc))
    db.commit()
    db.refresh(txn)
    return txn


@router.post("/{user_ref}/deduct", response_model=DeductOut)
def deduct(user_ref: str, payload: WalletAmountIn, db: Session = Depends(get_db)):
    wallet = _find_wallet(db, user_ref)
    if not wallet:
        return not_found("Wallet")
    try:
        txn = wallets.debit(
            wallet,
            payload.amount,
            reason=payload.reason or "Payment",
            order_number=payload.order_number,
        )
    except wallets.WalletError as exc:
        return error_response(str(exc))
    db.commit()
    db.refresh(wallet)
    db.refresh(txn)
    return {"success": True, "new_balance": wallet.balance, "transaction": txn}


@router.post("/{user_ref}/freeze", response_model=WalletOut)
def freeze_wallet(user_ref: str, db: Session = Depends(get_db)):
    wallet = _find_wallet(db, user_ref)
    if not wallet:
        return not_found("Wallet")
    wallets.freeze(wallet)
    db.commit()
    db.refresh(wallet)
    return wallet


@router.post("/{user_ref}/unfreeze", response_model=WalletOut)
def unfreeze_wallet(user_ref: str, db: Session = Depends(get_db)):
    wallet = _find_wallet(db, user_ref)
    if not wallet:
        return not_found("Wallet")
    wallets.unfreeze(wallet)
    db.commit()
    db.refresh(wallet)
    return wallet


@router.get("/{user_ref}/transactions", response_model=List[WalletTransactionOut])
def wallet_transactions(
    user_ref: str,
    txn_type: Optional[List[str]] = Query(None, alias="type"),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    wallet = _find_wallet(db, user_ref)
    if not wallet:
        return not_found("Wallet")
    query = _transactions_query(db, txn_type, date_from, date_to)
    return query.filter(WalletTransaction.wallet_id == wallet.id).offset(offset).limit(limit).all()
