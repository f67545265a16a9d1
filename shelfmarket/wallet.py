import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .models import Wallet, WalletTransaction
from .services import money_round, to_decimal

logger = logging.getLogger(__name__)


class WalletError(ValueError):
    """A wallet movement that cannot be applied."""


def _record(wallet: Wallet, txn_type: str, amount: Decimal, new_balance: Decimal,
            reason: Optional[str], created_by: str, order_number: Optional[str] = None,
            reference: Optional[str] = None) -> WalletTransaction:
    now = datetime.now()
    txn = WalletTransaction(
        txn_type=txn_type,
        amount=amount,
        currency=wallet.currency,
        balance_before=to_decimal(wallet.balance),
        balance_after=new_balance,
        reason=reason,
        order_number=order_number,
        reference=reference,
        created_at=now,
        created_by=created_by,
    )
    wallet.transactions.append(txn)
    wallet.balance = new_balance
    wallet.updated_at = now
    wallet.last_transaction_at = now
    return txn


def _positive(amount) -> Decimal:
    amount = money_round(to_decimal(amount))
    if amount <= 0:
        raise WalletError("Invalid amount")
    return amount


def credit(wallet: Wallet, amount, reason: Optional[str] = None, created_by: str = "admin",
           txn_type: str = "admin_add") -> WalletTransaction:
    amount = _positive(amount)
    new_balance = money_round(to_decimal(wallet.balance) + amount)
    logger.info("Wallet %s credited %s %s", wallet.user_id, amount, wallet.currency)
    return _record(wallet, txn_type, amount, new_balance, reason, created_by)


def debit(wallet: Wallet, amount, reason: Optional[str] = None, order_number: Optional[str] = None,
          created_by: str = "system", txn_type: str = "payment") -> WalletTransaction:
    amount = _positive(amount)
    if wallet.status == "frozen":
        raise WalletError("Wallet is frozen")
    balance = to_decimal(wallet.balance)
    if balance < amount:
        raise WalletError("Insufficient balance")
    logger.info("Wallet %s debited %s %s", wallet.user_id, amount, wallet.currency)
    return _record(wallet, txn_type, amount, money_round(balance - amount), reason, created_by,
                   order_number=order_number)


def freeze(wallet: Wallet) -> None:
    wallet.status = "frozen"
    wallet.updated_at = datetime.now()
    logger.info("Wallet %s frozen", wallet.user_id)


def unfreeze(wallet: Wallet) -> None:
    wallet.status = "active"
    wallet.updated_at = datetime.now()
    logger.info("Wallet %s unfrozen", wallet.user_id)
