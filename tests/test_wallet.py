from decimal import Decimal

import pytest

from shelfmarket.models import Wallet
from shelfmarket.wallet import WalletError, credit, debit, freeze, unfreeze


def make_wallet(balance="0"):
    return Wallet(user_id="u1", user_email="u1@example.com", balance=Decimal(balance), currency="USD",
                  status="active")


def test_credit_then_debit_keeps_ledger():
    wallet = make_wallet()
    credit(wallet, Decimal("100"), reason="top up")
    txn = debit(wallet, Decimal("30.50"), order_number="ORD-1")
    assert wallet.balance == Decimal("69.50")
    assert txn.balance_before == Decimal("100.00")
    assert txn.balance_after == Decimal("69.50")
    assert [t.txn_type for t in wallet.transactions] == ["admin_add", "payment"]


def test_debit_rejects_insufficient_balance():
    wallet = make_wallet("10")
    with pytest.raises(WalletError, match="Insufficient balance"):
        debit(wallet, Decimal("10.01"))
    assert wallet.balance == Decimal("10")
    assert wallet.transactions == []


def test_frozen_wallet_cannot_pay_but_can_be_credited():
    wallet = make_wallet("50")
    freeze(wallet)
    with pytest.raises(WalletError, match="frozen"):
        debit(wallet, Decimal("5"))
    credit(wallet, Decimal("5"))
    unfreeze(wallet)
    debit(wallet, Decimal("55"))
    assert wallet.balance == Decimal("0.00")


def test_non_positive_amounts_rejected():
    wallet = make_wallet("50")
    with pytest.raises(WalletError, match="Invalid amount"):
        credit(wallet, Decimal("0"))
    with pytest.raises(WalletError, match="Invalid amount"):
        debit(wallet, Decimal("-1"))
