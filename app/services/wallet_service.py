"""
Wallet ledger.

A user's balance is the ``balance_after`` of their latest ``WalletTransaction``.
``User.wallet_balance`` is a denormalized copy updated in the same unit as the
ledger append; it is never written anywhere else. Folding every transaction of
a user from zero always reproduces the balance (see ``reconcile``).

Debits and refunds tagged with an order lock that order first and must belong
to its customer. Refunds are only issued for cancelled orders, so a paid order
that is still moving keeps its payment.

The ``credit``/``debit``/``refund`` functions work inside a caller's unit so
order transitions can combine them with their own writes. The ``*_wallet``
functions are the standalone entry points.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlmodel import Session, select

from app.config import settings
from app.database import new_session
from app.exceptions import (
    BalanceCapExceededError,
    InsufficientFundsError,
    NotFoundError,
    ValidationError,
)
from app.models.order import Order, OrderStatus
from app.models.user import User
from app.models.wallet_transaction import TransactionType, WalletTransaction
from app.services.locks import lock_entity
from app.services.transaction import run_atomic
from app.utils.clock import utcnow
from app.utils.money import ZERO, positive_money, round_money
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationReport:
    user_id: UUID
    transaction_count: int
    folded_balance: Decimal
    ledger_balance: Decimal
    stored_balance: Decimal
    broken_sequences: List[int]

    @property
    def consistent(self) -> bool:
        return (
            not self.broken_sequences
            and self.folded_balance == self.ledger_balance == self.stored_balance
        )


def apply_delta(balance: Decimal, entry: WalletTransaction) -> Decimal:
    if entry.transaction_type == TransactionType.debit:
        return balance - entry.amount
    return balance + entry.amount


def _latest_transaction(session: Session, user_id: UUID) -> Optional[WalletTransaction]:
    return session.exec(
        select(WalletTransaction)
        .where(WalletTransaction.user_id == user_id)
        .order_by(WalletTransaction.sequence.desc())
        .limit(1)
    ).first()


def current_balance(session: Session, user_id: UUID) -> Decimal:
    latest = _latest_transaction(session, user_id)
    return latest.balance_after if latest else ZERO


def _append(
    session: Session,
    user: User,
    transaction_type: TransactionType,
    amount: Decimal,
    *,
    order_id: Optional[UUID] = None,
    description: Optional[str] = None,
    reference_number: Optional[str] = None,
) -> WalletTransaction:
    latest = _latest_transaction(session, user.id)
    balance_before = latest.balance_after if latest else ZERO
    sequence = latest.sequence + 1 if latest else 1

    if transaction_type == TransactionType.debit:
        balance_after = balance_before - amount
    else:
        balance_after = balance_before + amount

    entry = WalletTransaction(
        user_id=user.id,
        order_id=order_id,
        sequence=sequence,
        transaction_type=transaction_type,
        amount=amount,
        balance_before=balance_before,
        balance_after=balance_after,
        description=description,
        reference_number=reference_number,
    )

    user.wallet_balance = balance_after
    user.updated_at = utcnow()

    session.add(entry)
    session.add(user)
    session.flush()

    logger.info(
        f"Wallet {transaction_type.value} of {amount} for user {user.id}: "
        f"{balance_before} -> {balance_after}"
    )
    return entry


def _order_of(session: Session, user_id: UUID, order_id: UUID) -> Order:
    # order before wallet
    order = lock_entity(session, Order, order_id)
    if order.customer_id != user_id:
        raise ValidationError(f"Order {order_id} does not belong to user {user_id}")
    return order


def credit(
    session: Session,
    *,
    user_id: UUID,
    amount,
    description: Optional[str] = None,
    reference_number: Optional[str] = None,
) -> WalletTransaction:
    amount = positive_money(amount)
    user = lock_entity(session, User, user_id)

    balance = current_balance(session, user.id)
    cap = round_money(settings.wallet_max_balance)
    if balance + amount > cap:
        raise BalanceCapExceededError(
            f"Credit of {amount} would raise the balance to {balance + amount}, above the {cap} limit"
        )

    return _append(
        session, user, TransactionType.credit, amount,
        description=description, reference_number=reference_number,
    )


def debit(
    session: Session,
    *,
    user_id: UUID,
    amount,
    order_id: Optional[UUID] = None,
    description: Optional[str] = None,
    reference_number: Optional[str] = None,
) -> WalletTransaction:
    amount = positive_money(amount)
    if order_id is not None:
        order = _order_of(session, user_id, order_id)
        if order.status == OrderStatus.cancelled:
            raise ValidationError(f"Order {order_id} is cancelled and cannot be charged")
    user = lock_entity(session, User, user_id)

    balance = current_balance(session, user.id)
    if balance < amount:
        raise InsufficientFundsError(
            f"Balance {balance} is less than the requested debit of {amount}"
        )

    return _append(
        session, user, TransactionType.debit, amount,
        order_id=order_id, description=description, reference_number=reference_number,
    )


def refundable_amount(session: Session, user_id: UUID, order_id: UUID) -> Decimal:
    """Debits tied to ``order_id`` net of the refunds already issued for it."""
    entries = session.exec(
        select(WalletTransaction)
        .where(WalletTransaction.user_id == user_id)
        .where(WalletTransaction.order_id == order_id)
    ).all()

    debited = sum((e.amount for e in entries if e.transaction_type == TransactionType.debit), ZERO)
    refunded = sum((e.amount for e in entries if e.transaction_type == TransactionType.refund), ZERO)
    return debited - refunded


def refund(
    session: Session,
    *,
    user_id: UUID,
    amount,
    order_id: UUID,
    description: Optional[str] = None,
) -> WalletTransaction:
    # compensates a prior debit, so the balance cap does not apply
    amount = positive_money(amount)
    if order_id is None:
        raise ValidationError("A refund must reference the order that was debited")

    # a live order keeps its payment
    order = _order_of(session, user_id, order_id)
    if order.status != OrderStatus.cancelled:
        raise ValidationError(
            f"Order {order_id} is {order.status.value}; only cancelled orders are refunded"
        )

    user = lock_entity(session, User, user_id)

    available = refundable_amount(session, user.id, order_id)
    if available <= ZERO:
        raise ValidationError(f"No wallet debit left to refund for order {order_id}")
    if amount > available:
        raise ValidationError(
            f"Refund of {amount} exceeds the {available} still refundable for order {order_id}"
        )

    return _append(
        session, user, TransactionType.refund, amount,
        order_id=order_id, description=description or f"Refund for order {order_id}",
    )


def reconcile(session: Session, user_id: UUID) -> ReconciliationReport:
    user = session.get(User, user_id)
    if not user:
        raise NotFoundError("User", user_id)

    entries = session.exec(
        select(WalletTransaction)
        .where(WalletTransaction.user_id == user_id)
        .order_by(WalletTransaction.sequence)
    ).all()

    folded = ZERO
    broken = []
    for expected_sequence, entry in enumerate(entries, start=1):
        if entry.sequence != expected_sequence or entry.balance_before != folded:
            broken.append(entry.sequence)
        folded = apply_delta(folded, entry)
        if entry.balance_after != folded:
            broken.append(entry.sequence)

    report = ReconciliationReport(
        user_id=user_id,
        transaction_count=len(entries),
        folded_balance=folded,
        ledger_balance=entries[-1].balance_after if entries else ZERO,
        stored_balance=user.wallet_balance,
        broken_sequences=sorted(set(broken)),
    )
    if not report.consistent:
        logger.error(
            f"Wallet ledger mismatch for user {user_id}: folded={report.folded_balance} "
            f"ledger={report.ledger_balance} stored={report.stored_balance} "
            f"broken={report.broken_sequences}"
        )
    return report


def list_transactions(session: Session, user_id: UUID, page: int = 1, limit: int = 20):
    query = (
        select(WalletTransaction)
        .where(WalletTransaction.user_id == user_id)
        .order_by(WalletTransaction.sequence.desc())
    )
    return paginate(session=session, query=query, page=page, limit=limit)


# ---------------------------------------------------------
# Standalone entry points
# ---------------------------------------------------------

def credit_wallet(user_id: UUID, amount, description: Optional[str] = None,
                  reference_number: Optional[str] = None) -> WalletTransaction:
    return run_atomic(
        lambda session: credit(
            session, user_id=user_id, amount=amount,
            description=description, reference_number=reference_number,
        ),
        label="credit_wallet",
    )


def debit_wallet(user_id: UUID, amount, order_id: Optional[UUID] = None,
                 description: Optional[str] = None) -> WalletTransaction:
    return run_atomic(
        lambda session: debit(
            session, user_id=user_id, amount=amount,
            order_id=order_id, description=description,
        ),
        label="debit_wallet",
    )


def refund_wallet(user_id: UUID, amount, order_id: UUID,
                  description: Optional[str] = None) -> WalletTransaction:
    return run_atomic(
        lambda session: refund(
            session, user_id=user_id, amount=amount,
            order_id=order_id, description=description,
        ),
        label="refund_wallet",
    )


def get_balance(user_id: UUID) -> Decimal:
    with new_session() as session:
        if not session.get(User, user_id):
            raise NotFoundError("User", user_id)
        return current_balance(session, user_id)
