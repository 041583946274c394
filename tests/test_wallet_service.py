from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlmodel import select

from app.database import new_session
from app.exceptions import (
    BalanceCapExceededError,
    InsufficientFundsError,
    NotFoundError,
    ValidationError,
)
from app.models import OrderStatus, PaymentMethod, TransactionType, User, WalletTransaction
from app.services import wallet_service
from app.services.order_service import cancel_order, get_order, transition_order
from app.services.wallet_service import (
    credit_wallet,
    debit_wallet,
    get_balance,
    refund_wallet,
)


def ledger(user_id):
    with new_session() as session:
        return session.exec(
            select(WalletTransaction)
            .where(WalletTransaction.user_id == user_id)
            .order_by(WalletTransaction.sequence)
        ).all()


def folded_balance(user_id):
    balance = Decimal("0.00")
    for entry in ledger(user_id):
        balance = wallet_service.apply_delta(balance, entry)
    return balance


def stored_balance(user_id):
    with new_session() as session:
        return session.get(User, user_id).wallet_balance


def test_new_wallet_starts_empty(customer):
    assert get_balance(customer.id) == Decimal("0.00")
    assert ledger(customer.id) == []


def test_credit_and_debit_append_ledger_entries(customer):
    credit = credit_wallet(customer.id, Decimal("5000.00"), description="Top up")
    debit = debit_wallet(customer.id, "1250.50")

    assert credit.transaction_type == TransactionType.credit
    assert (credit.balance_before, credit.balance_after) == (Decimal("0.00"), Decimal("5000.00"))
    assert debit.transaction_type == TransactionType.debit
    assert (debit.balance_before, debit.balance_after) == (Decimal("5000.00"), Decimal("3749.50"))
    assert [e.sequence for e in ledger(customer.id)] == [1, 2]

    assert get_balance(customer.id) == Decimal("3749.50")
    assert stored_balance(customer.id) == Decimal("3749.50")


def test_debit_more_than_balance_fails_and_leaves_balance(customer):
    credit_wallet(customer.id, Decimal("1000.00"))

    with pytest.raises(InsufficientFundsError):
        debit_wallet(customer.id, Decimal("1000.01"))

    assert get_balance(customer.id) == Decimal("1000.00")
    assert stored_balance(customer.id) == Decimal("1000.00")
    assert len(ledger(customer.id)) == 1


def test_credit_above_cap_is_rejected(customer):
    credit_wallet(customer.id, Decimal("999999.00"))

    with pytest.raises(BalanceCapExceededError):
        credit_wallet(customer.id, Decimal("1.01"))

    credit_wallet(customer.id, Decimal("1.00"))
    assert get_balance(customer.id) == Decimal("1000000.00")


@pytest.mark.parametrize("amount", [0, "-5.00", "10.005", 12.5, "abc"])
def test_bad_amounts_are_validation_errors(customer, amount):
    with pytest.raises(ValidationError):
        credit_wallet(customer.id, amount)
    assert ledger(customer.id) == []


def test_unknown_user(customer):
    with pytest.raises(NotFoundError):
        credit_wallet(uuid4(), Decimal("10.00"))
    with pytest.raises(NotFoundError):
        get_balance(uuid4())


def test_refund_is_bounded_by_the_order_debit(customer, place):
    order = place()
    credit_wallet(customer.id, Decimal("30000.00"))
    debit_wallet(customer.id, Decimal("21000.00"), order_id=order.id)
    cancel_order(order.id)

    refund_wallet(customer.id, Decimal("1000.00"), order.id)
    with pytest.raises(ValidationError):
        refund_wallet(customer.id, Decimal("20000.01"), order.id)

    entry = refund_wallet(customer.id, Decimal("20000.00"), order.id)
    assert entry.transaction_type == TransactionType.refund

    # nothing left to refund
    with pytest.raises(ValidationError):
        refund_wallet(customer.id, Decimal("0.01"), order.id)
    assert get_balance(customer.id) == Decimal("30000.00")


def test_refund_without_debit_is_rejected(customer, place):
    order = place()
    cancel_order(order.id)
    credit_wallet(customer.id, Decimal("100.00"))

    with pytest.raises(ValidationError):
        refund_wallet(customer.id, Decimal("50.00"), order.id)


def test_ledger_folds_to_balance_after_every_operation(customer, place):
    order = place()
    operations = [
        lambda: credit_wallet(customer.id, Decimal("500.00")),
        lambda: debit_wallet(customer.id, Decimal("120.25"), order_id=order.id),
        lambda: cancel_order(order.id),
        lambda: debit_wallet(customer.id, Decimal("9999.00")),
        lambda: credit_wallet(customer.id, Decimal("0.75")),
        lambda: refund_wallet(customer.id, Decimal("20.25"), order.id),
        lambda: refund_wallet(customer.id, Decimal("500.00"), order.id),
        lambda: debit_wallet(customer.id, Decimal("400.75")),
    ]

    for operation in operations:
        try:
            operation()
        except (InsufficientFundsError, ValidationError):
            pass
        assert folded_balance(customer.id) == get_balance(customer.id) == stored_balance(customer.id)

    with new_session() as session:
        report = wallet_service.reconcile(session, customer.id)
    assert report.consistent
    assert report.transaction_count == 5
    assert report.folded_balance == Decimal("0.00")


def test_reconcile_flags_a_diverged_balance(customer):
    credit_wallet(customer.id, Decimal("100.00"))
    with new_session() as session:
        user = session.get(User, customer.id)
        user.wallet_balance = Decimal("150.00")
        session.add(user)
        session.commit()

        report = wallet_service.reconcile(session, customer.id)

    assert not report.consistent
    assert report.folded_balance == report.ledger_balance == Decimal("100.00")
    assert report.stored_balance == Decimal("150.00")


def test_concurrent_debits_serialize_per_account(customer):
    credit_wallet(customer.id, Decimal("1000.00"))

    def attempt(_):
        try:
            debit_wallet(customer.id, Decimal("100.00"))
            return "ok"
        except InsufficientFundsError:
            return "insufficient"

    with ThreadPoolExecutor(max_workers=20) as pool:
        results = list(pool.map(attempt, range(20)))

    assert results.count("ok") == 10
    assert results.count("insufficient") == 10
    assert get_balance(customer.id) == Decimal("0.00")
    assert [e.sequence for e in ledger(customer.id)] == list(range(1, 12))


def test_history_is_paged_newest_first(customer):
    for amount in ("10.00", "20.00", "30.00"):
        credit_wallet(customer.id, Decimal(amount))

    with new_session() as session:
        first = wallet_service.list_transactions(session, customer.id, page=1, limit=2)
        second = wallet_service.list_transactions(session, customer.id, page=2, limit=2)

        with pytest.raises(ValidationError):
            wallet_service.list_transactions(session, customer.id, page=0)

    assert [t.sequence for t in first.items] == [3, 2]
    assert [t.sequence for t in second.items] == [1]
    assert first.total == 3
    assert first.pages == 2


def test_live_order_payment_cannot_be_refunded(customer, place):
    credit_wallet(customer.id, Decimal("30000.00"))
    order = place(payment_method=PaymentMethod.wallet)
    transition_order(order.id, OrderStatus.confirmed)

    with pytest.raises(ValidationError):
        refund_wallet(customer.id, Decimal("23000.00"), order.id)
    assert get_balance(customer.id) == Decimal("7000.00")

    for step in ("preparing", "ready", "out_for_delivery", "delivered"):
        transition_order(order.id, step)
    with pytest.raises(ValidationError):
        refund_wallet(customer.id, Decimal("23000.00"), order.id)

    assert get_order(order.id).status == OrderStatus.delivered
    assert get_balance(customer.id) == Decimal("7000.00")


def test_order_tagged_entries_must_match_the_customer(customer, make_user, place):
    credit_wallet(customer.id, Decimal("500.00"))
    stranger = make_user()
    credit_wallet(stranger.id, Decimal("500.00"))
    order = place()

    with pytest.raises(NotFoundError):
        debit_wallet(customer.id, Decimal("40.00"), order_id=uuid4())
    with pytest.raises(NotFoundError):
        refund_wallet(customer.id, Decimal("40.00"), uuid4())
    with pytest.raises(ValidationError):
        debit_wallet(stranger.id, Decimal("40.00"), order_id=order.id)

    cancel_order(order.id)
    with pytest.raises(ValidationError):
        debit_wallet(customer.id, Decimal("40.00"), order_id=order.id)

    assert get_balance(customer.id) == Decimal("500.00")
    assert get_balance(stranger.id) == Decimal("500.00")
    assert len(ledger(customer.id)) == 1
