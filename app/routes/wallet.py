from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.database import get_session
from app.exceptions import NotFoundError
from app.models.user import User
from app.schemas.wallet_schemas import (
    ReconciliationRead,
    WalletBalanceRead,
    WalletCreditRequest,
    WalletDebitRequest,
    WalletHistoryRead,
    WalletRefundRequest,
    WalletTransactionRead,
)
from app.services import wallet_service

router = APIRouter()


@router.get("/{user_id}/balance", response_model=WalletBalanceRead)
def balance(user_id: UUID):
    return {"user_id": user_id, "balance": wallet_service.get_balance(user_id)}


@router.post("/{user_id}/credit", response_model=WalletTransactionRead, status_code=status.HTTP_201_CREATED)
def credit(user_id: UUID, data: WalletCreditRequest):
    return wallet_service.credit_wallet(
        user_id, data.amount, description=data.description, reference_number=data.reference_number
    )


@router.post("/{user_id}/debit", response_model=WalletTransactionRead, status_code=status.HTTP_201_CREATED)
def debit(user_id: UUID, data: WalletDebitRequest):
    return wallet_service.debit_wallet(
        user_id, data.amount, order_id=data.order_id, description=data.description
    )


@router.post("/{user_id}/refund", response_model=WalletTransactionRead, status_code=status.HTTP_201_CREATED)
def refund(user_id: UUID, data: WalletRefundRequest):
    return wallet_service.refund_wallet(
        user_id, data.amount, data.order_id, description=data.description
    )


@router.get("/{user_id}/transactions", response_model=WalletHistoryRead)
def history(
    user_id: UUID,
    page: int = 1,
    limit: int = 20,
    session: Session = Depends(get_session),
):
    if not session.get(User, user_id):
        raise NotFoundError("User", user_id)
    result = wallet_service.list_transactions(session, user_id, page=page, limit=limit)
    return {
        "items": result.items,
        "total": result.total,
        "page": result.page,
        "limit": result.limit,
        "pages": result.pages,
    }


@router.get("/{user_id}/reconcile", response_model=ReconciliationRead)
def reconcile(user_id: UUID, session: Session = Depends(get_session)):
    report = wallet_service.reconcile(session, user_id)
    return {
        "user_id": report.user_id,
        "transaction_count": report.transaction_count,
        "folded_balance": report.folded_balance,
        "ledger_balance": report.ledger_balance,
        "stored_balance": report.stored_balance,
        "broken_sequences": report.broken_sequences,
        "consistent": report.consistent,
    }
