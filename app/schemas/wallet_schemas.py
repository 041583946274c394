from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field
from sqlmodel import SQLModel

from app.models.wallet_transaction import TransactionType


class WalletCreditRequest(BaseModel):
    amount: Decimal = Field(max_digits=10, decimal_places=2)
    description: Optional[str] = None
    reference_number: Optional[str] = None


class WalletDebitRequest(BaseModel):
    amount: Decimal = Field(max_digits=10, decimal_places=2)
    order_id: Optional[UUID] = None
    description: Optional[str] = None


class WalletRefundRequest(BaseModel):
    amount: Decimal = Field(max_digits=10, decimal_places=2)
    order_id: UUID
    description: Optional[str] = None


class WalletTransactionRead(SQLModel):
    id: UUID
    user_id: UUID
    order_id: Optional[UUID] = None
    sequence: int
    transaction_type: TransactionType
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    description: Optional[str] = None
    reference_number: Optional[str] = None
    created_at: datetime


class WalletBalanceRead(BaseModel):
    user_id: UUID
    balance: Decimal


class WalletHistoryRead(BaseModel):
    items: List[WalletTransactionRead]
    total: int
    page: int
    limit: int
    pages: int


class ReconciliationRead(BaseModel):
    user_id: UUID
    transaction_count: int
    folded_balance: Decimal
    ledger_balance: Decimal
    stored_balance: Decimal
    broken_sequences: List[int]
    consistent: bool
