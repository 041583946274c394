from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from app.utils.clock import utcnow


class TransactionType(str, Enum):
    credit = "credit"
    debit = "debit"
    refund = "refund"


class WalletTransaction(SQLModel, table=True):
    """Append-only ledger entry. Rows are never updated or deleted."""

    __tablename__ = "wallet_transactions"
    __table_args__ = (
        UniqueConstraint("user_id", "sequence", name="uq_wallet_transactions_user_sequence"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    order_id: Optional[UUID] = Field(default=None, foreign_key="orders.id", index=True)

    # position in the user's ledger, starting at 1
    sequence: int

    transaction_type: TransactionType
    amount: Decimal = Field(max_digits=10, decimal_places=2)
    balance_before: Decimal = Field(max_digits=10, decimal_places=2)
    balance_after: Decimal = Field(max_digits=10, decimal_places=2)

    description: Optional[str] = None
    reference_number: Optional[str] = Field(default=None, max_length=100)
    created_at: datetime = Field(default_factory=utcnow)
