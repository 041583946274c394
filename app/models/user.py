from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field

from app.utils.clock import utcnow


class UserRole(str, Enum):
    customer = "customer"
    restaurant_owner = "restaurant_owner"
    delivery_worker = "delivery_worker"
    local_agent = "local_agent"
    admin = "admin"


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)
    role: UserRole = Field(default=UserRole.customer, index=True)
    is_active: bool = Field(default=True)

    # denormalized copy of the latest wallet ledger entry; written only by
    # app.services.wallet_service
    wallet_balance: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)

    region_id: Optional[UUID] = Field(default=None, foreign_key="regions.id")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
