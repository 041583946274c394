from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field, Relationship

from app.models.order_item import OrderItem
from app.utils.clock import utcnow


class OrderStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    preparing = "preparing"
    ready = "ready"
    out_for_delivery = "out_for_delivery"
    delivered = "delivered"
    cancelled = "cancelled"


class PaymentMethod(str, Enum):
    cash = "cash"
    wallet = "wallet"
    card = "card"
    bank_transfer = "bank_transfer"


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    customer_id: UUID = Field(foreign_key="users.id", index=True)
    restaurant_id: UUID = Field(foreign_key="restaurants.id", index=True)
    delivery_worker_id: Optional[UUID] = Field(default=None, foreign_key="users.id")
    promotion_id: Optional[UUID] = Field(default=None, foreign_key="promotions.id")

    status: OrderStatus = Field(default=OrderStatus.pending, index=True)
    payment_method: PaymentMethod = Field(default=PaymentMethod.cash)

    # final_amount = total_amount + delivery_fee - discount_amount
    total_amount: Decimal = Field(max_digits=10, decimal_places=2)
    delivery_fee: Decimal = Field(default=Decimal("0.00"), max_digits=8, decimal_places=2)
    discount_amount: Decimal = Field(default=Decimal("0.00"), max_digits=8, decimal_places=2)
    final_amount: Decimal = Field(max_digits=10, decimal_places=2)

    delivery_address: str
    customer_phone: str = Field(max_length=20)
    customer_name: str = Field(max_length=255)
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None

    estimated_delivery_time: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)

    items: List["OrderItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "lazy": "selectin"},
    )
