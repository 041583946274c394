from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field

from app.utils.clock import utcnow


# ---------- ENUMS ----------

class RecipientRole(str, Enum):
    customer = "customer"
    restaurant_owner = "restaurant_owner"
    delivery_worker = "delivery_worker"


class NotificationType(str, Enum):
    info = "info"
    order = "order"
    wallet = "wallet"
    delivery = "delivery"


# ---------- MODEL ----------

class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id", index=True)
    recipient_role: RecipientRole
    order_id: Optional[UUID] = Field(default=None, foreign_key="orders.id")

    trigger_source: str  # order event value
    title: str = Field(max_length=255)
    message: str

    type: NotificationType = Field(default=NotificationType.info)
    is_read: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utcnow)
