from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field

from app.utils.clock import utcnow


class DeliveryStatus(str, Enum):
    assigned = "assigned"
    picked_up = "picked_up"
    on_the_way = "on_the_way"
    delivered = "delivered"


class DeliveryTracking(SQLModel, table=True):
    __tablename__ = "delivery_tracking"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    order_id: UUID = Field(foreign_key="orders.id", index=True)
    delivery_worker_id: UUID = Field(foreign_key="users.id", index=True)

    status: DeliveryStatus = Field(default=DeliveryStatus.assigned)
    # cleared when the order is cancelled; at most one active row per order
    is_active: bool = Field(default=True)

    current_location_lat: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=8)
    current_location_lng: Optional[Decimal] = Field(default=None, max_digits=11, decimal_places=8)
    estimated_arrival: Optional[datetime] = None
    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
