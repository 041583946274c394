from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Column, JSON, UniqueConstraint
from sqlmodel import SQLModel, Field

from app.utils.clock import utcnow


class OrderEvent(SQLModel, table=True):
    """One step of an order's timeline. Appended under the order lock."""

    __tablename__ = "order_events"
    __table_args__ = (
        UniqueConstraint("order_id", "sequence", name="uq_order_events_order_sequence"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    order_id: UUID = Field(foreign_key="orders.id", index=True)
    sequence: int

    event_type: str = Field(index=True)
    label: str
    meta: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=utcnow)
    created_by: str = Field(default="system", max_length=50)
