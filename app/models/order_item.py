from datetime import datetime
from decimal import Decimal
from typing import Optional, TYPE_CHECKING
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field, Relationship

from app.utils.clock import utcnow

if TYPE_CHECKING:
    from app.models.order import Order


class OrderItem(SQLModel, table=True):
    __tablename__ = "order_items"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    order_id: UUID = Field(foreign_key="orders.id", ondelete="CASCADE", index=True)
    menu_item_id: UUID = Field(foreign_key="menu_items.id")

    quantity: int = Field(gt=0)
    # price snapshot taken when the order was placed
    unit_price: Decimal = Field(max_digits=8, decimal_places=2)
    total_price: Decimal = Field(max_digits=8, decimal_places=2)
    special_instructions: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow)

    order: Optional["Order"] = Relationship(back_populates="items")
