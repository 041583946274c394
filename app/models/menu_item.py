from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field

from app.utils.clock import utcnow


class MenuItem(SQLModel, table=True):
    __tablename__ = "menu_items"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    restaurant_id: UUID = Field(foreign_key="restaurants.id", ondelete="CASCADE", index=True)
    name: str = Field(max_length=255)
    price: Decimal = Field(max_digits=8, decimal_places=2)
    is_available: bool = Field(default=True)
    preparation_time: int = Field(default=15)  # minutes

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
