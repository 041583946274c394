from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field

from app.utils.clock import utcnow


class Review(SQLModel, table=True):
    __tablename__ = "reviews"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    order_id: UUID = Field(foreign_key="orders.id", unique=True)
    customer_id: UUID = Field(foreign_key="users.id")
    restaurant_id: UUID = Field(foreign_key="restaurants.id", index=True)
    delivery_worker_id: Optional[UUID] = Field(default=None, foreign_key="users.id")

    restaurant_rating: int = Field(ge=1, le=5)
    delivery_rating: int = Field(ge=1, le=5)
    food_quality_rating: int = Field(ge=1, le=5)
    restaurant_comment: Optional[str] = None
    delivery_comment: Optional[str] = None
    is_public: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utcnow)
