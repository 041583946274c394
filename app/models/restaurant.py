from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field

from app.utils.clock import utcnow


class Restaurant(SQLModel, table=True):
    __tablename__ = "restaurants"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    owner_id: Optional[UUID] = Field(default=None, foreign_key="users.id")
    name: str = Field(max_length=255)
    description: Optional[str] = None
    address: str
    region_id: UUID = Field(foreign_key="regions.id", index=True)
    phone: Optional[str] = Field(default=None, max_length=20)
    cuisine_type: Optional[str] = Field(default=None, max_length=100)

    is_active: bool = Field(default=True, index=True)
    is_open: bool = Field(default=True)

    delivery_fee: Decimal = Field(default=Decimal("0.00"), max_digits=8, decimal_places=2)
    minimum_order: Decimal = Field(default=Decimal("0.00"), max_digits=8, decimal_places=2)

    # maintained by app.services.review_service only
    average_rating: Decimal = Field(default=Decimal("0.00"), max_digits=3, decimal_places=2)
    total_reviews: int = Field(default=0)

    estimated_delivery_time: int = Field(default=30)  # minutes

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
