from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field

from app.utils.clock import utcnow


class DiscountType(str, Enum):
    percentage = "percentage"
    fixed = "fixed"
    buy_one_get_one = "buy_one_get_one"


class Promotion(SQLModel, table=True):
    __tablename__ = "promotions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    # None means the promotion is valid at every restaurant
    restaurant_id: Optional[UUID] = Field(default=None, foreign_key="restaurants.id")
    title: str = Field(max_length=255)
    description: Optional[str] = None

    discount_type: DiscountType
    discount_value: Decimal = Field(default=Decimal("0.00"), max_digits=8, decimal_places=2)
    minimum_order: Optional[Decimal] = Field(default=None, max_digits=8, decimal_places=2)
    maximum_discount: Optional[Decimal] = Field(default=None, max_digits=8, decimal_places=2)

    promo_code: Optional[str] = Field(default=None, max_length=50, unique=True, index=True)
    is_active: bool = Field(default=True)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    # used_count <= usage_limit whenever a limit is set
    usage_limit: Optional[int] = None
    used_count: int = Field(default=0)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
