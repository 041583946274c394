from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field
from sqlmodel import SQLModel

from app.models.promotion import DiscountType


class PromotionValidateRequest(BaseModel):
    promo_code: str
    order_subtotal: Decimal = Field(max_digits=10, decimal_places=2)
    restaurant_id: Optional[UUID] = None
    bogo_item_price: Optional[Decimal] = Field(default=None, max_digits=8, decimal_places=2)
    now: Optional[datetime] = None


class PromotionQuoteRead(BaseModel):
    promotion_id: UUID
    promo_code: Optional[str] = None
    discount_type: DiscountType
    discount: Decimal


class PromotionRead(SQLModel):
    id: UUID
    promo_code: Optional[str] = None
    title: str
    discount_type: DiscountType
    usage_limit: Optional[int] = None
    used_count: int
