from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel
from sqlmodel import SQLModel


class ReviewCreate(BaseModel):
    order_id: UUID
    customer_id: Optional[UUID] = None
    restaurant_rating: int
    delivery_rating: int
    food_quality_rating: int
    restaurant_comment: Optional[str] = None
    delivery_comment: Optional[str] = None
    is_public: bool = True


class ReviewRead(SQLModel):
    id: UUID
    order_id: UUID
    customer_id: UUID
    restaurant_id: UUID
    delivery_worker_id: Optional[UUID] = None
    restaurant_rating: int
    delivery_rating: int
    food_quality_rating: int
    restaurant_comment: Optional[str] = None
    delivery_comment: Optional[str] = None
    is_public: bool
    created_at: datetime
