from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field
from sqlmodel import SQLModel

from app.models.order import OrderStatus, PaymentMethod


class OrderItemCreate(BaseModel):
    menu_item_id: UUID
    quantity: int
    expected_unit_price: Optional[Decimal] = Field(default=None, max_digits=8, decimal_places=2)
    special_instructions: Optional[str] = None


class OrderCreate(BaseModel):
    customer_id: UUID
    restaurant_id: UUID
    items: List[OrderItemCreate]
    payment_method: PaymentMethod = PaymentMethod.cash
    promo_code: Optional[str] = None
    delivery_address: str
    customer_phone: str
    customer_name: str
    notes: Optional[str] = None


class OrderTransitionRequest(BaseModel):
    status: OrderStatus


class OrderCancelRequest(BaseModel):
    reason: Optional[str] = None


class OrderItemRead(SQLModel):
    id: UUID
    menu_item_id: UUID
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    special_instructions: Optional[str] = None


class OrderRead(SQLModel):
    id: UUID
    customer_id: UUID
    restaurant_id: UUID
    delivery_worker_id: Optional[UUID] = None
    promotion_id: Optional[UUID] = None
    status: OrderStatus
    payment_method: PaymentMethod
    total_amount: Decimal
    delivery_fee: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    delivery_address: str
    customer_name: str
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    estimated_delivery_time: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemRead] = []


class OrderEventRead(SQLModel):
    sequence: int
    event_type: str
    label: str
    meta: Optional[dict] = None
    created_by: str
    created_at: datetime
