from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel
from sqlmodel import SQLModel

from app.models.delivery_tracking import DeliveryStatus


class DeliveryAssignRequest(BaseModel):
    order_id: UUID
    worker_id: UUID
    estimated_arrival: Optional[datetime] = None
    notes: Optional[str] = None


class DeliveryAdvanceRequest(BaseModel):
    status: DeliveryStatus
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    estimated_arrival: Optional[datetime] = None
    notes: Optional[str] = None


class DeliveryTrackingRead(SQLModel):
    id: UUID
    order_id: UUID
    delivery_worker_id: UUID
    status: DeliveryStatus
    is_active: bool
    current_location_lat: Optional[Decimal] = None
    current_location_lng: Optional[Decimal] = None
    estimated_arrival: Optional[datetime] = None
    notes: Optional[str] = None
    updated_at: datetime
