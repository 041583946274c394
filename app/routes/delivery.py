from uuid import UUID

from fastapi import APIRouter, status

from app.schemas.delivery_schemas import (
    DeliveryAdvanceRequest,
    DeliveryAssignRequest,
    DeliveryTrackingRead,
)
from app.services.delivery_service import advance_delivery, assign_delivery

router = APIRouter()


@router.post("", response_model=DeliveryTrackingRead, status_code=status.HTTP_201_CREATED)
def assign(data: DeliveryAssignRequest):
    return assign_delivery(
        data.order_id, data.worker_id,
        estimated_arrival=data.estimated_arrival, notes=data.notes,
    )


@router.post("/{tracking_id}/advance", response_model=DeliveryTrackingRead)
def advance(tracking_id: UUID, data: DeliveryAdvanceRequest):
    return advance_delivery(
        tracking_id,
        data.status,
        latitude=data.latitude,
        longitude=data.longitude,
        estimated_arrival=data.estimated_arrival,
        notes=data.notes,
    )
