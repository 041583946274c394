from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.database import get_session
from app.schemas.order_schemas import (
    OrderCancelRequest,
    OrderCreate,
    OrderEventRead,
    OrderRead,
    OrderTransitionRequest,
)
from app.services.order_event_service import order_timeline
from app.services.order_service import (
    OrderLine,
    cancel_order,
    get_order,
    place_order,
    transition_order,
)

router = APIRouter()


@router.post("", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
def create_order(data: OrderCreate):
    order = place_order(
        customer_id=data.customer_id,
        restaurant_id=data.restaurant_id,
        items=[OrderLine(**item.model_dump()) for item in data.items],
        payment_method=data.payment_method,
        promo_code=data.promo_code,
        delivery_address=data.delivery_address,
        customer_phone=data.customer_phone,
        customer_name=data.customer_name,
        notes=data.notes,
    )
    return OrderRead.model_validate(order)


@router.get("/{order_id}", response_model=OrderRead)
def order_details(order_id: UUID):
    return OrderRead.model_validate(get_order(order_id))


@router.post("/{order_id}/transition", response_model=OrderRead)
def change_order_status(order_id: UUID, data: OrderTransitionRequest):
    return OrderRead.model_validate(transition_order(order_id, data.status))


@router.post("/{order_id}/cancel", response_model=OrderRead)
def cancel(order_id: UUID, data: OrderCancelRequest):
    return OrderRead.model_validate(cancel_order(order_id, data.reason, actor="api"))


@router.get("/{order_id}/timeline", response_model=List[OrderEventRead])
def timeline(
    order_id: UUID,
    event_type: Optional[str] = None,
    session: Session = Depends(get_session),
):
    get_order(order_id)
    return order_timeline(session, order_id, event_type=event_type)
