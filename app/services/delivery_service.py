"""
Delivery assignment and tracking.

Tracking status only moves forward: assigned -> picked_up -> on_the_way ->
delivered (steps may be skipped, never revisited). Picking up a ``ready``
order moves it out for delivery, and reaching ``delivered`` here is what
delivers the order.
"""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

from app.constants.order_status import ASSIGNABLE_STATUSES, DELIVERY_SEQUENCE
from app.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from app.models.delivery_tracking import DeliveryStatus, DeliveryTracking
from app.models.order import Order, OrderStatus
from app.models.user import User, UserRole
from app.notifications import OrderEventType, dispatch_order_event
from app.services.locks import lock_entity
from app.services.order_event_service import log_order_event
from app.services.order_service import active_tracking, apply_transition
from app.services.transaction import run_atomic
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

COORDINATE = Decimal("0.00000001")


def coerce_delivery_status(value) -> DeliveryStatus:
    try:
        return DeliveryStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown delivery status: {value!r}")


def _coordinate(value, limit: int, name: str) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        coordinate = Decimal(str(value)).quantize(COORDINATE)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{name} is not a number: {value!r}")
    if not -limit <= coordinate <= limit:
        raise ValidationError(f"{name} must be between -{limit} and {limit}")
    return coordinate


def assign(
    session,
    *,
    order_id: UUID,
    worker_id: UUID,
    estimated_arrival: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> DeliveryTracking:
    order = lock_entity(session, Order, order_id)
    if order.status not in ASSIGNABLE_STATUSES:
        raise InvalidTransitionError(
            f"Cannot assign a delivery to an order that is {order.status.value}",
            current=order.status.value,
        )

    worker = session.get(User, worker_id)
    if not worker:
        raise NotFoundError("User", worker_id)
    if worker.role != UserRole.delivery_worker or not worker.is_active:
        raise ValidationError(f"User {worker_id} is not an active delivery worker")

    if active_tracking(session, order.id):
        raise InvalidTransitionError(
            f"Order {order.id} already has an active delivery",
            current=order.status.value,
        )

    now = utcnow()
    tracking = DeliveryTracking(
        order_id=order.id,
        delivery_worker_id=worker.id,
        estimated_arrival=estimated_arrival,
        notes=notes,
        created_at=now,
        updated_at=now,
    )
    order.delivery_worker_id = worker.id
    order.updated_at = now

    session.add(tracking)
    session.add(order)
    session.flush()

    log_order_event(
        session, order.id, OrderEventType.DELIVERY_ASSIGNED, "Delivery worker assigned",
        meta={"worker_id": str(worker.id), "tracking_id": str(tracking.id)},
    )
    dispatch_order_event(event=OrderEventType.DELIVERY_ASSIGNED, order=order, session=session)

    logger.info(f"Order {order.id} assigned to worker {worker.id}")
    return tracking


def advance(
    session,
    *,
    tracking_id: UUID,
    new_status,
    latitude=None,
    longitude=None,
    estimated_arrival: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> DeliveryTracking:
    target = coerce_delivery_status(new_status)
    latitude = _coordinate(latitude, 90, "latitude")
    longitude = _coordinate(longitude, 180, "longitude")

    snapshot = session.get(DeliveryTracking, tracking_id)
    if not snapshot:
        raise NotFoundError("DeliveryTracking", tracking_id)

    # order before tracking, same as every other unit
    order = lock_entity(session, Order, snapshot.order_id)
    tracking = lock_entity(session, DeliveryTracking, tracking_id)

    if not tracking.is_active:
        raise InvalidTransitionError(
            "Delivery is no longer active", current=tracking.status.value, target=target.value,
        )

    current_index = DELIVERY_SEQUENCE.index(tracking.status)
    target_index = DELIVERY_SEQUENCE.index(target)
    if target_index < current_index:
        raise InvalidTransitionError(
            f"Delivery cannot go back from {tracking.status.value} to {target.value}",
            current=tracking.status.value,
            target=target.value,
        )

    if target_index > current_index and target != DeliveryStatus.assigned:
        if order.status == OrderStatus.ready:
            apply_transition(session, order, OrderStatus.out_for_delivery, actor="delivery")
        elif order.status != OrderStatus.out_for_delivery:
            raise InvalidTransitionError(
                f"Order is {order.status.value}; it is not ready for pickup",
                current=tracking.status.value,
                target=target.value,
            )

    previous = tracking.status
    tracking.status = target
    if latitude is not None:
        tracking.current_location_lat = latitude
    if longitude is not None:
        tracking.current_location_lng = longitude
    if estimated_arrival is not None:
        tracking.estimated_arrival = estimated_arrival
    if notes is not None:
        tracking.notes = notes
    tracking.updated_at = utcnow()
    session.add(tracking)
    session.flush()

    if target == previous:
        return tracking

    if target == DeliveryStatus.delivered:
        apply_transition(session, order, OrderStatus.delivered, via_tracking=True, actor="delivery")
    else:
        log_order_event(
            session, order.id, OrderEventType.DELIVERY_UPDATED, f"Delivery {target.value.replace('_', ' ')}",
            created_by="delivery", meta={"from": previous.value, "tracking_id": str(tracking.id)},
        )
        dispatch_order_event(
            event=OrderEventType.DELIVERY_UPDATED, order=order, session=session,
            extra={"status": target.value.replace("_", " ")},
        )

    logger.info(f"Delivery {tracking.id}: {previous.value} -> {target.value}")
    return tracking


def assign_delivery(order_id: UUID, worker_id: UUID, estimated_arrival: Optional[datetime] = None,
                    notes: Optional[str] = None) -> DeliveryTracking:
    return run_atomic(
        lambda session: assign(
            session, order_id=order_id, worker_id=worker_id,
            estimated_arrival=estimated_arrival, notes=notes,
        ),
        label="assign_delivery",
    )


def advance_delivery(tracking_id: UUID, new_status, latitude=None, longitude=None,
                     estimated_arrival: Optional[datetime] = None,
                     notes: Optional[str] = None) -> DeliveryTracking:
    return run_atomic(
        lambda session: advance(
            session, tracking_id=tracking_id, new_status=new_status,
            latitude=latitude, longitude=longitude,
            estimated_arrival=estimated_arrival, notes=notes,
        ),
        label="advance_delivery",
    )
