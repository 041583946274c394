from enum import Enum
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy import func
from sqlmodel import Session, select

from app.models.order_event import OrderEvent


def _next_sequence(session: Session, order_id: UUID) -> int:
    last = session.exec(
        select(func.max(OrderEvent.sequence)).where(OrderEvent.order_id == order_id)
    ).one()
    return (last or 0) + 1


def log_order_event(
    session: Session,
    order_id: UUID,
    event_type: Union[str, Enum],
    label: str,
    created_by: str = "system",
    meta: Optional[dict] = None,
) -> OrderEvent:
    """
    Append one entry to the order's timeline, inside the caller's unit.

    ``event_type`` may be an ``OrderEventType`` or ``OrderStatus`` member;
    its value is stored.
    """
    if isinstance(event_type, Enum):
        event_type = event_type.value

    event = OrderEvent(
        order_id=order_id,
        sequence=_next_sequence(session, order_id),
        event_type=event_type,
        label=label,
        meta=meta,
        created_by=created_by,
    )
    session.add(event)
    session.flush()
    return event


def order_timeline(
    session: Session,
    order_id: UUID,
    event_type: Optional[str] = None,
) -> List[OrderEvent]:
    statement = select(OrderEvent).where(OrderEvent.order_id == order_id)
    if event_type:
        statement = statement.where(OrderEvent.event_type == event_type)
    return session.exec(statement.order_by(OrderEvent.sequence)).all()
