import logging
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlmodel import select

from app.config import settings
from app.database import new_session
from app.exceptions import ConcurrencyConflict, InvalidTransitionError
from app.models.order import Order, OrderStatus
from app.services.order_service import cancel_order
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)


def cancel_stale_pending_orders(now: Optional[datetime] = None) -> List[UUID]:
    """Cancel orders that stayed pending longer than ``order_timeout_minutes``."""
    cutoff = (now or utcnow()) - timedelta(minutes=settings.order_timeout_minutes)

    with new_session() as session:
        stale_ids = session.exec(
            select(Order.id)
            .where(Order.status == OrderStatus.pending)
            .where(Order.created_at < cutoff)
        ).all()

    cancelled = []
    for order_id in stale_ids:
        try:
            cancel_order(order_id, reason="timeout", actor="order_expiry")
        except InvalidTransitionError:
            # confirmed between the scan and the cancel
            logger.info(f"Order {order_id} moved on before it could expire")
            continue
        except ConcurrencyConflict as exc:
            # left pending; the next run picks it up again
            logger.warning(f"Could not expire order {order_id}: {exc.message}")
            continue
        cancelled.append(order_id)

    logger.info(f"Expired {len(cancelled)} pending orders")
    return cancelled
