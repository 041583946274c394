import logging

from app.models.notifications import NotificationType, RecipientRole
from app.models.restaurant import Restaurant
from app.notifications.channels import Channel
from app.notifications.events import OrderEventType
from app.notifications.rules import MESSAGES, NOTIFICATION_RULES
from app.services.notification_service import create_notification

logger = logging.getLogger(__name__)

EVENT_TYPES = {
    OrderEventType.REFUND_PROCESSED: NotificationType.wallet,
    OrderEventType.DELIVERY_ASSIGNED: NotificationType.delivery,
    OrderEventType.DELIVERY_UPDATED: NotificationType.delivery,
}


def _recipient(channel: Channel, order, session):
    if channel == Channel.INAPP_CUSTOMER:
        return order.customer_id, RecipientRole.customer
    if channel == Channel.INAPP_DRIVER:
        return order.delivery_worker_id, RecipientRole.delivery_worker
    restaurant = session.get(Restaurant, order.restaurant_id)
    return (restaurant.owner_id if restaurant else None), RecipientRole.restaurant_owner


def dispatch_order_event(
    *,
    event: OrderEventType,
    order,
    session,
    extra: dict | None = None,
):
    """
    Central notification dispatcher.

    Writes one in-app notification per enabled channel, inside the caller's
    unit of work. Channels without a recipient (no owner, no driver yet) are
    skipped.
    """

    rules = NOTIFICATION_RULES.get(event, {})
    extra = extra or {}
    title, template = MESSAGES[event]
    message = template.format(order_ref=str(order.id)[:8], **extra)

    created = []
    for channel, enabled in rules.items():
        if not enabled:
            continue
        user_id, role = _recipient(channel, order, session)
        if user_id is None:
            continue
        created.append(
            create_notification(
                session=session,
                user_id=user_id,
                recipient_role=role,
                order_id=order.id,
                trigger_source=event.value,
                title=title,
                message=message,
                type=EVENT_TYPES.get(event, NotificationType.order),
            )
        )

    logger.debug(f"{event.value} for order {order.id}: {len(created)} notifications")
    return created
