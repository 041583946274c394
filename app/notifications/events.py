from enum import Enum

from app.models.order import OrderStatus


class OrderEventType(str, Enum):
    ORDER_PLACED = "order_placed"
    ORDER_CONFIRMED = "order_confirmed"
    ORDER_PREPARING = "order_preparing"
    ORDER_READY = "order_ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUND_PROCESSED = "refund_processed"

    DELIVERY_ASSIGNED = "delivery_assigned"
    DELIVERY_UPDATED = "delivery_updated"

    REVIEW_RECORDED = "review_recorded"


STATUS_EVENTS = {
    OrderStatus.confirmed: OrderEventType.ORDER_CONFIRMED,
    OrderStatus.preparing: OrderEventType.ORDER_PREPARING,
    OrderStatus.ready: OrderEventType.ORDER_READY,
    OrderStatus.out_for_delivery: OrderEventType.OUT_FOR_DELIVERY,
    OrderStatus.delivered: OrderEventType.DELIVERED,
    OrderStatus.cancelled: OrderEventType.CANCELLED,
}
