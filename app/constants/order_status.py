from app.models.order import OrderStatus
from app.models.delivery_tracking import DeliveryStatus


# forward path only; cancellation goes through cancel_order
ALLOWED_TRANSITIONS = {
    OrderStatus.pending: [OrderStatus.confirmed],
    OrderStatus.confirmed: [OrderStatus.preparing],
    OrderStatus.preparing: [OrderStatus.ready],
    OrderStatus.ready: [OrderStatus.out_for_delivery],
    OrderStatus.out_for_delivery: [OrderStatus.delivered],
    OrderStatus.delivered: [],
    OrderStatus.cancelled: [],
}

CANCELLABLE_STATUSES = {
    OrderStatus.pending,
    OrderStatus.confirmed,
    OrderStatus.preparing,
}

# statuses in which a delivery worker may be assigned
ASSIGNABLE_STATUSES = {
    OrderStatus.confirmed,
    OrderStatus.preparing,
    OrderStatus.ready,
    OrderStatus.out_for_delivery,
}

DELIVERY_SEQUENCE = [
    DeliveryStatus.assigned,
    DeliveryStatus.picked_up,
    DeliveryStatus.on_the_way,
    DeliveryStatus.delivered,
]
