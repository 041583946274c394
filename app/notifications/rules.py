from app.notifications.events import OrderEventType
from app.notifications.channels import Channel


NOTIFICATION_RULES = {

    OrderEventType.ORDER_PLACED: {
        Channel.INAPP_CUSTOMER: True,
        Channel.INAPP_RESTAURANT: True,
    },

    OrderEventType.ORDER_CONFIRMED: {
        Channel.INAPP_CUSTOMER: True,
    },

    OrderEventType.ORDER_PREPARING: {
        Channel.INAPP_CUSTOMER: True,
    },

    OrderEventType.ORDER_READY: {
        Channel.INAPP_CUSTOMER: True,
        Channel.INAPP_DRIVER: True,
    },

    OrderEventType.OUT_FOR_DELIVERY: {
        Channel.INAPP_CUSTOMER: True,
    },

    OrderEventType.DELIVERED: {
        Channel.INAPP_CUSTOMER: True,
        Channel.INAPP_RESTAURANT: True,
    },

    OrderEventType.CANCELLED: {
        Channel.INAPP_CUSTOMER: True,
        Channel.INAPP_RESTAURANT: True,
        Channel.INAPP_DRIVER: True,
    },

    OrderEventType.REFUND_PROCESSED: {
        Channel.INAPP_CUSTOMER: True,
    },

    OrderEventType.DELIVERY_ASSIGNED: {
        Channel.INAPP_CUSTOMER: True,
        Channel.INAPP_DRIVER: True,
    },

    OrderEventType.DELIVERY_UPDATED: {
        Channel.INAPP_CUSTOMER: True,
    },

    OrderEventType.REVIEW_RECORDED: {
        Channel.INAPP_RESTAURANT: True,
    },

}


# title, message; formatted with the order reference and ``extra``
MESSAGES = {
    OrderEventType.ORDER_PLACED: ("Order placed", "Order {order_ref} has been placed."),
    OrderEventType.ORDER_CONFIRMED: ("Order confirmed", "Order {order_ref} was confirmed by the restaurant."),
    OrderEventType.ORDER_PREPARING: ("Preparing your order", "Order {order_ref} is being prepared."),
    OrderEventType.ORDER_READY: ("Order ready", "Order {order_ref} is ready for pickup."),
    OrderEventType.OUT_FOR_DELIVERY: ("On the way", "Order {order_ref} is out for delivery."),
    OrderEventType.DELIVERED: ("Order delivered", "Order {order_ref} was delivered."),
    OrderEventType.CANCELLED: ("Order cancelled", "Order {order_ref} was cancelled."),
    OrderEventType.REFUND_PROCESSED: ("Refund issued", "{amount} was refunded to your wallet for order {order_ref}."),
    OrderEventType.DELIVERY_ASSIGNED: ("Delivery assigned", "A delivery worker was assigned to order {order_ref}."),
    OrderEventType.DELIVERY_UPDATED: ("Delivery update", "Delivery of order {order_ref} is now {status}."),
    OrderEventType.REVIEW_RECORDED: ("New review", "Order {order_ref} was rated {rating}/5."),
}
