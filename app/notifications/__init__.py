from .events import OrderEventType, STATUS_EVENTS
from .dispatcher import dispatch_order_event

__all__ = [
    "OrderEventType",
    "STATUS_EVENTS",
    "dispatch_order_event",
]
