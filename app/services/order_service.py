"""
Order lifecycle.

    pending -> confirmed -> preparing -> ready -> out_for_delivery -> delivered
    cancelled is reachable from pending, confirmed and preparing only.

Wallet orders are debited when they are confirmed, in the same unit as the
status change, and refunded in the same unit as their cancellation.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Sequence
from uuid import UUID

from sqlmodel import Session, select

from app.constants.order_status import ALLOWED_TRANSITIONS, CANCELLABLE_STATUSES
from app.database import new_session
from app.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from app.models.delivery_tracking import DeliveryStatus, DeliveryTracking
from app.models.menu_item import MenuItem
from app.models.order import Order, OrderStatus, PaymentMethod
from app.models.order_item import OrderItem
from app.models.restaurant import Restaurant
from app.models.user import User
from app.notifications import STATUS_EVENTS, OrderEventType, dispatch_order_event
from app.services import promotion_service, wallet_service
from app.services.locks import lock_entity
from app.services.order_event_service import log_order_event
from app.services.transaction import run_atomic
from app.utils.clock import utcnow
from app.utils.money import ZERO, to_money

logger = logging.getLogger(__name__)


@dataclass
class OrderLine:
    menu_item_id: UUID
    quantity: int
    expected_unit_price: Optional[Decimal] = None
    special_instructions: Optional[str] = None


def coerce_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown order status: {value!r}")


def active_tracking(session: Session, order_id: UUID) -> Optional[DeliveryTracking]:
    return session.exec(
        select(DeliveryTracking)
        .where(DeliveryTracking.order_id == order_id)
        .where(DeliveryTracking.is_active == True)  # noqa: E712
    ).first()


def _price_lines(session: Session, restaurant: Restaurant, lines: Sequence[OrderLine]) -> List[OrderItem]:
    if not lines:
        raise ValidationError("An order needs at least one item")

    items = []
    for line in lines:
        if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity <= 0:
            raise ValidationError(f"Quantity must be a positive integer, got {line.quantity!r}")

        menu_item = session.get(MenuItem, line.menu_item_id)
        if not menu_item:
            raise NotFoundError("MenuItem", line.menu_item_id)
        if menu_item.restaurant_id != restaurant.id:
            raise ValidationError(f"{menu_item.name} is not on this restaurant's menu")
        if not menu_item.is_available:
            raise ValidationError(f"{menu_item.name} is currently unavailable")

        unit_price = to_money(menu_item.price, field="price")
        if line.expected_unit_price is not None:
            expected = to_money(line.expected_unit_price, field="expected_unit_price")
            if expected != unit_price:
                raise ValidationError(
                    f"Price of {menu_item.name} changed from {expected} to {unit_price}"
                )

        items.append(
            OrderItem(
                menu_item_id=menu_item.id,
                quantity=line.quantity,
                unit_price=unit_price,
                total_price=unit_price * line.quantity,
                special_instructions=line.special_instructions,
            )
        )
    return items


def _bogo_item_price(items: List[OrderItem]) -> Optional[Decimal]:
    # cheapest item ordered at least twice
    qualifying = [item.unit_price for item in items if item.quantity >= 2]
    return min(qualifying) if qualifying else None


def place(
    session: Session,
    *,
    customer_id: UUID,
    restaurant_id: UUID,
    items: Sequence[OrderLine],
    delivery_address: str,
    customer_phone: str,
    customer_name: str,
    payment_method: PaymentMethod = PaymentMethod.cash,
    promo_code: Optional[str] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Order:
    now = now or utcnow()

    customer = session.get(User, customer_id)
    if not customer:
        raise NotFoundError("User", customer_id)
    if not customer.is_active:
        raise ValidationError("Customer account is inactive")

    restaurant = session.get(Restaurant, restaurant_id)
    if not restaurant:
        raise NotFoundError("Restaurant", restaurant_id)
    if not restaurant.is_active or not restaurant.is_open:
        raise ValidationError(f"{restaurant.name} is not accepting orders")

    try:
        payment_method = PaymentMethod(payment_method)
    except ValueError:
        raise ValidationError(f"Unknown payment method: {payment_method!r}")

    order_items = _price_lines(session, restaurant, items)
    total_amount = sum((item.total_price for item in order_items), ZERO)

    if total_amount < restaurant.minimum_order:
        raise ValidationError(
            f"Order total {total_amount} is below the {restaurant.minimum_order} minimum"
        )

    delivery_fee = to_money(restaurant.delivery_fee, field="delivery_fee")
    discount_amount = ZERO
    promotion_id = None
    if promo_code:
        quote = promotion_service.apply(
            session,
            promo_code=promo_code,
            order_subtotal=total_amount,
            restaurant_id=restaurant.id,
            now=now,
            bogo_item_price=_bogo_item_price(order_items),
        )
        discount_amount = quote.discount
        promotion_id = quote.promotion_id

    order = Order(
        customer_id=customer.id,
        restaurant_id=restaurant.id,
        promotion_id=promotion_id,
        payment_method=payment_method,
        total_amount=total_amount,
        delivery_fee=delivery_fee,
        discount_amount=discount_amount,
        final_amount=total_amount + delivery_fee - discount_amount,
        delivery_address=delivery_address,
        customer_phone=customer_phone,
        customer_name=customer_name,
        notes=notes,
        estimated_delivery_time=now + timedelta(minutes=restaurant.estimated_delivery_time),
        created_at=now,
        updated_at=now,
    )
    order.items = order_items

    session.add(order)
    session.flush()

    log_order_event(
        session, order.id, OrderEventType.ORDER_PLACED, "Order placed",
        meta={"final_amount": str(order.final_amount), "promo_code": promo_code},
    )
    dispatch_order_event(event=OrderEventType.ORDER_PLACED, order=order, session=session)

    logger.info(f"Order {order.id} placed: final amount {order.final_amount}")
    return order


def apply_transition(
    session: Session,
    order: Order,
    target: OrderStatus,
    *,
    via_tracking: bool = False,
    actor: str = "system",
) -> Order:
    """Move a locked ``order`` one step forward along the lifecycle."""
    current = order.status
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Cannot move order from {current.value} to {target.value}",
            current=current.value,
            target=target.value,
        )

    if target == OrderStatus.delivered and not via_tracking:
        tracking = active_tracking(session, order.id)
        if tracking and tracking.status != DeliveryStatus.delivered:
            raise InvalidTransitionError(
                "Order has an active delivery; it is delivered through delivery tracking",
                current=current.value,
                target=target.value,
            )

    if (
        target == OrderStatus.confirmed
        and order.payment_method == PaymentMethod.wallet
        and order.final_amount > ZERO
    ):
        wallet_service.debit(
            session,
            user_id=order.customer_id,
            amount=order.final_amount,
            order_id=order.id,
            description=f"Payment for order {order.id}",
        )

    now = utcnow()
    order.status = target
    order.updated_at = now
    if target == OrderStatus.delivered:
        order.delivered_at = now

    session.add(order)
    session.flush()

    log_order_event(
        session, order.id, target, f"Order {target.value.replace('_', ' ')}",
        created_by=actor, meta={"from": current.value},
    )
    dispatch_order_event(event=STATUS_EVENTS[target], order=order, session=session)

    logger.info(f"Order {order.id}: {current.value} -> {target.value}")
    return order


def transition(session: Session, order_id: UUID, target_status, actor: str = "system") -> Order:
    target = coerce_status(target_status)
    order = lock_entity(session, Order, order_id)
    return apply_transition(session, order, target, actor=actor)


def cancel(session: Session, order_id: UUID, reason: Optional[str] = None, actor: str = "system") -> Order:
    order = lock_entity(session, Order, order_id)

    if order.status not in CANCELLABLE_STATUSES:
        raise InvalidTransitionError(
            f"Cannot cancel an order that is {order.status.value}",
            current=order.status.value,
            target=OrderStatus.cancelled.value,
        )

    tracking = active_tracking(session, order.id)
    if tracking:
        tracking = lock_entity(session, DeliveryTracking, tracking.id)
        tracking.is_active = False
        tracking.updated_at = utcnow()
        session.add(tracking)

    previous = order.status
    now = utcnow()
    order.status = OrderStatus.cancelled
    order.cancellation_reason = reason
    order.cancelled_at = now
    order.updated_at = now
    session.add(order)
    session.flush()

    # refunds are only accepted once the order is cancelled
    refund_entry = None
    if order.payment_method == PaymentMethod.wallet:
        outstanding = wallet_service.refundable_amount(session, order.customer_id, order.id)
        if outstanding > ZERO:
            refund_entry = wallet_service.refund(
                session,
                user_id=order.customer_id,
                amount=outstanding,
                order_id=order.id,
                description=f"Refund for cancelled order {order.id}",
            )

    log_order_event(
        session, order.id, OrderStatus.cancelled, "Order cancelled",
        created_by=actor, meta={"from": previous.value, "reason": reason},
    )
    dispatch_order_event(event=OrderEventType.CANCELLED, order=order, session=session)
    if refund_entry:
        log_order_event(
            session, order.id, OrderEventType.REFUND_PROCESSED, "Wallet refund issued",
            meta={"amount": str(refund_entry.amount), "transaction_id": str(refund_entry.id)},
        )
        dispatch_order_event(
            event=OrderEventType.REFUND_PROCESSED, order=order, session=session,
            extra={"amount": refund_entry.amount},
        )

    logger.info(f"Order {order.id} cancelled from {previous.value}")
    return order


# ---------------------------------------------------------
# Standalone entry points
# ---------------------------------------------------------

def place_order(**kwargs) -> Order:
    return run_atomic(lambda session: place(session, **kwargs), label="place_order")


def transition_order(order_id: UUID, target_status, actor: str = "system") -> Order:
    return run_atomic(
        lambda session: transition(session, order_id, target_status, actor=actor),
        label="transition_order",
    )


def cancel_order(order_id: UUID, reason: Optional[str] = None, actor: str = "system") -> Order:
    return run_atomic(
        lambda session: cancel(session, order_id, reason, actor=actor),
        label="cancel_order",
    )


def get_order(order_id: UUID) -> Order:
    with new_session() as session:
        order = session.get(Order, order_id)
        if not order:
            raise NotFoundError("Order", order_id)
        return order
