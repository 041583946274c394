from decimal import Decimal
from uuid import uuid4

import pytest
from sqlmodel import select

from app.database import new_session
from app.exceptions import (
    InsufficientFundsError,
    InvalidTransitionError,
    NotFoundError,
    PromotionInvalidError,
    ValidationError,
)
from app.models import (
    MenuItem,
    Notification,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    Promotion,
    TransactionType,
    WalletTransaction,
)
from app.services.order_event_service import order_timeline
from app.services.order_service import (
    OrderLine,
    cancel_order,
    get_order,
    transition_order,
)
from app.services.wallet_service import credit_wallet, get_balance

FORWARD = [
    OrderStatus.confirmed,
    OrderStatus.preparing,
    OrderStatus.ready,
    OrderStatus.out_for_delivery,
    OrderStatus.delivered,
]


def advance_to(order_id, status):
    for step in FORWARD[: FORWARD.index(status) + 1]:
        order = transition_order(order_id, step)
    return order


def order_count():
    with new_session() as session:
        return len(session.exec(select(Order)).all())


def test_place_with_percentage_promotion(place, make_promotion):
    promotion = make_promotion()

    order = place(promo_code="SAVE10")

    assert order.status == OrderStatus.pending
    assert order.total_amount == Decimal("20000.00")
    assert order.delivery_fee == Decimal("3000.00")
    assert order.discount_amount == Decimal("2000.00")
    assert order.final_amount == Decimal("21000.00")
    assert order.promotion_id == promotion.id
    assert order.estimated_delivery_time is not None

    with new_session() as session:
        assert session.get(Promotion, promotion.id).used_count == 1


def test_amounts_add_up_and_prices_are_snapshotted(place, make_menu_item, restaurant):
    fries = make_menu_item(restaurant, price="2750.50", name="Fries")
    order = place(
        items=[OrderLine(menu_item_id=fries.id, quantity=3, special_instructions="extra salt")],
    )

    assert order.final_amount == order.total_amount + order.delivery_fee - order.discount_amount
    assert order.total_amount == Decimal("8251.50")

    with new_session() as session:
        item = session.get(MenuItem, fries.id)
        item.price = Decimal("9999.00")
        session.add(item)
        session.commit()

    stored = get_order(order.id)
    assert len(stored.items) == 1
    assert stored.items[0].unit_price == Decimal("2750.50")
    assert stored.items[0].total_price == Decimal("8251.50")


@pytest.mark.parametrize("quantity", [0, -1])
def test_non_positive_quantity_is_rejected(place, quantity):
    with pytest.raises(ValidationError):
        place(quantity=quantity)
    assert order_count() == 0


def test_empty_order_is_rejected(place):
    with pytest.raises(ValidationError):
        place(items=[])


def test_unavailable_item_is_rejected(place, make_menu_item, restaurant):
    sold_out = make_menu_item(restaurant, is_available=False)
    with pytest.raises(ValidationError):
        place(items=[OrderLine(menu_item_id=sold_out.id, quantity=1)])
    with pytest.raises(NotFoundError):
        place(items=[OrderLine(menu_item_id=uuid4(), quantity=1)])


def test_item_from_another_restaurant_is_rejected(place, make_restaurant, make_menu_item):
    elsewhere = make_menu_item(make_restaurant(name="Elsewhere"))
    with pytest.raises(ValidationError):
        place(items=[OrderLine(menu_item_id=elsewhere.id, quantity=1)])


def test_stale_client_price_is_rejected(place, menu_item):
    with pytest.raises(ValidationError):
        place(items=[OrderLine(menu_item_id=menu_item.id, quantity=1, expected_unit_price=Decimal("9000.00"))])

    order = place(items=[OrderLine(menu_item_id=menu_item.id, quantity=1, expected_unit_price=Decimal("10000.00"))])
    assert order.total_amount == Decimal("10000.00")


def test_restaurant_minimum_and_opening(place, customer, make_restaurant, make_menu_item):
    strict = make_restaurant(minimum_order=Decimal("15000.00"))
    item = make_menu_item(strict)
    with pytest.raises(ValidationError):
        place(restaurant_id=strict.id, items=[OrderLine(menu_item_id=item.id, quantity=1)])

    closed = make_restaurant(is_open=False)
    item = make_menu_item(closed)
    with pytest.raises(ValidationError):
        place(restaurant_id=closed.id, items=[OrderLine(menu_item_id=item.id, quantity=1)])


def test_invalid_promotion_rolls_back_placement(place, make_promotion):
    promotion = make_promotion()

    with pytest.raises(PromotionInvalidError) as excinfo:
        place(quantity=1, promo_code="SAVE10")

    assert excinfo.value.predicate == "below_minimum_order"
    assert order_count() == 0
    with new_session() as session:
        assert session.get(Promotion, promotion.id).used_count == 0


def test_forward_path_and_delivered_stamp(place):
    order = place()
    delivered = advance_to(order.id, OrderStatus.delivered)

    assert delivered.status == OrderStatus.delivered
    assert delivered.delivered_at is not None

    with pytest.raises(InvalidTransitionError):
        transition_order(order.id, OrderStatus.preparing)


@pytest.mark.parametrize(
    "reached, target",
    [
        (OrderStatus.confirmed, OrderStatus.pending),
        (OrderStatus.ready, OrderStatus.preparing),
        (OrderStatus.confirmed, OrderStatus.ready),
        (OrderStatus.confirmed, OrderStatus.confirmed),
        (OrderStatus.preparing, OrderStatus.cancelled),
    ],
)
def test_illegal_transitions(place, reached, target):
    order = place()
    advance_to(order.id, reached)

    with pytest.raises(InvalidTransitionError):
        transition_order(order.id, target)
    assert get_order(order.id).status == reached


def test_unknown_status_is_a_validation_error(place):
    order = place()
    with pytest.raises(ValidationError):
        transition_order(order.id, "teleported")


def test_wallet_order_is_debited_on_confirm(place, customer):
    credit_wallet(customer.id, Decimal("50000.00"))
    order = place(payment_method=PaymentMethod.wallet)

    assert get_balance(customer.id) == Decimal("50000.00")

    transition_order(order.id, OrderStatus.confirmed)
    assert get_balance(customer.id) == Decimal("27000.00")

    with new_session() as session:
        debit = session.exec(
            select(WalletTransaction).where(WalletTransaction.order_id == order.id)
        ).one()
    assert debit.transaction_type == TransactionType.debit
    assert debit.amount == Decimal("23000.00")


def test_wallet_confirm_without_funds_keeps_order_pending(place, customer):
    credit_wallet(customer.id, Decimal("100.00"))
    order = place(payment_method=PaymentMethod.wallet)

    with pytest.raises(InsufficientFundsError):
        transition_order(order.id, OrderStatus.confirmed)

    assert get_order(order.id).status == OrderStatus.pending
    assert get_balance(customer.id) == Decimal("100.00")


def test_cancel_after_wallet_debit_refunds(place, customer, make_promotion):
    make_promotion()
    credit_wallet(customer.id, Decimal("30000.00"))
    order = place(payment_method=PaymentMethod.wallet, promo_code="SAVE10")

    transition_order(order.id, OrderStatus.confirmed)
    assert get_balance(customer.id) == Decimal("9000.00")

    cancelled = cancel_order(order.id, "changed my mind")

    assert cancelled.status == OrderStatus.cancelled
    assert cancelled.cancellation_reason == "changed my mind"
    assert cancelled.cancelled_at is not None
    assert get_balance(customer.id) == Decimal("30000.00")

    with new_session() as session:
        refund = session.exec(
            select(WalletTransaction)
            .where(WalletTransaction.order_id == order.id)
            .where(WalletTransaction.transaction_type == TransactionType.refund)
        ).one()
    assert refund.amount == Decimal("21000.00")


def test_cancel_pending_wallet_order_needs_no_refund(place, customer):
    order = place(payment_method=PaymentMethod.wallet)
    cancel_order(order.id)

    with new_session() as session:
        assert session.exec(
            select(WalletTransaction).where(WalletTransaction.user_id == customer.id)
        ).all() == []


def test_cancel_is_refused_once_ready(place):
    order = place()
    advance_to(order.id, OrderStatus.ready)

    with pytest.raises(InvalidTransitionError):
        cancel_order(order.id)
    assert get_order(order.id).status == OrderStatus.ready


def test_cancelled_is_terminal(place):
    order = place()
    cancel_order(order.id)

    with pytest.raises(InvalidTransitionError):
        cancel_order(order.id)
    with pytest.raises(InvalidTransitionError):
        transition_order(order.id, OrderStatus.confirmed)


def test_timeline_and_notifications_are_written(place, customer, restaurant):
    order = place()
    transition_order(order.id, OrderStatus.confirmed)
    cancel_order(order.id, "out of stock")

    with new_session() as session:
        events = order_timeline(session, order.id)
        notifications = session.exec(
            select(Notification).where(Notification.order_id == order.id)
        ).all()

    assert [e.event_type for e in events] == ["order_placed", "confirmed", "cancelled"]
    assert [e.sequence for e in events] == [1, 2, 3]
    assert events[2].meta == {"from": "confirmed", "reason": "out of stock"}
    recipients = {n.user_id for n in notifications}
    assert customer.id in recipients
    assert restaurant.owner_id in recipients


def test_deleting_an_order_removes_its_items(place):
    order = place()
    with new_session() as session:
        stored = session.get(Order, order.id)
        session.delete(stored)
        session.commit()

        assert session.exec(select(OrderItem).where(OrderItem.order_id == order.id)).all() == []
