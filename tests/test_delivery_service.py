from decimal import Decimal
from uuid import uuid4

import pytest

from app.database import new_session
from app.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from app.models import DeliveryStatus, DeliveryTracking, OrderStatus, UserRole
from app.services.delivery_service import advance_delivery, assign_delivery
from app.services.order_service import cancel_order, get_order, transition_order


def confirm(order_id, *steps):
    order = transition_order(order_id, OrderStatus.confirmed)
    for step in steps:
        order = transition_order(order_id, step)
    return order


def test_assign_requires_a_confirmed_order(place, worker):
    order = place()
    with pytest.raises(InvalidTransitionError):
        assign_delivery(order.id, worker.id)

    confirm(order.id)
    tracking = assign_delivery(order.id, worker.id, notes="ring twice")

    assert tracking.status == DeliveryStatus.assigned
    assert tracking.is_active
    assert get_order(order.id).delivery_worker_id == worker.id


def test_assign_needs_a_delivery_worker(place, customer):
    order = place()
    confirm(order.id)

    with pytest.raises(ValidationError):
        assign_delivery(order.id, customer.id)
    with pytest.raises(NotFoundError):
        assign_delivery(order.id, uuid4())


def test_only_one_active_delivery_per_order(place, worker, make_user):
    order = place()
    confirm(order.id)
    assign_delivery(order.id, worker.id)

    with pytest.raises(InvalidTransitionError):
        assign_delivery(order.id, make_user(role=UserRole.delivery_worker).id)


def test_full_delivery_delivers_the_order(place, worker):
    order = place()
    confirm(order.id, OrderStatus.preparing)
    tracking = assign_delivery(order.id, worker.id)
    transition_order(order.id, OrderStatus.ready)

    picked_up = advance_delivery(tracking.id, DeliveryStatus.picked_up)
    assert picked_up.status == DeliveryStatus.picked_up
    assert get_order(order.id).status == OrderStatus.out_for_delivery

    moving = advance_delivery(
        tracking.id, DeliveryStatus.on_the_way,
        latitude=Decimal("33.51380000"), longitude=Decimal("36.27650000"),
    )
    assert moving.current_location_lat == Decimal("33.51380000")

    # location ping without a status change
    advance_delivery(tracking.id, DeliveryStatus.on_the_way, latitude="33.52", longitude="36.28")

    delivered = advance_delivery(tracking.id, DeliveryStatus.delivered)
    assert delivered.status == DeliveryStatus.delivered

    stored = get_order(order.id)
    assert stored.status == OrderStatus.delivered
    assert stored.delivered_at is not None


def test_delivery_status_never_regresses(place, worker):
    order = place()
    confirm(order.id, OrderStatus.preparing, OrderStatus.ready)
    tracking = assign_delivery(order.id, worker.id)
    advance_delivery(tracking.id, DeliveryStatus.on_the_way)

    with pytest.raises(InvalidTransitionError):
        advance_delivery(tracking.id, DeliveryStatus.picked_up)
    with pytest.raises(InvalidTransitionError):
        advance_delivery(tracking.id, DeliveryStatus.assigned)


def test_pickup_waits_for_the_kitchen(place, worker):
    order = place()
    confirm(order.id, OrderStatus.preparing)
    tracking = assign_delivery(order.id, worker.id)

    with pytest.raises(InvalidTransitionError):
        advance_delivery(tracking.id, DeliveryStatus.picked_up)
    assert get_order(order.id).status == OrderStatus.preparing


def test_tracked_order_is_delivered_only_through_tracking(place, worker):
    order = place()
    confirm(order.id, OrderStatus.preparing, OrderStatus.ready)
    tracking = assign_delivery(order.id, worker.id)
    advance_delivery(tracking.id, DeliveryStatus.picked_up)

    with pytest.raises(InvalidTransitionError):
        transition_order(order.id, OrderStatus.delivered)
    assert get_order(order.id).status == OrderStatus.out_for_delivery


def test_cancel_deactivates_tracking(place, worker):
    order = place()
    confirm(order.id)
    tracking = assign_delivery(order.id, worker.id)

    cancel_order(order.id, "restaurant closed")

    with new_session() as session:
        assert not session.get(DeliveryTracking, tracking.id).is_active
    with pytest.raises(InvalidTransitionError):
        advance_delivery(tracking.id, DeliveryStatus.picked_up)


@pytest.mark.parametrize("latitude, longitude", [("91", "0"), ("0", "-180.5"), ("north", "0")])
def test_bad_coordinates(place, worker, latitude, longitude):
    order = place()
    confirm(order.id)
    tracking = assign_delivery(order.id, worker.id)

    with pytest.raises(ValidationError):
        advance_delivery(tracking.id, DeliveryStatus.assigned, latitude=latitude, longitude=longitude)
