from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest

from app.database import new_session
from app.exceptions import InvalidTransitionError, ValidationError
from app.models import OrderStatus, Restaurant
from app.services.order_service import transition_order
from app.services.review_service import record_review, running_average

RATINGS = {"restaurant_rating": 5, "delivery_rating": 4, "food_quality_rating": 5}


def deliver(order_id):
    for step in ("confirmed", "preparing", "ready", "out_for_delivery", "delivered"):
        transition_order(order_id, step)


def restaurant_rating(restaurant_id):
    with new_session() as session:
        restaurant = session.get(Restaurant, restaurant_id)
        return restaurant.average_rating, restaurant.total_reviews


def test_review_requires_a_delivered_order(place, restaurant):
    order = place()
    transition_order(order.id, OrderStatus.confirmed)

    with pytest.raises(InvalidTransitionError):
        record_review(order.id, **RATINGS)
    assert restaurant_rating(restaurant.id) == (Decimal("0.00"), 0)


def test_reviews_update_the_running_average(place, restaurant):
    first, second = place(), place()
    deliver(first.id)
    deliver(second.id)

    review = record_review(first.id, **RATINGS, restaurant_comment="great")
    assert review.restaurant_id == restaurant.id
    assert restaurant_rating(restaurant.id) == (Decimal("5.00"), 1)

    record_review(second.id, restaurant_rating=4, delivery_rating=3, food_quality_rating=4)
    assert restaurant_rating(restaurant.id) == (Decimal("4.50"), 2)


def test_one_review_per_order(place, restaurant):
    order = place()
    deliver(order.id)
    record_review(order.id, **RATINGS)

    with pytest.raises(ValidationError):
        record_review(order.id, **RATINGS)
    assert restaurant_rating(restaurant.id) == (Decimal("5.00"), 1)


def test_only_the_customer_may_review(place, make_user):
    order = place()
    deliver(order.id)

    with pytest.raises(ValidationError):
        record_review(order.id, customer_id=make_user().id, **RATINGS)


@pytest.mark.parametrize("bad", [0, 6, 3.5, True])
def test_ratings_must_be_one_to_five(place, bad):
    order = place()
    deliver(order.id)

    with pytest.raises(ValidationError):
        record_review(order.id, restaurant_rating=bad, delivery_rating=3, food_quality_rating=3)


def test_concurrent_reviews_do_not_lose_updates(place, restaurant):
    orders = [place() for _ in range(8)]
    for order in orders:
        deliver(order.id)

    def review(order):
        return record_review(order.id, restaurant_rating=4, delivery_rating=5, food_quality_rating=4)

    with ThreadPoolExecutor(max_workers=8) as pool:
        reviews = list(pool.map(review, orders))

    assert {r.order_id for r in reviews} == {o.id for o in orders}
    assert restaurant_rating(restaurant.id) == (Decimal("4.00"), 8)


def test_running_average():
    assert running_average(Decimal("4.00"), 3, 2) == Decimal("3.50")
    assert running_average(Decimal("0.00"), 0, 3) == Decimal("3.00")
    assert running_average(Decimal("4.67"), 3, 5) == Decimal("4.75")
