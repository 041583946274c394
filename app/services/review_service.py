import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlmodel import Session, select

from app.exceptions import InvalidTransitionError, ValidationError
from app.models.order import Order, OrderStatus
from app.models.restaurant import Restaurant
from app.models.review import Review
from app.notifications import OrderEventType, dispatch_order_event
from app.services.locks import lock_entity
from app.services.order_event_service import log_order_event
from app.services.transaction import run_atomic
from app.utils.clock import utcnow
from app.utils.money import round_money

logger = logging.getLogger(__name__)


def _rating(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
        raise ValidationError(f"{name} must be a whole number from 1 to 5")
    return value


def running_average(average: Decimal, total_reviews: int, new_rating: int) -> Decimal:
    return round_money((average * total_reviews + new_rating) / (total_reviews + 1))


def record(
    session: Session,
    *,
    order_id: UUID,
    restaurant_rating: int,
    delivery_rating: int,
    food_quality_rating: int,
    customer_id: Optional[UUID] = None,
    restaurant_comment: Optional[str] = None,
    delivery_comment: Optional[str] = None,
    is_public: bool = True,
) -> Review:
    ratings = {
        "restaurant_rating": _rating(restaurant_rating, "restaurant_rating"),
        "delivery_rating": _rating(delivery_rating, "delivery_rating"),
        "food_quality_rating": _rating(food_quality_rating, "food_quality_rating"),
    }

    order = lock_entity(session, Order, order_id)
    if order.status != OrderStatus.delivered:
        raise InvalidTransitionError(
            f"Only delivered orders can be reviewed; order is {order.status.value}",
            current=order.status.value,
        )
    if customer_id is not None and customer_id != order.customer_id:
        raise ValidationError("Only the customer who placed the order can review it")

    existing = session.exec(select(Review).where(Review.order_id == order.id)).first()
    if existing:
        raise ValidationError(f"Order {order.id} has already been reviewed")

    restaurant = lock_entity(session, Restaurant, order.restaurant_id)

    review = Review(
        order_id=order.id,
        customer_id=order.customer_id,
        restaurant_id=restaurant.id,
        delivery_worker_id=order.delivery_worker_id,
        restaurant_comment=restaurant_comment,
        delivery_comment=delivery_comment,
        is_public=is_public,
        **ratings,
    )

    restaurant.average_rating = running_average(
        restaurant.average_rating, restaurant.total_reviews, ratings["restaurant_rating"]
    )
    restaurant.total_reviews += 1
    restaurant.updated_at = utcnow()

    session.add(review)
    session.add(restaurant)
    session.flush()

    log_order_event(
        session, order.id, OrderEventType.REVIEW_RECORDED, "Review recorded",
        meta={"restaurant_rating": ratings["restaurant_rating"]},
    )
    dispatch_order_event(
        event=OrderEventType.REVIEW_RECORDED, order=order, session=session,
        extra={"rating": ratings["restaurant_rating"]},
    )

    logger.info(
        f"Restaurant {restaurant.id} rating now {restaurant.average_rating} "
        f"over {restaurant.total_reviews} reviews"
    )
    return review


def record_review(order_id: UUID, **ratings) -> Review:
    return run_atomic(lambda session: record(session, order_id=order_id, **ratings), label="record_review")
