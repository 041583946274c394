"""
Promotion validation and redemption.

``redeem`` is the contention point when many customers race the last slots of
a promotion: the limit is re-checked by the increment statement itself, so
``used_count`` can never pass ``usage_limit``.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import or_, update
from sqlmodel import Session, select

from app.database import new_session
from app.exceptions import PromotionExhaustedError, PromotionInvalidError
from app.models.promotion import DiscountType, Promotion
from app.services.locks import lock_entity
from app.services.transaction import run_atomic
from app.utils.clock import utcnow
from app.utils.money import ZERO, round_money, to_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromotionQuote:
    promotion_id: UUID
    promo_code: Optional[str]
    discount_type: DiscountType
    discount: Decimal


def find_by_code(session: Session, promo_code: str) -> Promotion:
    promotion = session.exec(
        select(Promotion).where(Promotion.promo_code == promo_code)
    ).first()
    if not promotion:
        raise PromotionInvalidError("not_found", f"Promo code '{promo_code}' does not exist")
    return promotion


def compute_discount(
    promotion: Promotion,
    subtotal: Decimal,
    bogo_item_price: Optional[Decimal] = None,
) -> Decimal:
    value = to_money(promotion.discount_value, field="discount_value")

    if promotion.discount_type == DiscountType.percentage:
        discount = round_money(subtotal * value / Decimal(100))
    elif promotion.discount_type == DiscountType.fixed:
        discount = value
    else:
        if bogo_item_price is None:
            raise PromotionInvalidError(
                "no_qualifying_item",
                "Buy-one-get-one needs at least two units of the same item",
            )
        discount = to_money(bogo_item_price, field="bogo_item_price")

    if promotion.maximum_discount is not None:
        discount = min(discount, to_money(promotion.maximum_discount, field="maximum_discount"))

    # never discount below zero
    return max(min(discount, subtotal), ZERO)


def check(
    promotion: Promotion,
    subtotal: Decimal,
    now: datetime,
    *,
    restaurant_id: Optional[UUID] = None,
    bogo_item_price: Optional[Decimal] = None,
) -> Decimal:
    """Run every predicate against ``promotion`` and return the discount."""
    code = promotion.promo_code or str(promotion.id)

    if not promotion.is_active:
        raise PromotionInvalidError("inactive", f"Promotion {code} is not active")
    if promotion.start_date is not None and now < promotion.start_date:
        raise PromotionInvalidError("not_started", f"Promotion {code} starts at {promotion.start_date}")
    if promotion.end_date is not None and now > promotion.end_date:
        raise PromotionInvalidError("expired", f"Promotion {code} ended at {promotion.end_date}")
    if (
        promotion.restaurant_id is not None
        and restaurant_id is not None
        and promotion.restaurant_id != restaurant_id
    ):
        raise PromotionInvalidError("wrong_restaurant", f"Promotion {code} is not valid at this restaurant")
    if promotion.minimum_order is not None and subtotal < promotion.minimum_order:
        raise PromotionInvalidError(
            "below_minimum_order",
            f"Promotion {code} needs an order of at least {promotion.minimum_order}",
        )
    if promotion.usage_limit is not None and promotion.used_count >= promotion.usage_limit:
        raise PromotionInvalidError("usage_limit_reached", f"Promotion {code} has been fully used")

    return compute_discount(promotion, subtotal, bogo_item_price)


def validate(
    session: Session,
    *,
    promo_code: str,
    order_subtotal,
    now: Optional[datetime] = None,
    restaurant_id: Optional[UUID] = None,
    bogo_item_price=None,
) -> PromotionQuote:
    subtotal = to_money(order_subtotal, field="order_subtotal")
    promotion = find_by_code(session, promo_code)
    discount = check(
        promotion, subtotal, now or utcnow(),
        restaurant_id=restaurant_id, bogo_item_price=bogo_item_price,
    )
    return PromotionQuote(
        promotion_id=promotion.id,
        promo_code=promotion.promo_code,
        discount_type=promotion.discount_type,
        discount=discount,
    )


def redeem(session: Session, promotion_id: UUID) -> Promotion:
    promotion = lock_entity(session, Promotion, promotion_id)

    result = session.execute(
        update(Promotion)
        .where(Promotion.id == promotion_id)
        .where(or_(Promotion.usage_limit.is_(None), Promotion.used_count < Promotion.usage_limit))
        .values(used_count=Promotion.used_count + 1, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.info(f"Promotion {promotion_id} exhausted at {promotion.used_count}/{promotion.usage_limit}")
        raise PromotionExhaustedError(
            f"Promotion {promotion.promo_code or promotion_id} has no redemptions left"
        )

    session.refresh(promotion)
    return promotion


def apply(
    session: Session,
    *,
    promo_code: str,
    order_subtotal,
    restaurant_id: UUID,
    now: Optional[datetime] = None,
    bogo_item_price=None,
) -> PromotionQuote:
    """Validate against the locked row and consume one slot in the same unit."""
    subtotal = to_money(order_subtotal, field="order_subtotal")
    promotion = lock_entity(session, Promotion, find_by_code(session, promo_code).id)
    discount = check(
        promotion, subtotal, now or utcnow(),
        restaurant_id=restaurant_id, bogo_item_price=bogo_item_price,
    )
    redeem(session, promotion.id)
    return PromotionQuote(
        promotion_id=promotion.id,
        promo_code=promotion.promo_code,
        discount_type=promotion.discount_type,
        discount=discount,
    )


def validate_promotion(promo_code: str, order_subtotal, now: Optional[datetime] = None,
                       restaurant_id: Optional[UUID] = None, bogo_item_price=None) -> PromotionQuote:
    with new_session() as session:
        return validate(
            session, promo_code=promo_code, order_subtotal=order_subtotal, now=now,
            restaurant_id=restaurant_id, bogo_item_price=bogo_item_price,
        )


def redeem_promotion(promotion_id: UUID) -> Promotion:
    return run_atomic(lambda session: redeem(session, promotion_id), label="redeem_promotion")
