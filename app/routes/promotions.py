from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter

from app.schemas.promotion_schemas import (
    PromotionQuoteRead,
    PromotionRead,
    PromotionValidateRequest,
)
from app.services.promotion_service import redeem_promotion, validate_promotion

router = APIRouter()


@router.post("/validate", response_model=PromotionQuoteRead)
def validate(data: PromotionValidateRequest):
    quote = validate_promotion(
        data.promo_code,
        data.order_subtotal,
        now=data.now,
        restaurant_id=data.restaurant_id,
        bogo_item_price=data.bogo_item_price,
    )
    return asdict(quote)


@router.post("/{promotion_id}/redeem", response_model=PromotionRead)
def redeem(promotion_id: UUID):
    return redeem_promotion(promotion_id)
