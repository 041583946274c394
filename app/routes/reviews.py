from fastapi import APIRouter, status

from app.schemas.review_schemas import ReviewCreate, ReviewRead
from app.services.review_service import record_review

router = APIRouter()


@router.post("", response_model=ReviewRead, status_code=status.HTTP_201_CREATED)
def create_review(data: ReviewCreate):
    payload = data.model_dump()
    return record_review(payload.pop("order_id"), **payload)
