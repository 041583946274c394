import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select, text

from app.config import settings
from app.database import get_session
from app.models.order import Order, OrderStatus
from app.utils.clock import utcnow

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/check")
def health_check(session: Session = Depends(get_session)):
    body = {
        "status": "ok",
        "environment": settings.env,
        "database": "ok",
        "dialect": session.get_bind().dialect.name,
        "timestamp": utcnow().isoformat(),
    }

    try:
        session.exec(text("SELECT 1"))
        # oldest pending order tells whether the expiry job keeps up
        oldest = session.exec(
            select(Order.created_at)
            .where(Order.status == OrderStatus.pending)
            .order_by(Order.created_at)
            .limit(1)
        ).first()
    except SQLAlchemyError as exc:
        logger.error(f"Health check database ping failed: {exc}")
        body["status"] = "degraded"
        body["database"] = "failed"
        return JSONResponse(status_code=503, content=body)

    body["oldest_pending_order_at"] = oldest.isoformat() if oldest else None
    return body
