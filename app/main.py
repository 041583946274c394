import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder

from app.config import settings
from app.database import create_db_and_tables
from app.exceptions import (
    BalanceCapExceededError,
    ConcurrencyConflict,
    CoreError,
    InsufficientFundsError,
    InvalidTransitionError,
    NotFoundError,
    PromotionExhaustedError,
    PromotionInvalidError,
    ValidationError,
)
from app.routes import (
    delivery,
    health,
    notifications,
    orders,
    promotions,
    regions,
    reviews,
    wallet,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# most specific first
ERROR_STATUS = [
    (NotFoundError, 404),
    (ValidationError, 400),
    (InvalidTransitionError, 409),
    (InsufficientFundsError, 402),
    (BalanceCapExceededError, 409),
    (PromotionInvalidError, 400),
    (PromotionExhaustedError, 409),
    (ConcurrencyConflict, 503),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.env == "local":
        create_db_and_tables()
    yield

app = FastAPI(title="Food Time Order Core", lifespan=lifespan)


@app.exception_handler(CoreError)
async def core_error_handler(request: Request, exc: CoreError):
    status_code = next(
        (code for error_type, code in ERROR_STATUS if isinstance(exc, error_type)),
        400,
    )
    if status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=status_code, content=jsonable_encoder(exc.to_dict()))


app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(wallet.router, prefix="/wallet", tags=["Wallet"])
app.include_router(promotions.router, prefix="/promotions", tags=["Promotions"])
app.include_router(delivery.router, prefix="/deliveries", tags=["Delivery"])
app.include_router(reviews.router, prefix="/reviews", tags=["Reviews"])
app.include_router(regions.router, prefix="/regions", tags=["Regions"])
app.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
app.include_router(health.router, prefix="/health", tags=["Health"])
