from dataclasses import dataclass
from typing import Generic, List, TypeVar

from sqlalchemy import func
from sqlmodel import select

from app.exceptions import ValidationError

T = TypeVar("T")

MAX_LIMIT = 100


@dataclass
class Page(Generic[T]):
    items: List[T]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit


def paginate(*, session, query, page: int = 1, limit: int = 20) -> Page:
    """Run ``query`` for one page; the total ignores the query's ordering."""
    if page < 1:
        raise ValidationError(f"page must be 1 or more, got {page}")
    if not 1 <= limit <= MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_LIMIT}, got {limit}")

    total = session.exec(
        select(func.count()).select_from(query.order_by(None).subquery())
    ).one()
    items = session.exec(query.offset((page - 1) * limit).limit(limit)).all()

    return Page(items=list(items), total=total, page=page, limit=limit)
