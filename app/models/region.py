from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field

from app.utils.clock import utcnow


class Region(SQLModel, table=True):
    __tablename__ = "regions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=100)

    # child -> parent only; children are queried on demand
    parent_id: Optional[UUID] = Field(default=None, foreign_key="regions.id", index=True)

    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)
