from typing import Optional
from uuid import UUID

from sqlmodel import SQLModel


class RegionRead(SQLModel):
    id: UUID
    name: str
    parent_id: Optional[UUID] = None
    is_active: bool
