from typing import List, Optional
from uuid import UUID

from sqlmodel import Session, select

from app.exceptions import NotFoundError, ValidationError
from app.models.region import Region


def get_region(session: Session, region_id: UUID) -> Region:
    region = session.get(Region, region_id)
    if not region:
        raise NotFoundError("Region", region_id)
    return region


def get_parent(session: Session, region_id: UUID) -> Optional[Region]:
    region = get_region(session, region_id)
    if region.parent_id is None:
        return None
    return get_region(session, region.parent_id)


def get_ancestors(session: Session, region_id: UUID) -> List[Region]:
    """Parent first, root last."""
    ancestors = []
    seen = {region_id}
    parent = get_parent(session, region_id)
    while parent is not None:
        if parent.id in seen:
            raise ValidationError(f"Region hierarchy loops at {parent.id}")
        seen.add(parent.id)
        ancestors.append(parent)
        parent = get_parent(session, parent.id)
    return ancestors


def list_children(session: Session, region_id: UUID, active_only: bool = True) -> List[Region]:
    get_region(session, region_id)
    statement = select(Region).where(Region.parent_id == region_id)
    if active_only:
        statement = statement.where(Region.is_active == True)  # noqa: E712
    return session.exec(statement.order_by(Region.name)).all()
