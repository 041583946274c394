from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.schemas.region_schemas import RegionRead
from app.services import region_service

router = APIRouter()


@router.get("/{region_id}/ancestors", response_model=List[RegionRead])
def ancestors(region_id: UUID, session: Session = Depends(get_session)):
    return region_service.get_ancestors(session, region_id)


@router.get("/{region_id}/children", response_model=List[RegionRead])
def children(region_id: UUID, session: Session = Depends(get_session)):
    return region_service.list_children(session, region_id)
