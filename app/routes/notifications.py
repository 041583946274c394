from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.exceptions import NotFoundError
from app.models.user import User
from app.schemas.notification_schemas import NotificationRead
from app.services.notification_service import list_notifications

router = APIRouter()


@router.get("/{user_id}", response_model=List[NotificationRead])
def inbox(user_id: UUID, unread_only: bool = False, session: Session = Depends(get_session)):
    if not session.get(User, user_id):
        raise NotFoundError("User", user_id)
    return list_notifications(session, user_id, unread_only=unread_only)
