from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlmodel import SQLModel

from app.models.notifications import NotificationType, RecipientRole


class NotificationRead(SQLModel):
    id: UUID
    user_id: UUID
    recipient_role: RecipientRole
    order_id: Optional[UUID] = None
    trigger_source: str
    title: str
    message: str
    type: NotificationType
    is_read: bool
    created_at: datetime
