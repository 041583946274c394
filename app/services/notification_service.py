from uuid import UUID
from typing import Optional

from sqlmodel import Session, select

from app.models.notifications import (
    Notification,
    NotificationType,
    RecipientRole,
)


def create_notification(
    *,
    session: Session,
    user_id: UUID,
    recipient_role: RecipientRole,
    order_id: Optional[UUID],
    trigger_source: str,
    title: str,
    message: str,
    type: NotificationType = NotificationType.info,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        recipient_role=recipient_role,
        order_id=order_id,
        trigger_source=trigger_source,
        title=title,
        message=message,
        type=type,
    )
    session.add(notification)
    session.flush()
    return notification


def list_notifications(session: Session, user_id: UUID, unread_only: bool = False):
    statement = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        statement = statement.where(Notification.is_read == False)  # noqa: E712
    return session.exec(statement.order_by(Notification.created_at.desc())).all()
