# notifications.py
from sqlalchemy.orm import Session

import models
import schemas
from exceptions import ForbiddenError, NotFoundError


def notify(db: Session, user_id: int, type: str, content: str, **fields) -> models.Notification:
    """Queue a notification on the session; the caller commits."""
    notification = models.Notification(
        user_id=user_id,
        type=type,
        content=content,
        is_read=False,
        **fields,
    )
    db.add(notification)
    return notification


def list_notifications(db: Session, user: models.User):
    received = db.query(models.Notification).filter(models.Notification.user_id == user.id).all()
    sent_requests = db.query(models.Notification).filter(
        models.Notification.type == models.NOTIFY_PURCHASE_REQUEST,
        models.Notification.buyer_id == user.id,
        models.Notification.status == models.REQUEST_PENDING,
    ).all()

    merged = [schemas.NotificationResponse.model_validate(n) for n in received]
    merged.extend(
        schemas.NotificationResponse.model_validate(n).model_copy(
            update={"user_id": user.id, "is_sent_request": True}
        )
        for n in sent_requests
    )
    merged.sort(key=lambda n: (n.created_at, n.id), reverse=True)
    return merged


def get_own_notification(db: Session, user: models.User, notification_id: int) -> models.Notification:
    notification = db.query(models.Notification).filter(
        models.Notification.id == notification_id
    ).first()
    if not notification:
        raise NotFoundError("Notification not found")
    if notification.user_id != user.id:
        raise ForbiddenError("Not allowed to modify this notification")
    return notification


def mark_read(db: Session, user: models.User, notification_id: int):
    notification = get_own_notification(db, user, notification_id)
    notification.is_read = True
    db.commit()


def mark_all_read(db: Session, user: models.User) -> int:
    unread = db.query(models.Notification).filter(
        models.Notification.user_id == user.id,
        models.Notification.is_read.is_(False),
    ).all()
    for notification in unread:
        notification.is_read = True
    db.commit()
    return len(unread)
