"""Notification emitter and recipient-side inbox operations."""

import logging
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from bitwork.models import NOTIFICATION_TYPES, Notification

from .base import ActionResult, action
from .errors import NotFoundError, UnauthorizedError, ValidationError

logger = logging.getLogger("bitwork.notifications")


def notify(
    db: Session,
    user_id: str,
    type: str,
    title: str,
    message: str,
    related_job_id: Optional[str] = None,
    related_application_id: Optional[str] = None,
) -> Notification:
    """Insert one unread notification inside the caller's transaction."""
    if type not in NOTIFICATION_TYPES:
        raise ValidationError(f"Unknown notification type: {type}")

    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        related_job_id=related_job_id,
        related_application_id=related_application_id,
        is_read=False,
    )
    db.add(notification)
    db.flush()
    logger.debug("Notified %s: %s", user_id, title)
    return notification


def get_notifications(
    db: Session, user_id: str, limit: int = 20, only_unread: bool = False
) -> list[Notification]:
    stmt = select(Notification).where(Notification.user_id == user_id)
    if only_unread:
        stmt = stmt.where(Notification.is_read.is_(False))
    stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)
    return list(db.scalars(stmt))


def get_unread_count(db: Session, user_id: str) -> int:
    return db.scalar(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id, Notification.is_read.is_(False)
        )
    ) or 0


def _get_owned(db: Session, notification_id: str, user_id: str) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError("Notification not found")
    if notification.user_id != user_id:
        raise UnauthorizedError()
    return notification


@action("Failed to update notification")
def mark_as_read(db: Session, notification_id: str, user_id: str) -> ActionResult:
    notification = _get_owned(db, notification_id, user_id)
    notification.is_read = True
    return ActionResult.ok(notification)


@action("Failed to update notifications")
def mark_all_as_read(db: Session, user_id: str) -> ActionResult:
    """Flip every unread notification of ``user_id``; data is the number flipped."""
    result = db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    db.expire_all()
    return ActionResult.ok(result.rowcount or 0)


@action("Failed to delete notification")
def delete_notification(db: Session, notification_id: str, user_id: str) -> ActionResult:
    notification = _get_owned(db, notification_id, user_id)
    db.delete(notification)
    return ActionResult.ok()
