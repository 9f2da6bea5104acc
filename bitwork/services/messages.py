"""Direct messages between users."""

import logging
from typing import Optional

from sqlalchemy import and_, or_, select, update
from sqlalchemy.orm import Session

from bitwork.models import Job, Message, Profile
from bitwork.utils.text_processing import clean_text, truncate

from .base import ActionResult, action
from .errors import NotFoundError, ValidationError
from .notifications import notify

logger = logging.getLogger("bitwork.messages")

MAX_MESSAGE_LENGTH = 5000


@action("Failed to send message")
def send_message(
    db: Session, sender_id: str, receiver_id: str, content: str, job_id: Optional[str] = None
) -> ActionResult:
    """Store a message and notify the receiver in the same transaction."""
    text = clean_text(content)
    if not text:
        raise ValidationError("Message cannot be empty")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f"Message must be at most {MAX_MESSAGE_LENGTH} characters")
    if sender_id == receiver_id:
        raise ValidationError("Cannot send a message to yourself")

    sender = db.get(Profile, sender_id)
    if sender is None or db.get(Profile, receiver_id) is None:
        raise NotFoundError("Recipient not found")
    if job_id is not None and db.get(Job, job_id) is None:
        raise NotFoundError("Job not found")

    message = Message(sender_id=sender_id, receiver_id=receiver_id, job_id=job_id, content=text)
    db.add(message)
    db.flush()

    notify(
        db,
        user_id=receiver_id,
        type="message",
        title=f"New message from {sender.display_name}",
        message=truncate(text, 120),
        related_job_id=job_id,
    )
    return ActionResult.ok(message)


def get_conversation(db: Session, user_id: str, other_id: str, limit: int = 100) -> list[Message]:
    """Messages exchanged between two users, oldest first."""
    stmt = (
        select(Message)
        .where(
            or_(
                and_(Message.sender_id == user_id, Message.receiver_id == other_id),
                and_(Message.sender_id == other_id, Message.receiver_id == user_id),
            )
        )
        .order_by(Message.created_at.desc())
        .limit(limit)
    )
    return list(reversed(list(db.scalars(stmt))))


@action("Failed to update messages")
def mark_conversation_read(db: Session, receiver_id: str, sender_id: str) -> ActionResult:
    result = db.execute(
        update(Message)
        .where(
            Message.receiver_id == receiver_id,
            Message.sender_id == sender_id,
            Message.is_read.is_(False),
        )
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    db.expire_all()
    return ActionResult.ok(result.rowcount or 0)
