# messaging.py
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

import models
import schemas
from catalog import get_product
from exceptions import ForbiddenError, NotFoundError, ValidationError
from logger import logger
from notifications import notify
from users import get_user

PREVIEW_LENGTH = 50


def _preview(content: str) -> str:
    if len(content) > PREVIEW_LENGTH:
        return content[:PREVIEW_LENGTH] + "..."
    return content


def get_conversation(db: Session, user: models.User, conversation_id: int) -> models.Conversation:
    conversation = db.query(models.Conversation).filter(
        models.Conversation.id == conversation_id
    ).first()
    if not conversation:
        raise NotFoundError("Conversation not found")
    if not conversation.has_participant(user.id):
        raise ForbiddenError("Not a participant of this conversation")
    return conversation


def get_or_create_conversation(
    db: Session,
    user: models.User,
    other_user_id: Optional[int],
    product_id: Optional[int] = None,
    product_title: Optional[str] = None,
    initial_message: Optional[str] = None,
) -> models.Conversation:
    """Return the pair's conversation for this product, creating it if needed.

    Without a product any existing conversation between the two users is
    reused.
    """
    if not other_user_id:
        raise ValidationError("other_user_id is required")
    if other_user_id == user.id:
        raise ValidationError("Cannot start a conversation with yourself")
    get_user(db, other_user_id)
    if product_id:
        product_title = get_product(db, product_id).title

    pair = or_(
        and_(models.Conversation.user1_id == user.id, models.Conversation.user2_id == other_user_id),
        and_(models.Conversation.user1_id == other_user_id, models.Conversation.user2_id == user.id),
    )
    query = db.query(models.Conversation).filter(pair)
    if product_id:
        query = query.filter(models.Conversation.product_id == product_id)
    conversation = query.order_by(models.Conversation.id).first()

    if conversation is None:
        conversation = models.Conversation(
            user1_id=user.id,
            user2_id=other_user_id,
            product_id=product_id or None,
            product_title=product_title,
        )
        db.add(conversation)
        db.commit()
        db.refresh(conversation)
        logger.info(f"Conversation {conversation.id} opened between users {user.id} and {other_user_id}")

    if initial_message and initial_message.strip():
        send_message(db, user, conversation.id, initial_message)
        db.refresh(conversation)
    return conversation


def send_message(db: Session, sender: models.User, conversation_id: int, content: str) -> models.Message:
    conversation = get_conversation(db, sender, conversation_id)
    content = (content or "").strip()
    if not content:
        raise ValidationError("Message cannot be empty")

    message = models.Message(
        conversation_id=conversation.id,
        sender_id=sender.id,
        content=content,
        is_read=False,
    )
    db.add(message)

    receiver = conversation.other_participant(sender.id)
    notify(
        db,
        receiver.id,
        models.NOTIFY_PRIVATE_MESSAGE,
        f"{sender.username} sent you a message: {_preview(content)}",
        product_id=conversation.product_id,
        product_title=conversation.product_title,
        conversation_id=conversation.id,
        sender_id=sender.id,
        sender_name=sender.username,
    )
    db.commit()
    db.refresh(message)
    return message


def list_messages(db: Session, user: models.User, conversation_id: int):
    conversation = get_conversation(db, user, conversation_id)
    return (
        db.query(models.Message)
        .filter(models.Message.conversation_id == conversation.id)
        .order_by(models.Message.created_at, models.Message.id)
        .all()
    )


def mark_conversation_read(db: Session, user: models.User, conversation_id: int):
    conversation = get_conversation(db, user, conversation_id)

    db.query(models.Message).filter(
        models.Message.conversation_id == conversation.id,
        models.Message.sender_id != user.id,
    ).update({models.Message.is_read: True}, synchronize_session=False)
    db.query(models.Notification).filter(
        models.Notification.user_id == user.id,
        models.Notification.type == models.NOTIFY_PRIVATE_MESSAGE,
        models.Notification.conversation_id == conversation.id,
    ).update({models.Notification.is_read: True}, synchronize_session=False)
    db.commit()


def list_conversations(db: Session, user: models.User):
    conversations = db.query(models.Conversation).filter(
        or_(models.Conversation.user1_id == user.id, models.Conversation.user2_id == user.id),
        models.Conversation.user1_id != models.Conversation.user2_id,
    ).all()

    summaries = []
    for conversation in conversations:
        messages = conversation.messages
        latest = max(messages, key=lambda m: (m.created_at, m.id)) if messages else None
        unread = sum(1 for m in messages if m.sender_id != user.id and not m.is_read)
        other = conversation.other_participant(user.id)

        summaries.append(schemas.ConversationSummary(
            id=conversation.id,
            product_id=conversation.product_id,
            product_title=conversation.product_title,
            other_user=schemas.PublicUserResponse.model_validate(other),
            latest_message=schemas.LatestMessage(
                content=latest.content,
                sender_id=latest.sender_id,
                created_at=latest.created_at,
            ) if latest else None,
            unread_count=unread,
            updated_at=latest.created_at if latest else conversation.created_at,
        ))

    summaries.sort(key=lambda s: (s.updated_at, s.id), reverse=True)
    return summaries
