# app/db/crud/message.py
import logging
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any

from fastapi import HTTPException, status
from sqlalchemy import select, func, update, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import NO_MESSAGES_PLACEHOLDER, Role
from app.db.crud.user import get_active_user
from app.db.models.message import ConversationModel, MessageModel
from app.db.models.user import UserModel
from app.schemas.message import SendMessageRequest

logger = logging.getLogger(__name__)

CONVERSATION_CREATE_ATTEMPTS = 2


def conversation_id_for(patient_id: int, psychiatrist_id: int) -> str:
    return f"{patient_id}-{psychiatrist_id}"


def _participants(sender: UserModel, receiver: UserModel) -> Optional[tuple]:
    """(patient_id, psychiatrist_id) for a patient/psychiatrist pair, else None."""
    roles = {sender.role, receiver.role}
    if roles != {Role.PATIENT.value, Role.PSYCHIATRIST.value}:
        return None
    if sender.role == Role.PATIENT.value:
        return sender.id, receiver.id
    return receiver.id, sender.id


async def find_conversation(db: AsyncSession, conversation_id: str) -> Optional[ConversationModel]:
    return await db.get(ConversationModel, conversation_id)


async def get_conversation_for_user(db: AsyncSession, user: UserModel, conversation_id: str) -> ConversationModel:
    """
    Raises:
        HTTPException: 404 when the conversation is missing or the user is not part of it
    """
    conversation = await find_conversation(db, conversation_id)
    if not conversation or user.id not in (conversation.patient_id, conversation.psychiatrist_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    return conversation


async def list_conversations(db: AsyncSession, user: UserModel) -> List[Dict[str, Any]]:
    """
    The user's conversations, most recent activity first.

    Each entry carries the other participant, the last message text and the
    number of messages addressed to ``user`` that are still unread.
    """
    result = await db.execute(
        select(ConversationModel).where(
            or_(ConversationModel.patient_id == user.id, ConversationModel.psychiatrist_id == user.id)
        )
    )
    conversations = list(result.scalars().all())
    if not conversations:
        return []

    counterpart_ids = {
        c.psychiatrist_id if c.patient_id == user.id else c.patient_id for c in conversations
    }
    counterparts = {
        u.id: u
        for u in (await db.execute(select(UserModel).where(UserModel.id.in_(counterpart_ids)))).scalars()
    }
    last_ids = [c.last_message_id for c in conversations if c.last_message_id]
    last_messages = {}
    if last_ids:
        last_messages = {
            m.id: m
            for m in (await db.execute(select(MessageModel).where(MessageModel.id.in_(last_ids)))).scalars()
        }
    unread_rows = await db.execute(
        select(MessageModel.conversation_id, func.count(MessageModel.id))
        .where(MessageModel.receiver_id == user.id, MessageModel.is_read.is_(False))
        .group_by(MessageModel.conversation_id)
    )
    unread = dict(unread_rows.all())

    items = []
    for c in conversations:
        other = counterparts.get(c.psychiatrist_id if c.patient_id == user.id else c.patient_id)
        last = last_messages.get(c.last_message_id)
        items.append(
            {
                "id": c.id,
                "counterpart_id": other.id if other else 0,
                "counterpart_name": other.full_name if other else "Unknown",
                "counterpart_role": other.role if other else "unknown",
                "last_message": last.content if last else NO_MESSAGES_PLACEHOLDER,
                "last_message_time": c.last_message_at or c.created_at,
                "unread_count": unread.get(c.id, 0),
            }
        )

    def _activity(item):
        ts = item["last_message_time"]
        if ts is None:
            return 0.0
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return ts.timestamp()

    items.sort(key=_activity, reverse=True)
    return items


def _message_dict(message: MessageModel, sender: UserModel) -> Dict[str, Any]:
    return {
        "id": message.id,
        "conversation_id": message.conversation_id,
        "sender_id": message.sender_id,
        "receiver_id": message.receiver_id,
        "sender_name": sender.full_name,
        "sender_role": sender.role,
        "content": message.content,
        "read": message.is_read,
        "timestamp": message.created_at,
    }


async def get_messages(db: AsyncSession, user: UserModel, conversation_id: str) -> List[Dict[str, Any]]:
    """Messages of a conversation, oldest first; those sent to ``user`` are marked read."""
    await get_conversation_for_user(db, user, conversation_id)
    result = await db.execute(
        select(MessageModel, UserModel)
        .join(UserModel, MessageModel.sender_id == UserModel.id)
        .where(MessageModel.conversation_id == conversation_id)
        .order_by(MessageModel.created_at, MessageModel.id)
    )
    rows = result.all()
    messages = [_message_dict(message, sender) for message, sender in rows]

    if any(m["receiver_id"] == user.id and not m["read"] for m in messages):
        await mark_read(db, user, conversation_id)
        for m in messages:
            if m["receiver_id"] == user.id:
                m["read"] = True
    return messages


async def _store_message(
    db: AsyncSession, sender: UserModel, receiver: UserModel, conversation: ConversationModel, content: str
) -> Dict[str, Any]:
    sender_id = sender.id
    message = MessageModel(
        conversation_id=conversation.id,
        sender_id=sender_id,
        receiver_id=receiver.id,
        content=content,
        is_read=False,
    )
    try:
        db.add(message)
        await db.flush()
        conversation.last_message_id = message.id
        conversation.last_message_at = datetime.now(timezone.utc)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to store message from user_id={sender_id}: {e}", exc_info=True)
        raise

    await db.refresh(message)
    return _message_dict(message, sender)


async def send_message(db: AsyncSession, sender: UserModel, data: SendMessageRequest) -> Dict[str, Any]:
    """
    Store a message, creating the conversation on first contact.

    The insert and the conversation's last-message update commit together.
    When two first messages race to create the same conversation, the loser
    retries once against the conversation the winner created.

    Raises:
        HTTPException: 404 receiver missing or inactive (or conversation not the caller's),
            400 when the pair is not a patient and a psychiatrist
    """
    receiver = await get_active_user(db, data.receiver_id)
    if not receiver:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Receiver not found")

    if data.conversation_id:
        conversation = await get_conversation_for_user(db, sender, data.conversation_id)
        if receiver.id not in (conversation.patient_id, conversation.psychiatrist_id) or receiver.id == sender.id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Receiver is not part of this conversation")
        return await _store_message(db, sender, receiver, conversation, data.content)

    pair = _participants(sender, receiver)
    if not pair:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Messages can only be exchanged between a patient and a psychiatrist",
        )
    conversation_id = conversation_id_for(*pair)

    for attempt in range(1, CONVERSATION_CREATE_ATTEMPTS + 1):
        conversation = await find_conversation(db, conversation_id)
        created = conversation is None
        if created:
            conversation = ConversationModel(id=conversation_id, patient_id=pair[0], psychiatrist_id=pair[1])
            db.add(conversation)
            logger.info(f"Starting conversation {conversation_id}")
        try:
            return await _store_message(db, sender, receiver, conversation, data.content)
        except IntegrityError:
            if not created or attempt == CONVERSATION_CREATE_ATTEMPTS:
                raise
            logger.warning(f"Conversation {conversation_id} was created concurrently, retrying")
            # rollback expired both users
            await db.refresh(sender)
            await db.refresh(receiver)


async def mark_read(db: AsyncSession, user: UserModel, conversation_id: str) -> int:
    """Mark messages addressed to ``user`` in the conversation as read; returns how many changed."""
    await get_conversation_for_user(db, user, conversation_id)
    result = await db.execute(
        update(MessageModel)
        .where(
            MessageModel.conversation_id == conversation_id,
            MessageModel.receiver_id == user.id,
            MessageModel.is_read.is_(False),
        )
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount or 0
