import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.middleware import get_db, get_current_user
from app.db.crud.message import list_conversations, get_messages, send_message, mark_read
from app.db.models.user import UserModel
from app.schemas.message import (
    ConversationListResponse,
    MarkReadRequest,
    MarkReadResponse,
    MessageListResponse,
    SendMessageRequest,
    SendMessageResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("", response_model=Union[MessageListResponse, ConversationListResponse])
async def read_messages(
    conversation_id: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    """
    Without ``conversation_id``: the caller's conversations.
    With it: that conversation's messages, which are marked read for the caller.
    """
    if conversation_id:
        return MessageListResponse(messages=await get_messages(db, current_user, conversation_id))
    return ConversationListResponse(conversations=await list_conversations(db, current_user))


@router.post("", response_model=SendMessageResponse, status_code=status.HTTP_201_CREATED)
async def post_message(
    data: SendMessageRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    message = await send_message(db, current_user, data)
    logger.info(f"Message id={message['id']} sent in conversation {message['conversation_id']}")
    return {"message": message}


@router.post("/read", response_model=MarkReadResponse)
async def mark_conversation_read(
    data: MarkReadRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    return {"messages_marked": await mark_read(db, current_user, data.conversation_id)}
