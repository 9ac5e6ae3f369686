# app/schemas/message.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ConversationOut(BaseModel):
    id: str
    counterpart_id: int
    counterpart_name: str
    counterpart_role: str
    last_message: str
    last_message_time: Optional[datetime] = None
    unread_count: int = 0


class MessageOut(BaseModel):
    id: int
    conversation_id: str
    sender_id: int
    receiver_id: int
    sender_name: str
    sender_role: str
    content: str
    read: bool
    timestamp: Optional[datetime] = None


class SendMessageRequest(BaseModel):
    receiver_id: int
    content: str = Field(min_length=1, max_length=5000)
    conversation_id: Optional[str] = None


class MarkReadRequest(BaseModel):
    conversation_id: str = Field(min_length=1)


class ConversationListResponse(BaseModel):
    conversations: List[ConversationOut]


class MessageListResponse(BaseModel):
    messages: List[MessageOut]


class SendMessageResponse(BaseModel):
    message: MessageOut


class MarkReadResponse(BaseModel):
    messages_marked: int
