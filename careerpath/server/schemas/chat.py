"""
API schemas for direct chats.
"""

from typing import Optional

from pydantic import BaseModel, Field

from careerpath.server.models.chat import ChatMessageRead, ChatRead, MessageType


class StartChatRequest(BaseModel):
    mentor_user_id: int = Field(..., description="User id of the person to chat with")
    mentor_id: Optional[int] = Field(default=None, description="Mentor profile the chat is about")


class ChatEnvelope(BaseModel):
    message: str
    chat: ChatRead


class ChatListResponse(BaseModel):
    chats: list[ChatRead]


class MessagePage(BaseModel):
    chat_id: int
    messages: list[ChatMessageRead]
    total_messages: int
    has_more: bool


class SendMessageRequest(BaseModel):
    content: str = Field(..., max_length=5000)
    message_type: MessageType = MessageType.TEXT


class SendMessageResponse(BaseModel):
    message: str
    chat_message: ChatMessageRead
