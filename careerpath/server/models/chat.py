"""
Database models for direct chats between students and mentors.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sqlmodel import JSON, Column, DateTime, Field, SQLModel


class ChatType(str, Enum):
    MENTOR_STUDENT = "mentor-student"
    GENERAL = "general"


class MessageType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"


class Chat(SQLModel, table=True):
    """A conversation between exactly two users."""

    __tablename__ = "chats"

    id: Optional[int] = Field(default=None, primary_key=True)
    participant_one_id: int = Field(foreign_key="users.id", index=True)
    participant_two_id: int = Field(foreign_key="users.id", index=True)
    chat_type: ChatType = Field(default=ChatType.GENERAL)
    mentor_id: Optional[int] = Field(default=None, foreign_key="mentors.id")
    is_active: bool = Field(default=True, index=True)
    last_message: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Last update timestamp"
    )

    @property
    def participants(self) -> tuple[int, int]:
        return self.participant_one_id, self.participant_two_id

    def has_participant(self, user_id: int) -> bool:
        return user_id in self.participants

    def other_participant(self, user_id: int) -> int:
        return self.participant_two_id if user_id == self.participant_one_id else self.participant_one_id


class ChatRead(SQLModel):
    id: int
    participants: list[int]
    chat_type: ChatType
    mentor_id: Optional[int] = None
    is_active: bool
    last_message: Optional[dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime
    unread_count: int = 0


class ChatMessage(SQLModel, table=True):
    """A message in a chat. ``read_by`` always contains the sender."""

    __tablename__ = "chat_messages"

    id: Optional[int] = Field(default=None, primary_key=True)
    chat_id: int = Field(foreign_key="chats.id", index=True)
    sender_id: int = Field(foreign_key="users.id")
    content: str
    message_type: MessageType = Field(default=MessageType.TEXT)
    read_by: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False, index=True)
    )

    def is_read_by(self, user_id: int) -> bool:
        return any(receipt.get("user_id") == user_id for receipt in self.read_by)


class ChatMessageRead(SQLModel):
    id: int
    chat_id: int
    sender_id: int
    content: str
    message_type: MessageType
    read_by: list[dict[str, Any]]
    created_at: datetime
