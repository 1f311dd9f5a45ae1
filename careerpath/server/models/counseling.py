"""
Database models for AI counseling conversations.

A ``CounselingSession`` is addressed by its client-visible ``session_key``;
messages are ordered by ``timestamp`` and then by id.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sqlmodel import JSON, Column, DateTime, Field, SQLModel


class CounselingSessionStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    DELETED = "deleted"


class CounselingMessageType(str, Enum):
    USER = "user"
    BOT = "bot"


class CounselingSession(SQLModel, table=True):
    """Persistent AI counseling conversation."""

    __tablename__ = "counseling_sessions"

    id: Optional[int] = Field(default=None, primary_key=True)
    session_key: str = Field(max_length=100, unique=True, index=True, description="Client-visible session id")
    user_id: int = Field(foreign_key="users.id", index=True)
    title: str = Field(default="New Chat Session")
    status: CounselingSessionStatus = Field(default=CounselingSessionStatus.ACTIVE, index=True)
    summary: Optional[str] = None
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    last_message_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False, index=True)
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Last update timestamp"
    )


class CounselingMessage(SQLModel, table=True):
    """One message of a counseling conversation."""

    __tablename__ = "counseling_messages"

    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: int = Field(foreign_key="counseling_sessions.id", index=True)
    type: CounselingMessageType
    content: str
    timestamp: datetime = Field(default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False))
    message_metadata: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))


class CounselingMessageRead(SQLModel):
    id: int
    type: CounselingMessageType
    content: str
    timestamp: datetime
    message_metadata: dict[str, Any]


class CounselingSessionRead(SQLModel):
    """Schema for reading a session in listings."""

    session_id: str
    title: str
    status: CounselingSessionStatus
    summary: Optional[str] = None
    tags: list[str]
    last_message_at: datetime
    created_at: datetime
    message_count: int = 0


class CounselingSessionDetail(CounselingSessionRead):
    messages: list[CounselingMessageRead] = []
