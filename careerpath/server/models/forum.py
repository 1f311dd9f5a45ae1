"""
Database models for forum posts and replies.

``like_count`` and ``reply_count`` are kept on the post row so that listing
and sorting do not need to aggregate; endpoints update them together with
``likes`` and the reply rows.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sqlmodel import JSON, Column, DateTime, Field, SQLModel

EXCERPT_LIMIT = 150


class ForumCategory(str, Enum):
    ENGINEERING = "Engineering"
    MEDICAL = "Medical"
    BUSINESS = "Business"
    ARTS = "Arts"
    SCIENCE = "Science"
    CAREER_CHANGE = "Career Change"
    CAREER_CHOICE = "Career Choice"
    JOB_SEARCH = "Job Search"
    EDUCATION = "Education"
    TECHNOLOGY = "Technology"
    GENERAL = "General"


class PostStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"
    PINNED = "pinned"


def make_excerpt(content: str) -> str:
    """First 147 characters plus an ellipsis when the content is longer than 150."""
    if len(content) > EXCERPT_LIMIT:
        return content[: EXCERPT_LIMIT - 3] + "..."
    return content


class ForumPost(SQLModel, table=True):
    """A community discussion thread."""

    __tablename__ = "forum_posts"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    content: str
    excerpt: str = ""
    category: ForumCategory = Field(index=True)
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    author_id: int = Field(foreign_key="users.id", index=True)
    author_name: str
    status: PostStatus = Field(default=PostStatus.ACTIVE, index=True)
    views: int = Field(default=0)
    likes: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    like_count: int = Field(default=0)
    reply_count: int = Field(default=0)
    last_activity: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False, index=True)
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Last update timestamp"
    )


class ForumPostRead(SQLModel):
    """Schema for reading a post in listings."""

    id: int
    title: str
    content: str
    excerpt: str
    category: ForumCategory
    tags: list[str]
    author_id: int
    author_name: str
    status: PostStatus
    views: int
    like_count: int
    reply_count: int
    last_activity: datetime
    created_at: datetime
    updated_at: datetime
    time_ago: str = ""


class ForumReply(SQLModel, table=True):
    """A reply to a forum post."""

    __tablename__ = "forum_replies"

    id: Optional[int] = Field(default=None, primary_key=True)
    post_id: int = Field(foreign_key="forum_posts.id", index=True)
    author_id: int = Field(foreign_key="users.id")
    author_name: str
    content: str
    likes: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    is_accepted: bool = Field(default=False)
    created_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Creation timestamp"
    )


class ForumReplyRead(SQLModel):
    id: int
    post_id: int
    author_id: int
    author_name: str
    content: str
    likes: list[dict[str, Any]]
    is_accepted: bool
    created_at: datetime


class ForumPostDetail(ForumPostRead):
    """A post with its replies, as shown on the thread page."""

    likes: list[dict[str, Any]] = []
    replies: list[ForumReplyRead] = []
