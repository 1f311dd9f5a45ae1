"""
API schemas for forum posts and replies.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from careerpath.server.models.forum import ForumCategory, ForumPostRead, ForumReplyRead, PostStatus

SortBy = Literal["newest", "oldest", "mostLiked", "mostReplies", "lastActivity"]


class PostCreate(BaseModel):
    title: str = Field(..., min_length=10, max_length=200)
    content: str = Field(..., min_length=20, max_length=5000)
    category: ForumCategory
    tags: list[str] = Field(default_factory=list, max_length=5)

    @field_validator("title", "content")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()


class PostUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=10, max_length=200)
    content: Optional[str] = Field(default=None, min_length=20, max_length=5000)
    category: Optional[ForumCategory] = None
    tags: Optional[list[str]] = Field(default=None, max_length=5)
    status: Optional[PostStatus] = None


class PostEnvelope(BaseModel):
    message: str
    post: ForumPostRead


class PostListResponse(BaseModel):
    posts: list[ForumPostRead]
    total_pages: int
    current_page: int
    total_posts: int


class LikeResponse(BaseModel):
    message: str
    liked: bool
    like_count: int


class ReplyCreate(BaseModel):
    content: str = Field(..., min_length=10, max_length=2000)

    @field_validator("content")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()


class ReplyEnvelope(BaseModel):
    message: str
    reply: ForumReplyRead


class ForumStats(BaseModel):
    total_posts: int = 0
    total_views: int = 0
    total_replies: int = 0
    total_likes: int = 0
