"""
Database models for user accounts and their activity feed.

A user is identified by ``uid``: either a Firebase uid (Google sign-in) or a
locally generated ``local_<hex>`` uid for email/password accounts. Onboarding
answers, profile extras, preferences, badges and stats are JSON documents on
the user row.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sqlmodel import JSON, Column, DateTime, Field, SQLModel


def default_preferences() -> dict[str, bool]:
    return {"email_notifications": True, "push_notifications": True, "weekly_report": True}


def default_stats() -> dict[str, int]:
    return {"completed_courses": 0, "total_badges": 0, "study_hours": 0, "current_streak": 0}


class ActivityType(str, Enum):
    """Kinds of entries in a user's activity feed."""

    COURSE_COMPLETED = "course_completed"
    BADGE_EARNED = "badge_earned"
    ASSESSMENT_TAKEN = "assessment_taken"
    LOGIN = "login"
    PROFILE_UPDATED = "profile_updated"
    ONBOARDING_COMPLETED = "onboarding_completed"


class User(SQLModel, table=True):
    """Persistent user account."""

    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    uid: str = Field(index=True, unique=True, description="Firebase uid or local_<hex> uid")
    email: str = Field(index=True, unique=True, description="Lower-cased e-mail address")
    password_hash: Optional[str] = Field(default=None, description="bcrypt hash for local accounts")
    name: str = Field(default="", description="Display name")
    photo_url: Optional[str] = Field(default=None)

    onboarding_completed: bool = Field(default=False)
    onboarding_data: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    profile: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    preferences: dict[str, Any] = Field(default_factory=default_preferences, sa_column=Column(JSON, nullable=False))
    badges: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    stats: dict[str, Any] = Field(default_factory=default_stats, sa_column=Column(JSON, nullable=False))

    last_login: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    created_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Last update timestamp"
    )


class UserRead(SQLModel):
    """Public view of a user account."""

    id: int
    uid: str
    email: str
    name: str
    photo_url: Optional[str] = None
    onboarding_completed: bool
    onboarding_data: Optional[dict[str, Any]] = None
    profile: dict[str, Any] = {}
    preferences: dict[str, Any] = {}
    badges: list[dict[str, Any]] = []
    stats: dict[str, Any] = {}
    last_login: Optional[datetime] = None
    created_at: datetime


class Activity(SQLModel, table=True):
    """One entry in a user's activity feed."""

    __tablename__ = "activities"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    type: ActivityType
    title: str
    description: str = ""
    activity_metadata: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    points: int = Field(default=0)
    created_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Creation timestamp"
    )
