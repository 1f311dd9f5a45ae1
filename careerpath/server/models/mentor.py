"""
Database models for mentor profiles and booked mentoring sessions.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sqlmodel import JSON, Column, DateTime, Field, SQLModel


class MentorAvailability(str, Enum):
    AVAILABLE = "Available"
    BUSY = "Busy"
    AWAY = "Away"


class SessionType(str, Enum):
    VIDEO_CALL = "video-call"
    PHONE_CALL = "phone-call"
    CHAT = "chat"
    IN_PERSON = "in-person"


class SessionStatus(str, Enum):
    """Lifecycle of a booked session."""

    SCHEDULED = "scheduled"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


def default_schedule() -> dict[str, Any]:
    return {"timezone": "Asia/Kolkata", "available_slots": []}


class Mentor(SQLModel, table=True):
    """A bookable career mentor. Each user owns at most one mentor profile."""

    __tablename__ = "mentors"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    name: str = Field(index=True)
    title: str
    company: Optional[str] = None
    bio: str = Field(default="", max_length=500)
    experience: str = ""
    expertise: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    languages: list[str] = Field(default_factory=lambda: ["English"], sa_column=Column(JSON, nullable=False))
    location: Optional[str] = None
    profile_image: Optional[str] = None

    availability: MentorAvailability = Field(default=MentorAvailability.AVAILABLE)
    price_amount: float = Field(default=0, ge=0)
    price_currency: str = Field(default="INR")
    schedule: dict[str, Any] = Field(default_factory=default_schedule, sa_column=Column(JSON, nullable=False))

    rating_average: float = Field(default=0, ge=0, le=5)
    rating_count: int = Field(default=0)
    total_sessions: int = Field(default=0)
    is_verified: bool = Field(default=False)

    created_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Last update timestamp"
    )


class MentorRead(SQLModel):
    """Schema for reading a mentor profile."""

    id: int
    user_id: int
    name: str
    title: str
    company: Optional[str] = None
    bio: str
    experience: str
    expertise: list[str]
    languages: list[str]
    location: Optional[str] = None
    profile_image: Optional[str] = None
    availability: MentorAvailability
    price_amount: float
    price_currency: str
    schedule: dict[str, Any]
    rating_average: float
    rating_count: int
    total_sessions: int
    is_verified: bool
    created_at: datetime
    updated_at: datetime


class MentorSession(SQLModel, table=True):
    """A session a student booked with a mentor."""

    __tablename__ = "mentor_sessions"

    id: Optional[int] = Field(default=None, primary_key=True)
    mentor_id: int = Field(foreign_key="mentors.id", index=True)
    student_id: int = Field(foreign_key="users.id", index=True)
    session_date: datetime = Field(sa_column=Column(DateTime, nullable=False, index=True))
    duration: int = Field(default=60, ge=30, le=180, description="Minutes")
    session_type: SessionType = Field(default=SessionType.VIDEO_CALL)
    meeting_link: Optional[str] = None
    topics: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    notes: str = ""
    status: SessionStatus = Field(default=SessionStatus.SCHEDULED, index=True)

    payment_amount: float = Field(default=0)
    payment_currency: str = Field(default="INR")
    payment_status: PaymentStatus = Field(default=PaymentStatus.PENDING)
    feedback: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    created_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Last update timestamp"
    )


class MentorSessionRead(SQLModel):
    """Schema for reading a mentoring session."""

    id: int
    mentor_id: int
    student_id: int
    session_date: datetime
    duration: int
    session_type: SessionType
    meeting_link: Optional[str] = None
    topics: list[str]
    notes: str
    status: SessionStatus
    payment_amount: float
    payment_currency: str
    payment_status: PaymentStatus
    feedback: dict[str, Any]
    created_at: datetime
    updated_at: datetime
