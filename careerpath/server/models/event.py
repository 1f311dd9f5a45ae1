"""
Database models for community events and their registrations.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import JSON, Column, DateTime, Field, SQLModel


class EventType(str, Enum):
    ONLINE = "Online"
    OFFLINE = "Offline"
    HYBRID = "Hybrid"


class EventCategory(str, Enum):
    CAREER_WORKSHOPS = "Career Workshops"
    INDUSTRY_PANELS = "Industry Panels"
    SKILL_DEVELOPMENT = "Skill Development"
    NETWORKING_EVENTS = "Networking Events"
    MOCK_INTERVIEWS = "Mock Interviews"
    WEBINARS = "Webinars"
    CONFERENCES = "Conferences"


class EventStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RegistrationPaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class Event(SQLModel, table=True):
    """A workshop, panel or other community event."""

    __tablename__ = "events"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True)
    description: str
    type: EventType
    category: EventCategory = Field(index=True)

    organizer_id: int = Field(foreign_key="users.id", index=True)
    organizer_name: str
    organizer_organization: Optional[str] = None

    speakers: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    resources: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    start_date: datetime = Field(sa_column=Column(DateTime, nullable=False, index=True))
    end_date: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    start_time: str
    end_time: Optional[str] = None
    timezone: str = Field(default="Asia/Kolkata")
    location: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    max_attendees: int = Field(default=100, ge=1)
    current_attendees: int = Field(default=0)

    registration_required: bool = Field(default=True)
    registration_start: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    registration_deadline: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    fee_amount: float = Field(default=0, ge=0)
    fee_currency: str = Field(default="INR")

    status: EventStatus = Field(default=EventStatus.PUBLISHED, index=True)

    created_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Last update timestamp"
    )


class EventRead(SQLModel):
    """Schema for reading an event, including derived registration state."""

    id: int
    title: str
    description: str
    type: EventType
    category: EventCategory
    organizer_id: int
    organizer_name: str
    organizer_organization: Optional[str] = None
    speakers: list[dict[str, Any]]
    tags: list[str]
    resources: list[dict[str, Any]]
    start_date: datetime
    end_date: Optional[datetime] = None
    start_time: str
    end_time: Optional[str] = None
    timezone: str
    location: dict[str, Any]
    max_attendees: int
    current_attendees: int
    registration_required: bool
    registration_start: Optional[datetime] = None
    registration_deadline: Optional[datetime] = None
    fee_amount: float
    fee_currency: str
    status: EventStatus
    created_at: datetime
    updated_at: datetime

    available_spots: int = 0
    registration_open: bool = False
    time_until_event: str = ""


class EventRegistration(SQLModel, table=True):
    """A user's registration for an event."""

    __tablename__ = "event_registrations"
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_event_registration_user"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="events.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    name: str
    email: str
    phone: str
    organization: Optional[str] = None
    job_title: Optional[str] = None
    city: Optional[str] = None
    experience: Optional[str] = None
    expectations: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    payment_status: RegistrationPaymentStatus = Field(default=RegistrationPaymentStatus.PAID)
    registered_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Registration time"
    )


class EventRegistrationRead(SQLModel):
    id: int
    event_id: int
    user_id: int
    name: str
    email: str
    phone: str
    organization: Optional[str] = None
    job_title: Optional[str] = None
    city: Optional[str] = None
    payment_status: RegistrationPaymentStatus
    registered_at: datetime
