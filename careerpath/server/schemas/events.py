"""
API schemas for events and event registrations.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from careerpath.server.models.event import EventCategory, EventRead, EventRegistrationRead, EventType
from careerpath.server.schemas.common import to_naive_utc

TIME_PATTERN = r"^([01]?\d|2[0-3]):[0-5]\d$"


class Speaker(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1)
    title: Optional[str] = None
    company: Optional[str] = None
    bio: Optional[str] = None
    image: Optional[str] = None


class EventResource(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: str
    url: Optional[str] = None
    type: Optional[str] = None


class EventLocation(BaseModel):
    venue: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    meeting_link: Optional[str] = None
    instructions: Optional[str] = None


class EventCreate(BaseModel):
    """Schema for creating an event; the caller becomes its organizer."""

    title: str = Field(..., min_length=5, max_length=100)
    description: str = Field(..., min_length=20, max_length=2000)
    type: EventType
    category: EventCategory
    organizer_organization: Optional[str] = None

    speakers: list[Speaker] = Field(..., min_length=1)
    tags: list[str] = []
    resources: list[EventResource] = []

    start_date: datetime
    end_date: Optional[datetime] = None
    start_time: str = Field(..., pattern=TIME_PATTERN, description="HH:MM, 24 hour clock")
    end_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    timezone: str = "Asia/Kolkata"
    location: EventLocation = Field(default_factory=EventLocation)

    max_attendees: int = Field(..., ge=1)
    registration_required: bool = True
    registration_start: Optional[datetime] = None
    registration_deadline: Optional[datetime] = None
    fee_amount: float = Field(default=0, ge=0)
    fee_currency: str = "INR"

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Resume Writing Workshop",
                "description": "Hands-on workshop on writing a resume that gets shortlisted.",
                "type": "Online",
                "category": "Career Workshops",
                "speakers": [{"name": "Anita Rao", "title": "HR Lead"}],
                "start_date": "2030-01-15T10:00:00",
                "start_time": "10:00",
                "max_attendees": 50,
            }
        }
    )

    @field_validator("title", "description")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @field_validator("start_date", "end_date", "registration_start", "registration_deadline")
    @classmethod
    def _naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class EventUpdate(BaseModel):
    """Partial update. ``current_attendees`` is derived and cannot be set."""

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(default=None, min_length=5, max_length=100)
    description: Optional[str] = Field(default=None, min_length=20, max_length=2000)
    type: Optional[EventType] = None
    category: Optional[EventCategory] = None
    organizer_organization: Optional[str] = None
    speakers: Optional[list[Speaker]] = Field(default=None, min_length=1)
    tags: Optional[list[str]] = None
    resources: Optional[list[EventResource]] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    start_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    timezone: Optional[str] = None
    location: Optional[EventLocation] = None
    max_attendees: Optional[int] = Field(default=None, ge=1)
    registration_required: Optional[bool] = None
    registration_start: Optional[datetime] = None
    registration_deadline: Optional[datetime] = None
    fee_amount: Optional[float] = Field(default=None, ge=0)
    fee_currency: Optional[str] = None

    @field_validator("start_date", "end_date", "registration_start", "registration_deadline")
    @classmethod
    def _naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class EventEnvelope(BaseModel):
    message: str
    event: EventRead


class EventDetail(EventRead):
    attendees: list[EventRegistrationRead] = []


class EventListResponse(BaseModel):
    events: list[EventRead]
    total_pages: int
    current_page: int
    total_events: int


class RegistrationRequest(BaseModel):
    name: str = Field(..., min_length=2)
    email: EmailStr
    phone: str = Field(..., min_length=10)
    organization: Optional[str] = None
    job_title: Optional[str] = None
    city: Optional[str] = None
    experience: Optional[str] = None
    expectations: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None

    @field_validator("name", "phone")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()


class RegisteredEvent(BaseModel):
    id: int
    title: str
    start_date: datetime
    start_time: str


class RegistrationResponse(BaseModel):
    message: str
    event: RegisteredEvent


RegisteredFilter = Literal["upcoming", "past"]
