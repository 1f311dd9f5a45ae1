"""
API schemas for mentor profiles, bookings and session feedback.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from careerpath.server.models.mentor import MentorAvailability, MentorRead, MentorSessionRead, SessionStatus, SessionType
from careerpath.server.schemas.common import to_naive_utc


class AvailableSlot(BaseModel):
    day: str = Field(..., description="Weekday name", examples=["Monday"])
    start_time: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$", examples=["09:00"])
    end_time: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$", examples=["17:00"])


class MentorSchedule(BaseModel):
    timezone: str = "Asia/Kolkata"
    available_slots: list[AvailableSlot] = []


class MentorFields(BaseModel):
    """Profile fields shared by both mentor creation endpoints."""

    title: str = Field(..., min_length=1, description="Job title", examples=["Senior Software Engineer"])
    company: str = Field(..., min_length=1, examples=["Infosys"])
    experience: str = Field(..., min_length=1, description="Free-text experience summary", examples=["8 years"])
    expertise: list[str] = Field(..., min_length=1, examples=[["Python", "System Design"]])
    location: str = Field(..., min_length=1, examples=["Bangalore"])
    bio: str = Field(default="", max_length=500)
    languages: list[str] = Field(default_factory=lambda: ["English"])
    availability: MentorAvailability = MentorAvailability.AVAILABLE
    price_amount: float = Field(..., ge=0, description="Price per session")
    price_currency: str = "INR"
    profile_image: Optional[str] = None
    schedule: MentorSchedule = Field(default_factory=MentorSchedule)

    @field_validator("title", "company", "location")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class MentorCreate(MentorFields):
    name: str = Field(..., min_length=2, max_length=100)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Priya Sharma",
                "title": "Data Scientist",
                "company": "Flipkart",
                "experience": "6 years",
                "expertise": ["Machine Learning", "Python"],
                "location": "Bangalore",
                "price_amount": 1500,
            }
        }
    )


class MentorRegister(MentorFields):
    """Self registration; the name defaults to the caller's display name."""

    name: Optional[str] = Field(default=None, min_length=2, max_length=100)


class MentorUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    title: Optional[str] = Field(default=None, min_length=1)
    company: Optional[str] = None
    experience: Optional[str] = None
    expertise: Optional[list[str]] = Field(default=None, min_length=1)
    location: Optional[str] = None
    bio: Optional[str] = Field(default=None, max_length=500)
    languages: Optional[list[str]] = None
    availability: Optional[MentorAvailability] = None
    price_amount: Optional[float] = Field(default=None, ge=0)
    price_currency: Optional[str] = None
    profile_image: Optional[str] = None
    schedule: Optional[MentorSchedule] = None


class MentorEnvelope(BaseModel):
    message: str
    mentor: MentorRead


class MentorListResponse(BaseModel):
    mentors: list[MentorRead]
    total_pages: int
    current_page: int
    total_mentors: int


class BookingRequest(BaseModel):
    session_date: datetime = Field(..., description="ISO 8601 start time")
    duration: int = Field(default=60, ge=30, le=180, description="Minutes")
    topics: list[str] = []
    session_type: SessionType = SessionType.VIDEO_CALL
    notes: str = Field(default="", max_length=1000)

    @field_validator("session_date")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class SessionEnvelope(BaseModel):
    message: str
    session: MentorSessionRead


class SessionListResponse(BaseModel):
    sessions: list[MentorSessionRead]
    total_pages: int
    current_page: int
    total_sessions: int


class SessionStatusUpdate(BaseModel):
    status: SessionStatus


class FeedbackRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=500)
