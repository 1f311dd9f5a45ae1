"""
API schemas for authentication and user endpoints.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from careerpath.server.models.user import UserRead


class RegisterRequest(BaseModel):
    """Schema for creating a local email/password account."""

    email: EmailStr = Field(..., description="Account e-mail address", examples=["student@example.com"])
    password: str = Field(..., min_length=6, description="Plain-text password, at least 6 characters")


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class VerifyTokenRequest(BaseModel):
    """Schema carrying a Firebase ID token obtained from Google sign-in."""

    id_token: str = Field(..., min_length=1, description="Firebase ID token")


class RegisterResponse(BaseModel):
    message: str
    user_id: int


class LoginResponse(BaseModel):
    message: str
    access_token: str
    token_type: str = "bearer"
    user: UserRead


class UserEnvelope(BaseModel):
    user: UserRead


class OnboardingData(BaseModel):
    """
    Answers collected by the onboarding wizard.

    Unknown keys are kept as-is so the wizard can grow without a schema change.
    """

    model_config = ConfigDict(extra="allow")

    current_level: Literal["high-school", "college", "graduate", "professional"]
    career_stage: Literal["exploring", "deciding", "switching", "advancing"]
    interests: list[str] = Field(..., min_length=1)
    goals: list[str] = Field(..., min_length=1)
    preferred_learning_style: Literal["visual", "hands-on", "reading", "interactive"]
    time_commitment: Literal["1-2-hours", "3-5-hours", "6-10-hours", "10-plus-hours"]


class OnboardingResponse(BaseModel):
    message: str
    user: UserRead


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    photo_url: Optional[str] = None
    current_skills: Optional[list[str]] = None
    experience: Optional[str] = None


class ProfileResponse(BaseModel):
    message: str
    user: UserRead


class PreferencesUpdate(BaseModel):
    email_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None
    weekly_report: Optional[bool] = None


class PreferencesResponse(BaseModel):
    message: str
    preferences: dict[str, Any]


class UserStats(BaseModel):
    completed_courses: int = 0
    total_badges: int = 0
    study_hours: int = 0
    current_streak: int = 0


class ActivityItem(BaseModel):
    type: str
    title: str
    description: str
    time: str = Field(..., description="Formatted like 'Jan 05, 09:30 AM'")
    points: int


class CareerRecommendation(BaseModel):
    title: str
    match: int = Field(..., ge=0, le=100)
    description: str
    salary: str
    growth: str


class BadgesResponse(BaseModel):
    badges: list[dict[str, Any]]
    total_badges: int
