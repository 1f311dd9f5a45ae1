"""
API schemas for AI counseling chat and assessments.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from careerpath.server.models.counseling import CounselingSessionDetail, CounselingSessionRead, CounselingSessionStatus


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)
    session_id: Optional[str] = Field(default=None, min_length=1, max_length=100)

    @field_validator("message")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message cannot be empty")
        return value


class ChatResponse(BaseModel):
    session_id: str
    response: str
    response_time: int = Field(..., description="Milliseconds spent generating the answer")
    message_count: int


class SessionPagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class SessionListResponse(BaseModel):
    sessions: list[CounselingSessionRead]
    pagination: SessionPagination


class SessionDetailResponse(BaseModel):
    session: CounselingSessionDetail


class SessionUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    status: Optional[CounselingSessionStatus] = None


class SessionUpdateResponse(BaseModel):
    message: str
    session: CounselingSessionRead


class AnalyzeRequest(BaseModel):
    responses: list[Any]


class QuestionsResponse(BaseModel):
    questions: list[dict[str, Any]]


class AnalysisResponse(BaseModel):
    success: bool
    analysis: str
    timestamp: datetime
    error: Optional[str] = None


class CounselingStats(BaseModel):
    total_sessions: int = 0
    active_sessions: int = 0
    total_messages: int = 0
    recent_activity: int = 0
    average_messages_per_session: int = 0


class ConnectionTestResponse(BaseModel):
    success: bool
    message: str
    response: Optional[str] = None
    error: Optional[str] = None
    timestamp: str
