"""
API schemas for career roadmaps.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from careerpath.server.models.roadmap import CareerRoadmapRead, CareerRoadmapSummary


class RoadmapEnvelope(BaseModel):
    message: str
    roadmap: CareerRoadmapRead


class RoadmapResponse(BaseModel):
    roadmap: CareerRoadmapRead


class RoadmapPagination(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    has_next: bool
    has_prev: bool


class RoadmapListResponse(BaseModel):
    roadmaps: list[CareerRoadmapSummary]
    pagination: RoadmapPagination


class MilestoneUpdate(BaseModel):
    completed: bool
    notes: Optional[str] = Field(default=None, max_length=1000)


class MilestoneState(BaseModel):
    phase_id: str
    milestone_id: str
    completed: bool
    notes: Optional[str] = None


class MilestoneUpdateResponse(BaseModel):
    message: str
    overall_progress: dict[str, Any]
    milestone: MilestoneState


class RegenerateRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class RoadmapFeedbackRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    feedback: Optional[str] = Field(default=None, max_length=1000)
    categories: list[str] = []


class FeedbackResponse(BaseModel):
    message: str
    feedback_id: int


class ProgressAnalytics(BaseModel):
    total_roadmaps: int
    completed_milestones: int
    total_milestones: int
    average_progress: int
    most_active_phase: Optional[dict[str, Any]] = None
    phase_progress: list[dict[str, Any]] = []
    recommendations: list[dict[str, Any]] = []


class NextStepSuggestions(BaseModel):
    next_milestones: list[dict[str, Any]] = []
    recommendations: list[dict[str, Any]] = []
    next_steps: list[dict[str, Any]] = []
