"""
Career roadmap documents and their database table.

The roadmap body produced by Gemini is validated with the pydantic document
models below. They accept camelCase (as the model writes it) or snake_case
keys and always dump snake_case, which is what the ``career_roadmaps`` JSON
columns store.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field as PydanticField
from pydantic.alias_generators import to_camel
from sqlmodel import JSON, Column, DateTime, Field, SQLModel

MILESTONE_CATEGORIES = frozenset(
    {
        "skill",
        "education",
        "experience",
        "certification",
        "project",
        "networking",
        "career",
        "tool",
        "portfolio",
        "learning",
        "practice",
        "assessment",
    }
)
RECOMMENDATION_CATEGORIES = frozenset(
    {
        "learning",
        "networking",
        "projects",
        "certifications",
        "experience",
        "portfolio",
        "skills",
        "tools",
        "inspiration",
        "budget",
        "career",
        "personal",
        "resources",
        "planning",
    }
)
PRIORITIES = frozenset({"high", "medium", "low"})
RESOURCE_TYPES = frozenset(
    {
        "course",
        "book",
        "website",
        "certification",
        "tool",
        "practice",
        "youtube",
        "video",
        "tutorial",
        "documentation",
        "platform",
        "guide",
    }
)


class RoadmapDocument(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class SalaryRange(RoadmapDocument):
    min: Optional[float] = None
    max: Optional[float] = None
    currency: str = "USD"


class KeySkill(RoadmapDocument):
    name: str
    importance: Optional[str] = None


class CareerPath(RoadmapDocument):
    title: str
    description: str = ""
    industry: str = ""
    level: str = "entry"
    average_salary: Optional[SalaryRange] = None
    growth_outlook: Optional[str] = None
    key_skills: list[KeySkill] = []
    time_to_entry: Optional[str] = None


class Resource(RoadmapDocument):
    type: Optional[str] = None
    title: str = ""
    url: Optional[str] = None
    description: Optional[str] = None
    cost: Optional[str] = None
    rating: Optional[float] = None


class MilestoneSkill(RoadmapDocument):
    name: str
    level: Optional[str] = None


class Milestone(RoadmapDocument):
    id: str
    title: str
    description: str = ""
    category: str = "skill"
    estimated_duration: str = ""
    priority: str = "medium"
    prerequisites: list[str] = []
    resources: list[Resource] = []
    skills: list[MilestoneSkill] = []
    completed: bool = False
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None


class Phase(RoadmapDocument):
    id: str
    title: str
    description: str = ""
    estimated_duration: str = ""
    order: int = 0
    milestones: list[Milestone] = []


class Recommendation(RoadmapDocument):
    type: str
    category: str = "career"
    priority: str = "medium"


class NextStep(RoadmapDocument):
    action: str
    deadline: Optional[str] = None
    importance: Optional[str] = None


class RoadmapContent(RoadmapDocument):
    """The generated part of a roadmap."""

    title: str
    description: str
    primary_career_path: CareerPath
    alternative_career_paths: list[CareerPath] = []
    phases: list[Phase] = PydanticField(..., min_length=1)
    match_score: int = PydanticField(default=75, ge=0, le=100)
    personalized_recommendations: list[Recommendation] = []
    next_steps: list[NextStep] = []


class RoadmapStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    COMPLETED = "completed"


def default_progress() -> dict[str, Any]:
    return {
        "completed_milestones": 0,
        "total_milestones": 0,
        "percentage_complete": 0,
        "last_updated": datetime.utcnow().isoformat(),
    }


class CareerRoadmap(SQLModel, table=True):
    """A generated roadmap owned by one user. Only one is active at a time."""

    __tablename__ = "career_roadmaps"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    title: str
    description: str
    version: int = Field(default=1)
    status: RoadmapStatus = Field(default=RoadmapStatus.ACTIVE, index=True)

    user_profile: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    generated_by: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    primary_career_path: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    alternative_career_paths: list[dict[str, Any]] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    phases: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    match_score: int = Field(default=75)
    personalized_recommendations: list[dict[str, Any]] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    next_steps: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    overall_progress: dict[str, Any] = Field(default_factory=default_progress, sa_column=Column(JSON, nullable=False))
    feedback: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))

    cache_key: Optional[str] = Field(default=None, index=True)
    last_accessed: datetime = Field(default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False))
    access_count: int = Field(default=0)

    created_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow, sa_column=Column(DateTime, nullable=False), description="Last update timestamp"
    )

    def to_content(self) -> RoadmapContent:
        """Re-validate the stored body as a ``RoadmapContent`` document."""
        return RoadmapContent.model_validate(
            {
                "title": self.title,
                "description": self.description,
                "primary_career_path": self.primary_career_path,
                "alternative_career_paths": self.alternative_career_paths,
                "phases": self.phases,
                "match_score": self.match_score,
                "personalized_recommendations": self.personalized_recommendations,
                "next_steps": self.next_steps,
            }
        )


class CareerRoadmapRead(SQLModel):
    """Full roadmap as returned to its owner."""

    id: int
    user_id: int
    title: str
    description: str
    version: int
    status: RoadmapStatus
    user_profile: dict[str, Any]
    generated_by: dict[str, Any]
    primary_career_path: dict[str, Any]
    alternative_career_paths: list[dict[str, Any]]
    phases: list[dict[str, Any]]
    match_score: int
    personalized_recommendations: list[dict[str, Any]]
    next_steps: list[dict[str, Any]]
    overall_progress: dict[str, Any]
    feedback: Optional[dict[str, Any]] = None
    last_accessed: datetime
    access_count: int
    created_at: datetime
    updated_at: datetime


class CareerRoadmapSummary(SQLModel):
    """Roadmap as shown in the history list."""

    id: int
    title: str
    description: str
    version: int
    status: RoadmapStatus
    match_score: int
    overall_progress: dict[str, Any]
    primary_career_path: dict[str, Any]
    created_at: datetime
    updated_at: datetime
