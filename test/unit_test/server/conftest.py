import json
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.pool import StaticPool

from careerpath.server.services.ai_client import AIServiceError, GenerativeAIClient

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ONBOARDING = {
    "current_level": "college",
    "career_stage": "exploring",
    "interests": ["technology", "data"],
    "goals": ["get-job", "learn-skills"],
    "preferred_learning_style": "hands-on",
    "time_commitment": "3-5-hours",
}


class FakeAIClient(GenerativeAIClient):
    """Gemini stand-in answering from a queue of canned replies."""

    def __init__(self) -> None:
        super().__init__(api_key="test-key", model_name="gemini-test")
        self.replies: list[str] = []
        self.error: Optional[str] = None
        self.prompts: list[str] = []

    def queue(self, *replies: str) -> None:
        self.replies.extend(replies)

    async def generate(self, prompt: str, purpose: str = "general") -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise AIServiceError(self.error)
        if not self.replies:
            raise AIServiceError("No reply queued")
        return self.replies.pop(0)


@pytest_asyncio.fixture
async def test_engine():
    """A fresh in-memory database per test."""
    import careerpath.server.models  # noqa: F401

    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(name="session")
async def session_fixture(test_engine) -> AsyncGenerator[AsyncSession, None]:
    async_session_maker = sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session_maker() as session:  # type: ignore[attr-defined]
        yield session


@pytest.fixture
def fake_ai() -> FakeAIClient:
    return FakeAIClient()


@pytest_asyncio.fixture(name="client")
async def client_fixture(session: AsyncSession, fake_ai: FakeAIClient) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app with the test database and fake Gemini."""
    from careerpath.server.core.database import get_session
    from careerpath.server.main import app
    from careerpath.server.services.ai_client import get_ai_client
    from careerpath.server.services.roadmap_cache import roadmap_cache

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_ai_client] = lambda: fake_ai
    roadmap_cache.clear()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
        yield client

    app.dependency_overrides.clear()
    roadmap_cache.clear()


async def create_user(
    session: AsyncSession,
    email: str = "student@example.com",
    name: str = "Student One",
    onboarding: Optional[dict] = None,
):
    from careerpath.server.models.user import User

    user = User(
        uid=f"local_{email.split('@')[0]}",
        email=email,
        name=name,
        onboarding_completed=onboarding is not None,
        onboarding_data=onboarding,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


def bearer(user) -> dict[str, str]:
    from careerpath.server.core.security import create_access_token

    return {"Authorization": f"Bearer {create_access_token(user.uid)}"}


@pytest_asyncio.fixture
async def user(session: AsyncSession):
    return await create_user(session)


@pytest_asyncio.fixture
async def other_user(session: AsyncSession):
    return await create_user(session, email="mentor@example.com", name="Mentor Two")


@pytest_asyncio.fixture
async def onboarded_user(session: AsyncSession):
    return await create_user(session, email="onboarded@example.com", name="Ready Student", onboarding=dict(ONBOARDING))


@pytest.fixture
def auth_headers(user) -> dict[str, str]:
    return bearer(user)


@pytest.fixture
def other_headers(other_user) -> dict[str, str]:
    return bearer(other_user)


@pytest.fixture
def make_user(session: AsyncSession):
    """Factory creating extra users: ``await make_user(email=..., onboarding=...)``."""

    async def _make(**kwargs):
        return await create_user(session, **kwargs)

    return _make


@pytest.fixture
def headers_for():
    return bearer


@pytest.fixture
def onboarding_data() -> dict:
    return dict(ONBOARDING)


ROADMAP_ANSWER = {
    "title": "Data Analyst Roadmap",
    "description": "From fundamentals to a first analytics role",
    "primaryCareerPath": {
        "title": "Data Analyst",
        "description": "Turn data into business decisions",
        "industry": "Technology",
        "level": "entry",
        "averageSalary": {"min": 50000, "max": 90000, "currency": "USD"},
        "growthOutlook": "excellent",
        "keySkills": [{"name": "SQL", "importance": "essential"}],
        "timeToEntry": "6-12 months",
    },
    "alternativeCareerPaths": [{"title": "Business Analyst", "description": "Bridge business and tech"}],
    "phases": [
        {
            "id": "phase_1",
            "title": "Foundation Phase",
            "description": "Core skills",
            "estimatedDuration": "0-6 months",
            "order": 1,
            "milestones": [
                {
                    "id": "milestone_1_1",
                    "title": "Learn SQL",
                    "category": "skills",
                    "priority": "high",
                    "resources": [{"type": "course", "title": "SQL Basics", "url": "https://example.com/sql"}],
                },
                {"id": "milestone_1_2", "title": "Learn Excel", "category": "tool", "priority": "medium"},
            ],
        },
        {
            "id": "phase_2",
            "title": "Application Phase",
            "description": "Portfolio",
            "estimatedDuration": "6-12 months",
            "order": 2,
            "milestones": [
                {"id": "milestone_2_1", "title": "Build a dashboard", "category": "projects", "priority": "low"},
                {"id": "milestone_2_2", "title": "Apply for internships", "category": "unknown", "priority": "high"},
            ],
        },
    ],
    "matchScore": 88,
    "personalizedRecommendations": [
        {"type": "Practice with real datasets", "category": "project", "priority": "high"},
        {"type": "Join a data community", "category": "networking", "priority": "urgent"},
    ],
    "nextSteps": [{"action": "Enroll in an SQL course", "deadline": "2030-01-01", "importance": "critical"}],
}


@pytest.fixture
def roadmap_answer() -> str:
    """A well-formed Gemini roadmap answer, fenced the way the model often returns it."""
    return "```json\n" + json.dumps(ROADMAP_ANSWER) + "\n```"
