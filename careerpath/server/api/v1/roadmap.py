"""
API endpoints for personalised career roadmaps.

A roadmap is generated from the caller's onboarding answers. Before asking
Gemini, ``POST /generate`` tries to reuse earlier content: first the
in-process cache, then a recent roadmap generated for the same profile, then
a recent roadmap for a sufficiently similar profile. Reused content is copied
into a new roadmap owned by the caller with all progress reset.

Each user has at most one active roadmap; generating a new one archives the
previous ones.
"""

from datetime import datetime, timedelta
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from careerpath.core.database import PageParams, paginate
from careerpath.core.logging_config import get_logger
from careerpath.server.core.database import get_session
from careerpath.server.models.roadmap import (
    CareerRoadmap,
    CareerRoadmapRead,
    CareerRoadmapSummary,
    RoadmapContent,
    RoadmapStatus,
)
from careerpath.server.models.user import User
from careerpath.server.schemas.common import MessageResponse
from careerpath.server.schemas.roadmap import (
    FeedbackResponse,
    MilestoneState,
    MilestoneUpdate,
    MilestoneUpdateResponse,
    NextStepSuggestions,
    ProgressAnalytics,
    RegenerateRequest,
    RoadmapEnvelope,
    RoadmapFeedbackRequest,
    RoadmapListResponse,
    RoadmapPagination,
    RoadmapResponse,
)
from careerpath.server.services.ai_client import AIServiceError, GenerativeAIClient
from careerpath.server.services.deps import AIClientDep, CurrentUserDep, RoadmapCacheDep
from careerpath.server.services.mindmap import MindmapNode, build_mindmap
from careerpath.server.services.roadmap_cache import find_similar, generate_cache_key
from careerpath.server.services.roadmap_generation import (
    RoadmapParseError,
    build_roadmap_prompt,
    calculate_progress,
    fresh_content,
    next_step_suggestions,
    parse_ai_response,
    roadmap_analytics,
    roadmap_profile,
    update_milestone,
)

logger = get_logger(__name__)

router = APIRouter(tags=["roadmap"])

REUSE_WINDOW = timedelta(hours=24)
DEFAULT_REGENERATION_REASON = "User requested regeneration"
SIMILARITY_KEYS = ("current_level", "career_stage", "time_commitment")

ONBOARDING_REQUIRED = {"message": "Please complete your onboarding assessment first", "code": "ONBOARDING_REQUIRED"}
NO_ROADMAP = {"message": "No active roadmap found", "code": "NO_ROADMAP"}
ROADMAP_NOT_FOUND = {"message": "Roadmap not found", "code": "ROADMAP_NOT_FOUND"}
GENERATION_FAILED = "Failed to generate career roadmap"


def _require_onboarding(user: User) -> dict[str, Any]:
    if not user.onboarding_completed or not user.onboarding_data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=ONBOARDING_REQUIRED)
    return roadmap_profile(user)


async def _get_owned_roadmap(session: AsyncSession, roadmap_id: int, user_id: int) -> CareerRoadmap:
    roadmap = await session.get(CareerRoadmap, roadmap_id)
    if roadmap is None or roadmap.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ROADMAP_NOT_FOUND)
    return roadmap


async def _active_roadmap(session: AsyncSession, user_id: int) -> Optional[CareerRoadmap]:
    result = await session.execute(
        select(CareerRoadmap)
        .where(CareerRoadmap.user_id == user_id, CareerRoadmap.status == RoadmapStatus.ACTIVE)
        .order_by(CareerRoadmap.created_at.desc(), CareerRoadmap.id.desc())
    )
    return result.scalars().first()


async def _archive_active(session: AsyncSession, user_id: int) -> None:
    await session.execute(
        update(CareerRoadmap)
        .where(CareerRoadmap.user_id == user_id, CareerRoadmap.status == RoadmapStatus.ACTIVE)
        .values(status=RoadmapStatus.ARCHIVED, updated_at=datetime.utcnow())
    )


def _touch(roadmap: CareerRoadmap) -> None:
    roadmap.access_count += 1
    roadmap.last_accessed = datetime.utcnow()


async def _generate_with_ai(client: GenerativeAIClient, profile: dict[str, Any]) -> tuple[RoadmapContent, str]:
    prompt = build_roadmap_prompt(profile)
    try:
        text = await client.generate(prompt, purpose="roadmap")
        return parse_ai_response(text), prompt
    except (AIServiceError, RoadmapParseError) as e:
        logger.error(f"Roadmap generation failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=GENERATION_FAILED) from e


async def _reusable_content(session: AsyncSession, profile: dict[str, Any], cache_key: str) -> Optional[RoadmapContent]:
    """Content of a recent active roadmap for the same or a similar profile."""
    since = datetime.utcnow() - REUSE_WINDOW
    recent = select(CareerRoadmap).where(
        CareerRoadmap.status == RoadmapStatus.ACTIVE, CareerRoadmap.created_at >= since
    )

    result = await session.execute(
        recent.where(CareerRoadmap.cache_key == cache_key).order_by(CareerRoadmap.created_at.desc())
    )
    existing = result.scalars().first()
    if existing is not None:
        logger.info(f"Reusing roadmap {existing.id} generated for the same profile")
        return existing.to_content()

    result = await session.execute(recent.order_by(CareerRoadmap.created_at.desc()))
    candidates = [
        r
        for r in result.scalars().all()
        if all((r.user_profile or {}).get(key) == profile.get(key) for key in SIMILARITY_KEYS)
    ]
    similar = find_similar(profile, candidates)
    if similar is not None:
        logger.info(f"Reusing roadmap {similar.id} generated for a similar profile")
        return similar.to_content()
    return None


def _new_roadmap(
    user: User,
    profile: dict[str, Any],
    content: RoadmapContent,
    cache_key: str,
    generated_by: dict[str, Any],
    version: int = 1,
) -> CareerRoadmap:
    body = content.model_dump(mode="json")
    return CareerRoadmap(
        user_id=user.id,
        title=body["title"],
        description=body["description"],
        version=version,
        user_profile=profile,
        generated_by=generated_by,
        primary_career_path=body["primary_career_path"],
        alternative_career_paths=body["alternative_career_paths"],
        phases=body["phases"],
        match_score=body["match_score"],
        personalized_recommendations=body["personalized_recommendations"],
        next_steps=body["next_steps"],
        overall_progress=calculate_progress(content.phases),
        cache_key=cache_key,
    )


@router.post(
    "/generate",
    response_model=RoadmapEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Generate Roadmap",
    description="Create a career roadmap from the caller's onboarding answers. Earlier roadmaps are archived.",
    response_description="The new active roadmap.",
    responses={
        201: {"description": "Roadmap generated"},
        400: {"description": "Onboarding not completed (code ONBOARDING_REQUIRED)"},
        502: {"description": "The AI service failed or answered with an unusable roadmap"},
    },
)
async def generate_roadmap(
    user: CurrentUserDep,
    client: AIClientDep,
    cache: RoadmapCacheDep,
    session: AsyncSession = Depends(get_session),
) -> RoadmapEnvelope:
    """
    Generate a roadmap.

    Content is taken from the first source that has it:

    1. the in-process roadmap cache, keyed by the onboarding profile;
    2. an active roadmap created in the last 24 hours for the same profile;
    3. an active roadmap created in the last 24 hours for a similar profile
       (same level, stage and time commitment, similarity above 0.7);
    4. Gemini.
    """
    profile = _require_onboarding(user)
    cache_key = generate_cache_key(profile)
    generated_by: dict[str, Any] = {"model": client.model_name, "generated_at": datetime.utcnow().isoformat()}

    cached = cache.get(cache_key)
    if cached is not None:
        content = RoadmapContent.model_validate(cached)
        generated_by["source"] = "cache"
    else:
        content = await _reusable_content(session, profile, cache_key)
        if content is not None:
            generated_by["source"] = "database"
        else:
            content, prompt = await _generate_with_ai(client, profile)
            generated_by.update(source="ai", prompt=prompt)
        cache.set(cache_key, content.model_dump(mode="json"), user.id)

    await _archive_active(session, user.id)
    roadmap = _new_roadmap(user, profile, fresh_content(content), cache_key, generated_by)
    session.add(roadmap)
    await session.commit()
    await session.refresh(roadmap)

    logger.info(f"Generated roadmap {roadmap.id} for user {user.id} from {generated_by['source']}")
    return RoadmapEnvelope(
        message="Career roadmap generated successfully", roadmap=CareerRoadmapRead.model_validate(roadmap)
    )


@router.get(
    "",
    response_model=RoadmapResponse,
    summary="Get Active Roadmap",
    responses={404: {"description": "No active roadmap (code NO_ROADMAP)"}},
)
async def get_active_roadmap(
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> RoadmapResponse:
    roadmap = await _active_roadmap(session, user.id)
    if roadmap is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NO_ROADMAP)
    _touch(roadmap)
    session.add(roadmap)
    await session.commit()
    await session.refresh(roadmap)
    return RoadmapResponse(roadmap=CareerRoadmapRead.model_validate(roadmap))


@router.get(
    "/all",
    response_model=RoadmapListResponse,
    summary="Roadmap History",
    description="All of the caller's roadmaps, newest first.",
)
async def list_roadmaps(
    user: CurrentUserDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=50),
    session: AsyncSession = Depends(get_session),
) -> RoadmapListResponse:
    statement = (
        select(CareerRoadmap)
        .where(CareerRoadmap.user_id == user.id)
        .order_by(CareerRoadmap.created_at.desc(), CareerRoadmap.id.desc())
    )
    found = await paginate(session, statement, PageParams(page=page, limit=limit))
    return RoadmapListResponse(
        roadmaps=[CareerRoadmapSummary.model_validate(r) for r in found.items],
        pagination=RoadmapPagination(
            current_page=found.page,
            total_pages=found.total_pages,
            total_items=found.total,
            has_next=found.has_next,
            has_prev=found.has_prev,
        ),
    )


@router.put(
    "/{roadmap_id}/milestone/{phase_id}/{milestone_id}",
    response_model=MilestoneUpdateResponse,
    summary="Update Milestone",
    description="Mark a milestone completed or not completed and recompute overall progress.",
    responses={404: {"description": "Roadmap, phase or milestone not found"}},
)
async def update_milestone_progress(
    roadmap_id: int,
    phase_id: str,
    milestone_id: str,
    payload: MilestoneUpdate,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> MilestoneUpdateResponse:
    roadmap = await _get_owned_roadmap(session, roadmap_id, user.id)
    try:
        milestone = update_milestone(roadmap, phase_id, milestone_id, payload.completed, payload.notes)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    session.add(roadmap)
    await session.commit()
    await session.refresh(roadmap)
    return MilestoneUpdateResponse(
        message="Milestone updated successfully",
        overall_progress=roadmap.overall_progress,
        milestone=MilestoneState(
            phase_id=phase_id, milestone_id=milestone.id, completed=milestone.completed, notes=milestone.notes
        ),
    )


@router.post(
    "/regenerate",
    response_model=RoadmapEnvelope,
    summary="Regenerate Roadmap",
    description="Archive the current roadmap and generate a new version with Gemini, bypassing all reuse.",
    responses={
        400: {"description": "Onboarding not completed (code ONBOARDING_REQUIRED)"},
        502: {"description": "The AI service failed or answered with an unusable roadmap"},
    },
)
async def regenerate_roadmap(
    user: CurrentUserDep,
    client: AIClientDep,
    cache: RoadmapCacheDep,
    payload: Optional[RegenerateRequest] = None,
    session: AsyncSession = Depends(get_session),
) -> RoadmapEnvelope:
    profile = _require_onboarding(user)
    reason = (payload.reason if payload else None) or DEFAULT_REGENERATION_REASON
    cache_key = generate_cache_key(profile)

    cache.invalidate_user(user.id)
    content, prompt = await _generate_with_ai(client, profile)
    cache.set(cache_key, content.model_dump(mode="json"), user.id)

    result = await session.execute(select(func.max(CareerRoadmap.version)).where(CareerRoadmap.user_id == user.id))
    version = (result.scalar_one() or 0) + 1

    await _archive_active(session, user.id)
    generated_by = {
        "model": client.model_name,
        "prompt": prompt,
        "generated_at": datetime.utcnow().isoformat(),
        "regeneration_reason": reason,
        "source": "ai",
    }
    roadmap = _new_roadmap(user, profile, content, cache_key, generated_by, version=version)
    session.add(roadmap)
    await session.commit()
    await session.refresh(roadmap)

    logger.info(f"Regenerated roadmap for user {user.id} as version {version}: {reason}")
    return RoadmapEnvelope(
        message="Roadmap regenerated successfully", roadmap=CareerRoadmapRead.model_validate(roadmap)
    )


@router.get(
    "/analytics/progress",
    response_model=ProgressAnalytics,
    summary="Progress Analytics",
    description="Milestone completion per phase for the active roadmap, with focus suggestions.",
)
async def progress_analytics(
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> ProgressAnalytics:
    result = await session.execute(
        select(CareerRoadmap)
        .where(CareerRoadmap.user_id == user.id)
        .order_by(CareerRoadmap.created_at, CareerRoadmap.id)
    )
    return ProgressAnalytics(**roadmap_analytics(result.scalars().all()))


@router.get(
    "/suggestions/next-steps",
    response_model=NextStepSuggestions,
    summary="Next Steps",
    description="The next milestone to work on in each phase, with the top recommendations.",
    responses={404: {"description": "No active roadmap (code NO_ROADMAP)"}},
)
async def next_steps(
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> NextStepSuggestions:
    roadmap = await _active_roadmap(session, user.id)
    if roadmap is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NO_ROADMAP)
    return NextStepSuggestions(**next_step_suggestions(roadmap))


@router.get(
    "/{roadmap_id}",
    response_model=RoadmapResponse,
    summary="Get Roadmap",
    responses={404: {"description": "Roadmap not found (code ROADMAP_NOT_FOUND)"}},
)
async def get_roadmap(
    roadmap_id: int,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> RoadmapResponse:
    roadmap = await _get_owned_roadmap(session, roadmap_id, user.id)
    _touch(roadmap)
    session.add(roadmap)
    await session.commit()
    await session.refresh(roadmap)
    return RoadmapResponse(roadmap=CareerRoadmapRead.model_validate(roadmap))


@router.delete(
    "/{roadmap_id}",
    response_model=MessageResponse,
    summary="Archive Roadmap",
    description="Roadmaps are archived rather than deleted.",
    responses={404: {"description": "Roadmap not found (code ROADMAP_NOT_FOUND)"}},
)
async def archive_roadmap(
    roadmap_id: int,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    roadmap = await _get_owned_roadmap(session, roadmap_id, user.id)
    roadmap.status = RoadmapStatus.ARCHIVED
    roadmap.updated_at = datetime.utcnow()
    session.add(roadmap)
    await session.commit()
    return MessageResponse(message="Roadmap archived successfully")


@router.post(
    "/{roadmap_id}/feedback",
    response_model=FeedbackResponse,
    summary="Roadmap Feedback",
    description="Rate a roadmap from 1 to 5. Submitting again replaces the earlier feedback.",
    responses={404: {"description": "Roadmap not found (code ROADMAP_NOT_FOUND)"}},
)
async def submit_feedback(
    roadmap_id: int,
    payload: RoadmapFeedbackRequest,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> FeedbackResponse:
    roadmap = await _get_owned_roadmap(session, roadmap_id, user.id)
    roadmap.feedback = {**payload.model_dump(), "submitted_at": datetime.utcnow().isoformat()}
    roadmap.updated_at = datetime.utcnow()
    session.add(roadmap)
    await session.commit()
    return FeedbackResponse(message="Feedback submitted successfully", feedback_id=roadmap.id)


@router.get(
    "/{roadmap_id}/mindmap",
    response_model=MindmapNode,
    summary="Roadmap Mindmap",
    description="The roadmap as a tree: career, phases, milestones and resources.",
    responses={404: {"description": "Roadmap not found (code ROADMAP_NOT_FOUND)"}},
)
async def roadmap_mindmap(
    roadmap_id: int,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> MindmapNode:
    roadmap = await _get_owned_roadmap(session, roadmap_id, user.id)
    return build_mindmap(roadmap)
