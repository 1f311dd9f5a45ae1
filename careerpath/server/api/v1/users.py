"""
API endpoints for the signed-in user's own account.

Covers the onboarding wizard, profile and notification preferences, and the
dashboard widgets (stats, activity feed, badges and career suggestions).
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from careerpath.core.logging_config import get_logger
from careerpath.server.core.database import get_session
from careerpath.server.models.user import Activity, ActivityType, UserRead
from careerpath.server.schemas.users import (
    ActivityItem,
    BadgesResponse,
    CareerRecommendation,
    OnboardingData,
    OnboardingResponse,
    PreferencesResponse,
    PreferencesUpdate,
    ProfileResponse,
    ProfileUpdate,
    UserEnvelope,
    UserStats,
)
from careerpath.server.services.deps import CurrentUserDep
from careerpath.server.services.recommendations import career_recommendations

logger = get_logger(__name__)

router = APIRouter(tags=["user"])

ONBOARDING_BADGE = {
    "name": "Onboarding Complete",
    "description": "Successfully completed the career assessment",
    "icon": "target",
}
ONBOARDING_POINTS = 50
ACTIVITY_FEED_SIZE = 10
ACTIVITY_TIME_FORMAT = "%b %d, %I:%M %p"


@router.post(
    "/onboarding",
    response_model=OnboardingResponse,
    summary="Complete Onboarding",
    description="Store the onboarding wizard answers and mark onboarding as completed.",
    response_description="The updated user.",
    responses={
        200: {"description": "Onboarding stored"},
        400: {"description": "Invalid onboarding answers"},
    },
)
async def complete_onboarding(
    payload: OnboardingData,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> OnboardingResponse:
    """
    Complete onboarding.

    The first completion awards the "Onboarding Complete" badge; every
    completion logs an activity worth 50 points.

    - **current_level**: high-school, college, graduate or professional.
    - **career_stage**: exploring, deciding, switching or advancing.
    - **interests** / **goals**: Non-empty lists.
    - **preferred_learning_style**: visual, hands-on, reading or interactive.
    - **time_commitment**: 1-2-hours, 3-5-hours, 6-10-hours or 10-plus-hours.
    """
    user.onboarding_data = payload.model_dump(mode="json")
    user.onboarding_completed = True

    if not any(badge.get("name") == ONBOARDING_BADGE["name"] for badge in user.badges):
        user.badges = [*user.badges, {**ONBOARDING_BADGE, "earned_at": datetime.utcnow().isoformat()}]
        stats = dict(user.stats)
        stats["total_badges"] = stats.get("total_badges", 0) + 1
        user.stats = stats

    user.updated_at = datetime.utcnow()
    session.add(user)
    session.add(
        Activity(
            user_id=user.id,
            type=ActivityType.ONBOARDING_COMPLETED,
            title="Completed onboarding",
            description="Finished career assessment and preferences setup",
            points=ONBOARDING_POINTS,
        )
    )
    await session.commit()
    await session.refresh(user)
    logger.info(f"User {user.id} completed onboarding")
    return OnboardingResponse(message="Onboarding completed successfully", user=UserRead.model_validate(user))


@router.get(
    "/profile",
    response_model=UserEnvelope,
    summary="Get Profile",
    description="Return the signed-in user's account and profile.",
)
async def get_profile(user: CurrentUserDep) -> UserEnvelope:
    return UserEnvelope(user=UserRead.model_validate(user))


@router.put(
    "/profile",
    response_model=ProfileResponse,
    summary="Update Profile",
    description="Update display name, photo, skills and experience. Omitted fields are left unchanged.",
    responses={400: {"description": "Invalid profile data"}},
)
async def update_profile(
    payload: ProfileUpdate,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> ProfileResponse:
    """
    Update the profile.

    - **name**: Display name.
    - **photo_url**: Avatar URL.
    - **current_skills**: Skills used to personalize AI counseling.
    - **experience**: Free-text work experience.
    """
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is not None:
        user.name = changes["name"]
    if "photo_url" in changes:
        user.photo_url = changes["photo_url"]

    profile = dict(user.profile)
    for key in ("current_skills", "experience"):
        if key in changes:
            profile[key] = changes[key]
    user.profile = profile

    user.updated_at = datetime.utcnow()
    session.add(user)
    session.add(
        Activity(
            user_id=user.id,
            type=ActivityType.PROFILE_UPDATED,
            title="Updated profile",
            description="Profile details were updated",
            activity_metadata={"fields": sorted(changes)},
        )
    )
    await session.commit()
    await session.refresh(user)
    return ProfileResponse(message="Profile updated successfully", user=UserRead.model_validate(user))


@router.get(
    "/stats",
    response_model=UserStats,
    summary="Get Stats",
    description="Learning statistics shown on the dashboard.",
)
async def get_stats(user: CurrentUserDep) -> UserStats:
    stats = user.stats or {}
    return UserStats(
        completed_courses=stats.get("completed_courses") or 0,
        total_badges=stats.get("total_badges") or len(user.badges),
        study_hours=stats.get("study_hours") or 0,
        current_streak=stats.get("current_streak") or 0,
    )


@router.get(
    "/activity",
    response_model=list[ActivityItem],
    summary="Get Recent Activity",
    description="The 10 most recent activity feed entries, newest first.",
)
async def get_activity(
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> list[ActivityItem]:
    statement = (
        select(Activity)
        .where(Activity.user_id == user.id)
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .limit(ACTIVITY_FEED_SIZE)
    )
    result = await session.execute(statement)
    return [
        ActivityItem(
            type=activity.type.value,
            title=activity.title,
            description=activity.description,
            time=activity.created_at.strftime(ACTIVITY_TIME_FORMAT),
            points=activity.points,
        )
        for activity in result.scalars().all()
    ]


@router.get(
    "/recommendations",
    response_model=list[CareerRecommendation],
    summary="Get Career Recommendations",
    description="Up to three careers matching the onboarding interests.",
)
async def get_recommendations(user: CurrentUserDep) -> list[CareerRecommendation]:
    picks = career_recommendations(user.onboarding_completed, user.onboarding_data)
    return [CareerRecommendation(**pick) for pick in picks]


@router.get(
    "/badges",
    response_model=BadgesResponse,
    summary="Get Badges",
    description="Badges earned by the user.",
)
async def get_badges(user: CurrentUserDep) -> BadgesResponse:
    return BadgesResponse(badges=user.badges, total_badges=len(user.badges))


@router.put(
    "/preferences",
    response_model=PreferencesResponse,
    summary="Update Preferences",
    description="Update notification preferences. Omitted flags are left unchanged.",
    responses={400: {"description": "Preference values must be booleans"}},
)
async def update_preferences(
    payload: PreferencesUpdate,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> PreferencesResponse:
    """
    Update notification preferences.

    - **email_notifications**: E-mail notifications on/off.
    - **push_notifications**: Push notifications on/off.
    - **weekly_report**: Weekly progress e-mail on/off.
    """
    preferences = dict(user.preferences)
    preferences.update({key: value for key, value in payload.model_dump().items() if value is not None})
    user.preferences = preferences
    user.updated_at = datetime.utcnow()
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return PreferencesResponse(message="Preferences updated successfully", preferences=user.preferences)
