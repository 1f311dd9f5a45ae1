"""
Career roadmap generation and progress tracking.

Generation is a three step pipeline:

1. ``build_roadmap_prompt`` renders the user's onboarding answers into the
   Gemini prompt, including the JSON format the answer must follow.
2. The AI answer is fetched by the caller (see ``GenerativeAIClient``).
3. ``parse_ai_response`` repairs, validates and normalizes the answer into
   a ``RoadmapContent`` document.

The remaining helpers work on stored roadmaps: milestone updates, progress
totals, analytics and next-step suggestions.
"""

import json
import re
from datetime import datetime, timedelta
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from careerpath.core.logging_config import get_logger
from careerpath.server.models.roadmap import (
    MILESTONE_CATEGORIES,
    PRIORITIES,
    RECOMMENDATION_CATEGORIES,
    CareerRoadmap,
    Milestone,
    Phase,
    RoadmapContent,
    RoadmapStatus,
)
from careerpath.server.models.user import User

logger = get_logger(__name__)

MILESTONE_CATEGORY_FIXES = {
    "projects": "project",
    "certifications": "certification",
    "skills": "skill",
    "tools": "tool",
    "educations": "education",
    "experiences": "experience",
}
RECOMMENDATION_CATEGORY_FIXES = {
    "skill": "skills",
    "tool": "tools",
    "certification": "certifications",
    "project": "projects",
}
PRIORITY_ORDER = {"high": 3, "medium": 2, "low": 1}

STALE_PROGRESS_WINDOW = timedelta(days=30)
MAX_SUGGESTIONS = 3

_FENCE_RE = re.compile(r"```(?:json)?")


class RoadmapParseError(ValueError):
    """The AI answer could not be turned into a roadmap."""


def roadmap_profile(user: User) -> dict[str, Any]:
    """Snapshot of the profile fields a roadmap is generated from."""
    onboarding = user.onboarding_data or {}
    profile = user.profile or {}
    return {
        "current_level": onboarding.get("current_level"),
        "career_stage": onboarding.get("career_stage"),
        "interests": list(onboarding.get("interests") or []),
        "goals": list(onboarding.get("goals") or []),
        "preferred_learning_style": onboarding.get("preferred_learning_style"),
        "time_commitment": onboarding.get("time_commitment"),
        "current_skills": list(profile.get("current_skills") or []),
        "experience": profile.get("experience") or "",
    }


def build_roadmap_prompt(onboarding: dict[str, Any], year: Optional[int] = None) -> str:
    """Render the roadmap generation prompt for a set of onboarding answers."""
    current_year = year or datetime.utcnow().year
    interests = ", ".join(onboarding.get("interests") or [])
    goals = ", ".join(onboarding.get("goals") or [])

    return f"""Generate a comprehensive, personalized career roadmap for a user with the following profile:

**USER PROFILE:**
- Current Level: {onboarding.get("current_level")}
- Career Stage: {onboarding.get("career_stage")}
- Interests: {interests}
- Goals: {goals}
- Learning Style: {onboarding.get("preferred_learning_style")}
- Time Commitment: {onboarding.get("time_commitment")} per week

**CURRENT MARKET CONTEXT ({current_year}):**
- Include latest industry trends and emerging technologies
- Consider remote work opportunities and digital transformation
- Factor in AI/automation impact on careers
- Include sustainable and green career options
- Consider post-pandemic job market changes

**REQUIRED OUTPUT FORMAT (JSON):**
{{
  "title": "Personalized Career Roadmap",
  "description": "Brief overview of the recommended career path",
  "primaryCareerPath": {{
    "title": "Primary recommended career",
    "description": "Detailed description",
    "industry": "Industry name",
    "level": "entry|mid|senior|executive",
    "averageSalary": {{"min": 50000, "max": 120000, "currency": "USD"}},
    "growthOutlook": "excellent|very good|good|fair|poor",
    "keySkills": [{{"name": "Skill name", "importance": "essential|important|nice-to-have"}}],
    "timeToEntry": "6-12 months"
  }},
  "alternativeCareerPaths": [],
  "phases": [
    {{
      "id": "phase_1",
      "title": "Foundation Phase",
      "description": "Building fundamental skills",
      "estimatedDuration": "3-6 months",
      "order": 1,
      "milestones": [
        {{
          "id": "milestone_1_1",
          "title": "Learn Programming Fundamentals",
          "description": "Master basic programming concepts",
          "category": "skill",
          "estimatedDuration": "2 months",
          "priority": "high",
          "prerequisites": [],
          "resources": [
            {{
              "type": "course",
              "title": "Resource name",
              "url": "https://example.com",
              "description": "Resource description",
              "cost": "Free",
              "rating": 4.5
            }}
          ],
          "skills": [{{"name": "JavaScript", "level": "beginner"}}]
        }}
      ]
    }}
  ],
  "matchScore": 85,
  "personalizedRecommendations": [
    {{"type": "Focus on visual learning resources given your preference", "category": "learning", "priority": "high"}}
  ],
  "nextSteps": [
    {{"action": "Enroll in a JavaScript fundamentals course", "deadline": "{current_year}-10-01", "importance": "critical"}}
  ]
}}

**IMPORTANT VALIDATION RULES:**
- personalizedRecommendations.category MUST be one of: {_quoted(RECOMMENDATION_CATEGORIES)}
- milestones.category MUST be one of: {_quoted(MILESTONE_CATEGORIES)}
- All priority fields MUST be: "high", "medium", or "low"
- All deadline dates MUST be in YYYY-MM-DD format
- All importance fields MUST be: "critical", "important", or "optional"
- For milestones: Use "project" (singular), "skill" (singular), "certification" (singular), "tool" (singular)
- For recommendations: Use "projects" (plural), "skills" (plural), "certifications" (plural), "tools" (plural)

**CUSTOMIZATION REQUIREMENTS:**
1. **Learning Style Adaptation:**
   - Visual: Include infographics, video courses, visual programming tools
   - Hands-on: Emphasize projects, labs, internships
   - Reading: Focus on books, documentation, written tutorials
   - Interactive: Include coding bootcamps, workshops, mentorship

2. **Time Commitment Optimization:**
   - 1-2 hours: Micro-learning, short courses, daily practice
   - 3-5 hours: Structured courses, part-time programs
   - 6-10 hours: Intensive bootcamps, accelerated programs
   - 10+ hours: Full-time education, immersive experiences

3. **Goal Alignment:**
   - High salary: Focus on high-demand skills, negotiation skills
   - Work-life balance: Remote-friendly careers, flexible industries
   - Job security: Evergreen skills, recession-proof industries
   - Creativity: Design, content creation, innovation roles
   - Impact: Non-profit, social good, sustainability careers
   - Flexibility: Freelancing, consulting, entrepreneurship

4. **Interest-Based Specialization:**
   - Technology: Software dev, data science, cybersecurity, AI/ML
   - Creative: UX/UI design, digital marketing, content creation
   - Business: Product management, consulting, finance, analytics
   - Science: Research, biotech, environmental science, data analysis
   - Healthcare: Health informatics, telemedicine, biomedical engineering

5. **Current Level Considerations:**
   - High School: Foundation courses, career exploration, internships
   - College: Major selection, internships, skill building, networking
   - Graduate: Specialization, advanced projects, industry connections
   - Professional: Career transition, skill updates, leadership development

**CRITICAL: Response must be complete, valid JSON only. No comments or incomplete sections.**

Create exactly 2 phases with 2 milestones each:
- Phase 1: Foundation (0-6 months) - Basic skills
- Phase 2: Application (6-12 months) - Practice and portfolio

Requirements:
- Maximum 2 career alternatives
- Each milestone: max 2 resources
- Resource types must be one of: "course", "book", "website", "certification", "tool", "practice", "youtube", "video", "tutorial", "documentation", "platform", "guide"
- Complete all JSON arrays properly
- Must be parseable JSON

Return ONLY the complete JSON object, no markdown or extra text."""


def _quoted(values) -> str:
    return ", ".join(f'"{value}"' for value in sorted(values))


def _repair_truncated(text: str) -> str:
    """Cut a truncated answer after its last complete object or array and close it."""
    if text.endswith("}"):
        return text
    logger.warning("AI response appears truncated, attempting to repair it")
    last_complete = max(text.rfind("]}"), text.rfind('"}'), text.rfind("}]"))
    if last_complete > 0:
        return text[: last_complete + 2] + "\n}"
    return text


def _get(data: dict[str, Any], snake: str, camel: str) -> Any:
    return data.get(snake, data.get(camel))


def _normalize(data: dict[str, Any]) -> None:
    for phase in data["phases"]:
        for milestone in phase["milestones"]:
            if not isinstance(milestone, dict) or not milestone.get("category"):
                continue
            category = milestone["category"]
            if isinstance(category, str) and category in MILESTONE_CATEGORY_FIXES:
                milestone["category"] = MILESTONE_CATEGORY_FIXES[category]
            elif not isinstance(category, str) or category not in MILESTONE_CATEGORIES:
                logger.warning(f"Invalid milestone category {category!r}, changing to 'skill'")
                milestone["category"] = "skill"

    recommendations = _get(data, "personalized_recommendations", "personalizedRecommendations")
    if not isinstance(recommendations, list):
        return
    for rec in recommendations:
        if not isinstance(rec, dict):
            continue
        category = rec.get("category")
        if category:
            if isinstance(category, str) and category in RECOMMENDATION_CATEGORY_FIXES:
                rec["category"] = RECOMMENDATION_CATEGORY_FIXES[category]
            elif not isinstance(category, str) or category not in RECOMMENDATION_CATEGORIES:
                logger.warning(f"Invalid recommendation category {category!r}, changing to 'career'")
                rec["category"] = "career"
        priority = rec.get("priority")
        if priority and (not isinstance(priority, str) or priority not in PRIORITIES):
            rec["priority"] = "medium"


def _validate_structure(data: Any) -> None:
    if not isinstance(data, dict):
        raise ValueError("Roadmap must be a JSON object")
    for snake, camel in (
        ("title", "title"),
        ("description", "description"),
        ("primary_career_path", "primaryCareerPath"),
        ("phases", "phases"),
    ):
        if not _get(data, snake, camel):
            raise ValueError(f"Missing required field: {camel}")

    phases = data["phases"]
    if not isinstance(phases, list) or not phases:
        raise ValueError("Phases must be a non-empty array")
    for index, phase in enumerate(phases):
        if not isinstance(phase, dict) or not isinstance(phase.get("milestones"), list):
            raise ValueError(f"Phase {index} missing milestones array")


def parse_ai_response(text: str) -> RoadmapContent:
    """
    Turn a raw Gemini answer into a validated roadmap.

    Raises:
        RoadmapParseError: The answer is not (repairable) JSON or lacks the
            required structure.
    """
    cleaned = _repair_truncated(_FENCE_RE.sub("", text).strip())
    try:
        data = json.loads(cleaned)
        _validate_structure(data)
        _normalize(data)
        return RoadmapContent.model_validate(data)
    except (json.JSONDecodeError, ValueError, TypeError, ValidationError) as e:
        logger.error(f"Failed to parse AI response ({len(text)} chars): {e}")
        logger.debug(f"Raw AI response preview: {text[:500]}...")
        raise RoadmapParseError("Invalid AI response format") from e


def calculate_progress(phases: Sequence[Phase]) -> dict[str, Any]:
    """Overall milestone completion across all phases."""
    total = sum(len(phase.milestones) for phase in phases)
    completed = sum(1 for phase in phases for milestone in phase.milestones if milestone.completed)
    return {
        "completed_milestones": completed,
        "total_milestones": total,
        "percentage_complete": round(completed / total * 100) if total else 0,
        "last_updated": datetime.utcnow().isoformat(),
    }


def dump_phases(phases: Sequence[Phase]) -> list[dict[str, Any]]:
    return [phase.model_dump(mode="json") for phase in phases]


def fresh_content(content: RoadmapContent) -> RoadmapContent:
    """Copy of ``content`` with every milestone back to not started."""
    copy = content.model_copy(deep=True)
    for phase in copy.phases:
        for milestone in phase.milestones:
            milestone.completed = False
            milestone.completed_at = None
            milestone.notes = None
    return copy


def update_milestone(
    roadmap: CareerRoadmap,
    phase_id: str,
    milestone_id: str,
    completed: bool,
    notes: Optional[str] = None,
) -> Milestone:
    """
    Mark a milestone (not) completed and refresh the roadmap's progress.

    Raises:
        LookupError: "Phase not found" or "Milestone not found".
    """
    phases = [Phase.model_validate(phase) for phase in roadmap.phases]

    phase = next((p for p in phases if p.id == phase_id), None)
    if phase is None:
        raise LookupError("Phase not found")
    milestone = next((m for m in phase.milestones if m.id == milestone_id), None)
    if milestone is None:
        raise LookupError("Milestone not found")

    milestone.completed = completed
    if completed:
        milestone.completed_at = datetime.utcnow()
        if notes:
            milestone.notes = notes
    else:
        milestone.completed_at = None
        milestone.notes = notes

    # JSON columns are only written back when a new object is assigned
    roadmap.phases = dump_phases(phases)
    roadmap.overall_progress = calculate_progress(phases)
    roadmap.updated_at = datetime.utcnow()
    return milestone


def _progress_recommendations(phases: Sequence[Phase], completed_total: int) -> list[dict[str, Any]]:
    recommendations: list[dict[str, Any]] = []
    for phase in phases:
        pending = [m for m in phase.milestones if not m.completed and m.priority == "high"]
        if pending:
            recommendations.append(
                {
                    "type": f"Focus on high-priority milestones in {phase.title}",
                    "category": "learning",
                    "priority": "high",
                    "action": f"Complete {pending[0].title}",
                }
            )

    cutoff = datetime.utcnow() - STALE_PROGRESS_WINDOW
    recent = [
        m
        for phase in phases
        for m in phase.milestones
        if m.completed and m.completed_at and m.completed_at.replace(tzinfo=None) > cutoff
    ]
    if not recent and completed_total > 0:
        recommendations.append(
            {
                "type": "Re-engage with your roadmap - no recent progress detected",
                "category": "motivation",
                "priority": "medium",
                "action": "Review and update your next steps",
            }
        )
    return recommendations[:MAX_SUGGESTIONS]


def roadmap_analytics(roadmaps: Sequence[CareerRoadmap]) -> dict[str, Any]:
    """
    Progress analytics over a user's roadmaps, oldest first.

    Figures are computed on the active roadmap, or the newest one when none
    is active.
    """
    if not roadmaps:
        return {
            "total_roadmaps": 0,
            "completed_milestones": 0,
            "total_milestones": 0,
            "average_progress": 0,
            "most_active_phase": None,
            "phase_progress": [],
            "recommendations": [],
        }

    target = next((r for r in roadmaps if r.status == RoadmapStatus.ACTIVE), roadmaps[-1])
    phases = [Phase.model_validate(phase) for phase in target.phases]

    phase_progress = []
    for phase in phases:
        done = sum(1 for m in phase.milestones if m.completed)
        total = len(phase.milestones)
        phase_progress.append(
            {
                "phase_id": phase.id,
                "title": phase.title,
                "completed": done,
                "total": total,
                "percentage": round(done / total * 100) if total else 0,
            }
        )

    most_active = None
    for entry in phase_progress:
        if most_active is None or entry["completed"] > most_active["completed"]:
            most_active = entry

    total_milestones = sum(entry["total"] for entry in phase_progress)
    completed_milestones = sum(entry["completed"] for entry in phase_progress)

    return {
        "total_roadmaps": len(roadmaps),
        "completed_milestones": completed_milestones,
        "total_milestones": total_milestones,
        "average_progress": round(completed_milestones / total_milestones * 100) if total_milestones else 0,
        "most_active_phase": most_active,
        "phase_progress": phase_progress,
        "recommendations": _progress_recommendations(phases, completed_milestones),
    }


def next_step_suggestions(roadmap: CareerRoadmap) -> dict[str, Any]:
    """The next milestone to work on per phase plus the top recommendations."""
    next_milestones = []
    for phase in (Phase.model_validate(p) for p in roadmap.phases):
        pending = [m for m in phase.milestones if not m.completed]
        if pending:
            best = max(pending, key=lambda m: PRIORITY_ORDER.get(m.priority, 0))
            next_milestones.append(
                {
                    "phase_title": phase.title,
                    "milestone": best.model_dump(mode="json"),
                    "reason": f"Next high-priority milestone in {phase.title}",
                }
            )
        if len(next_milestones) >= MAX_SUGGESTIONS:
            break

    return {
        "next_milestones": next_milestones,
        "recommendations": roadmap.personalized_recommendations[:MAX_SUGGESTIONS],
        "next_steps": roadmap.next_steps[:MAX_SUGGESTIONS],
    }
