"""
AI career counseling.

Builds the counselor prompts, calls Gemini through ``GenerativeAIClient`` and
turns failures into friendly fallback answers, so that a chat turn always
produces a bot message.
"""

import json
import re
from datetime import datetime
from typing import Any, Optional, Sequence

from pydantic import BaseModel, Field

from careerpath.core.logging_config import get_logger
from careerpath.core.monitoring import log_ai_fallback
from careerpath.server.models.user import User
from careerpath.server.services.ai_client import AIServiceError, GenerativeAIClient

logger = get_logger(__name__)

SYSTEM_CONTEXT = """You are an expert AI Career Counselor with extensive knowledge in career development, education pathways, and professional growth. Your role is to provide personalized, helpful, and encouraging career guidance.

Key responsibilities:
- Provide career advice and guidance based on user's background and goals
- Suggest relevant courses, certifications, and learning paths
- Help with resume building, interview preparation, and job search strategies
- Assist with career transitions and skill development planning
- Offer salary insights and industry trends
- Provide mental health support for career-related stress
- Give actionable, practical advice that users can implement

Communication style:
- Be supportive, encouraging, and professional
- Ask follow-up questions to better understand user needs
- Provide specific, actionable recommendations
- Use examples and real-world scenarios when helpful
- Keep responses concise but comprehensive
- Show empathy for career challenges

Remember to personalize your responses based on the user's profile and conversation history."""

CLOSING_INSTRUCTION = (
    "Please provide a helpful, specific, and encouraging response to assist with their career development. "
    "Keep the response conversational and under 200 words unless they specifically ask for detailed information."
)

HISTORY_WINDOW = 5

FALLBACK_PREFIX = "I apologize, but I'm experiencing some technical difficulties right now. "
FALLBACK_QUOTA = (
    "Due to high demand, please try again in a few moments. "
    "In the meantime, I'd be happy to help you think through your career questions step by step."
)
FALLBACK_SAFETY = (
    "Let me rephrase that to better assist you with your career goals. "
    "What specific aspect of your career would you like to focus on today?"
)
FALLBACK_GENERIC = (
    "However, I'm still here to help with your career questions. "
    "Could you please rephrase your question, and I'll do my best to provide guidance?"
)

ANALYSIS_FALLBACK = (
    "I apologize, but I'm unable to complete the analysis right now. However, based on your responses, "
    "I encourage you to continue exploring your interests and consider speaking with a career counselor "
    "for personalized guidance."
)

FALLBACK_QUESTIONS: list[dict[str, Any]] = [
    {"id": 1, "question": "What motivates you most in your work or studies?", "category": "motivation"},
    {"id": 2, "question": "Where do you see yourself in 5 years professionally?", "category": "goals"},
    {"id": 3, "question": "What type of work environment do you thrive in?", "category": "preferences"},
    {"id": 4, "question": "What are your strongest skills or talents?", "category": "skills"},
    {"id": 5, "question": "What challenges are you currently facing in your career journey?", "category": "challenges"},
]

_FENCE_RE = re.compile(r"```(?:json)?")


class CounselingReply(BaseModel):
    success: bool
    response: str
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class AssessmentQuestions(BaseModel):
    success: bool
    questions: list[dict[str, Any]] = []
    error: Optional[str] = None


class AssessmentAnalysis(BaseModel):
    success: bool
    analysis: str
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)


def counseling_profile(user: User) -> Optional[dict[str, Any]]:
    """Flatten onboarding answers and profile extras into the prompt profile."""
    onboarding = user.onboarding_data or {}
    profile = user.profile or {}
    if not onboarding and not profile:
        return None
    return {
        "current_level": onboarding.get("current_level"),
        "career_stage": onboarding.get("career_stage"),
        "interests": onboarding.get("interests") or [],
        "goals": onboarding.get("goals") or [],
        "current_skills": profile.get("current_skills") or [],
        "experience": profile.get("experience"),
    }


def build_counseling_prompt(
    message: str,
    profile: Optional[dict[str, Any]] = None,
    history: Sequence[dict[str, Any]] = (),
) -> str:
    """
    Assemble the counselor prompt.

    Args:
        message: The user's current question.
        profile: Output of ``counseling_profile``; empty fields are skipped.
        history: Earlier messages as ``{"type": "user"|"bot", "content": ...}``,
            oldest first. Only the last five are included.
    """
    prompt = SYSTEM_CONTEXT + "\n\n"

    if profile:
        prompt += "User Profile Context:\n"
        if profile.get("current_level"):
            prompt += f"Education Level: {profile['current_level']}\n"
        if profile.get("career_stage"):
            prompt += f"Career Stage: {profile['career_stage']}\n"
        if profile.get("interests"):
            prompt += f"Interests: {', '.join(profile['interests'])}\n"
        if profile.get("goals"):
            prompt += f"Goals: {', '.join(profile['goals'])}\n"
        if profile.get("current_skills"):
            prompt += f"Current Skills: {', '.join(profile['current_skills'])}\n"
        if profile.get("experience"):
            prompt += f"Experience: {profile['experience']}\n"
        prompt += "\n"

    if history:
        prompt += "Recent Conversation Context:\n"
        for entry in list(history)[-HISTORY_WINDOW:]:
            speaker = "User" if entry.get("type") == "user" else "Assistant"
            prompt += f"{speaker}: {entry.get('content', '')}\n"
        prompt += "\n"

    prompt += f"Current User Question: {message}\n\n"
    prompt += CLOSING_INSTRUCTION
    return prompt


def fallback_response(error_message: str) -> str:
    """Pick the canned answer matching the failure reason."""
    lowered = error_message.lower()
    if "quota" in lowered or "limit" in lowered:
        return FALLBACK_PREFIX + FALLBACK_QUOTA
    if "safety" in lowered or "blocked" in lowered:
        return FALLBACK_PREFIX + FALLBACK_SAFETY
    return FALLBACK_PREFIX + FALLBACK_GENERIC


async def generate_counseling_response(
    client: GenerativeAIClient,
    message: str,
    profile: Optional[dict[str, Any]] = None,
    history: Sequence[dict[str, Any]] = (),
) -> CounselingReply:
    """Answer a counseling message. Never raises; failures yield a fallback reply."""
    prompt = build_counseling_prompt(message, profile, history)
    try:
        text = await client.generate(prompt, purpose="counseling")
    except AIServiceError as e:
        logger.warning(f"Counseling response fell back: {e}")
        log_ai_fallback("counseling", str(e))
        return CounselingReply(success=False, response=fallback_response(str(e)), error=str(e))
    return CounselingReply(success=True, response=text)


def _strip_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


async def generate_assessment_questions(
    client: GenerativeAIClient, profile: Optional[dict[str, Any]] = None
) -> AssessmentQuestions:
    """
    Ask Gemini for five personalised assessment questions.

    An unparsable answer is replaced by ``FALLBACK_QUESTIONS``; a failed call
    is reported with ``success=False``.
    """
    profile_text = json.dumps(profile, indent=2) if profile else "No profile data available"
    prompt = f"""{SYSTEM_CONTEXT}

Based on the following user profile, generate 5 thoughtful career assessment questions that would help provide better career guidance:

User Profile:
{profile_text}

Generate questions that are:
- Specific to their background and goals
- Designed to uncover career preferences and motivations
- Helpful for providing personalized recommendations
- Easy to understand and answer

Format as a JSON array of question objects with "id", "question", and "category" fields."""

    try:
        text = await client.generate(prompt, purpose="assessment_questions")
    except AIServiceError as e:
        logger.error(f"Error generating assessment questions: {e}")
        return AssessmentQuestions(success=False, error=str(e))

    try:
        questions = json.loads(_strip_fences(text))
    except json.JSONDecodeError:
        logger.info("Assessment questions were not valid JSON, using fallback questions")
        log_ai_fallback("assessment_questions", "unparsable response")
        return AssessmentQuestions(success=True, questions=FALLBACK_QUESTIONS)

    if not isinstance(questions, list) or not all(isinstance(q, dict) for q in questions):
        log_ai_fallback("assessment_questions", "response is not a list of objects")
        return AssessmentQuestions(success=True, questions=FALLBACK_QUESTIONS)
    return AssessmentQuestions(success=True, questions=questions)


async def analyze_user_responses(
    client: GenerativeAIClient,
    responses: list[Any],
    profile: Optional[dict[str, Any]] = None,
) -> AssessmentAnalysis:
    """Turn assessment answers into a written analysis."""
    prompt = f"""{SYSTEM_CONTEXT}

Analyze the following user responses to provide career insights and recommendations:

User Profile: {json.dumps(profile, indent=2)}

User Responses: {json.dumps(responses, indent=2, default=str)}

Provide a comprehensive analysis including:
1. Key insights about their career preferences
2. Recommended career paths or directions
3. Skills to develop
4. Next action steps
5. Resources or courses to consider

Format the response as a structured analysis that's encouraging and actionable."""

    try:
        text = await client.generate(prompt, purpose="assessment_analysis")
    except AIServiceError as e:
        logger.error(f"Error analyzing user responses: {e}")
        log_ai_fallback("assessment_analysis", str(e))
        return AssessmentAnalysis(success=False, analysis=ANALYSIS_FALLBACK, error=str(e))
    return AssessmentAnalysis(success=True, analysis=text)
