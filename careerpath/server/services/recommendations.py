"""Interest based career suggestions shown on the dashboard."""

from typing import Any

MAX_RECOMMENDATIONS = 3

CAREERS_BY_INTEREST: list[tuple[str, list[dict[str, Any]]]] = [
    (
        "technology",
        [
            {
                "title": "Software Developer",
                "description": "Build applications and systems using various programming languages",
                "match": 95,
                "salary": "$75,000 - $120,000",
                "growth": "Excellent",
            },
            {
                "title": "Data Scientist",
                "description": "Analyze complex data to help organizations make informed decisions",
                "match": 88,
                "salary": "$85,000 - $140,000",
                "growth": "Excellent",
            },
        ],
    ),
    (
        "creative",
        [
            {
                "title": "UX/UI Designer",
                "description": "Design user-friendly interfaces and experiences for digital products",
                "match": 92,
                "salary": "$65,000 - $110,000",
                "growth": "Very Good",
            }
        ],
    ),
    (
        "business",
        [
            {
                "title": "Product Manager",
                "description": "Guide product development from conception to launch",
                "match": 87,
                "salary": "$90,000 - $150,000",
                "growth": "Excellent",
            }
        ],
    ),
    (
        "healthcare",
        [
            {
                "title": "Healthcare Data Analyst",
                "description": "Use data to improve healthcare outcomes and efficiency",
                "match": 85,
                "salary": "$60,000 - $90,000",
                "growth": "Very Good",
            }
        ],
    ),
]

ASSESSMENT_PROMPT_CARD: dict[str, Any] = {
    "title": "Complete Your Assessment",
    "description": "Take our detailed career assessment to get personalized recommendations",
    "match": 0,
    "salary": "Varies",
    "growth": "Complete assessment to see recommendations",
}


def career_recommendations(onboarding_completed: bool, onboarding_data: Any) -> list[dict[str, Any]]:
    """Pick up to three careers matching the onboarding interests, in table order."""
    picks: list[dict[str, Any]] = []
    if onboarding_completed and onboarding_data:
        interests = set(onboarding_data.get("interests") or [])
        for interest, careers in CAREERS_BY_INTEREST:
            if interest in interests:
                picks.extend(dict(career) for career in careers)

    if not picks:
        return [dict(ASSESSMENT_PROMPT_CARD)]
    return picks[:MAX_RECOMMENDATIONS]
