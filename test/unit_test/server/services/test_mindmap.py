"""Unit tests for the roadmap mindmap transform."""

from careerpath.server.models.roadmap import CareerRoadmap
from careerpath.server.services.mindmap import build_mindmap


def _roadmap(**overrides) -> CareerRoadmap:
    values = dict(
        user_id=1,
        title="Roadmap",
        description="Plan",
        match_score=80,
        primary_career_path={"title": "Data Analyst"},
        phases=[
            {
                "id": "p1",
                "title": "Foundation",
                "milestones": [
                    {"id": "m1", "title": "SQL", "resources": [{"title": "SQL course", "type": "course"}]},
                    {"id": "m2", "title": "Excel", "resources": []},
                ],
            }
        ],
    )
    values.update(overrides)
    return CareerRoadmap(**values)


def test_minimal_tree():
    tree = build_mindmap(_roadmap())
    assert tree.type == "root"
    assert tree.data == {"description": "Plan", "match_score": 80, "primary_career": {"title": "Data Analyst"}}
    assert [child.type for child in tree.children] == ["career"]

    career = tree.children[0]
    assert career.name == "Data Analyst"
    phase = career.children[0]
    assert phase.type == "phase"
    assert [m.name for m in phase.children] == ["SQL", "Excel"]
    assert phase.children[0].children[0].name == "SQL course"
    assert phase.children[1].children is None


def test_alternatives_and_recommendations():
    tree = build_mindmap(
        _roadmap(
            alternative_career_paths=[{"title": "BI Developer"}],
            personalized_recommendations=[{"type": "Join meetups", "category": "networking"}],
        )
    )
    alternatives, recommendations = tree.children[1], tree.children[2]
    assert alternatives.name == "Alternative Paths"
    assert [c.name for c in alternatives.children] == ["BI Developer"]
    assert recommendations.type == "recommendations"
    assert recommendations.children[0].name == "Join meetups"


def test_missing_primary_title():
    tree = build_mindmap(_roadmap(primary_career_path={}))
    assert tree.children[0].name == "Primary Path"
