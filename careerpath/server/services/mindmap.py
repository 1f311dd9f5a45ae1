"""
Roadmap to mindmap tree transform.

The tree is consumed as-is by the frontend tree renderer: every node has a
``name``, a ``type`` used for styling and the source document as ``data``.
"""

from typing import Any, Optional

from pydantic import BaseModel

from careerpath.server.models.roadmap import CareerRoadmap


class MindmapNode(BaseModel):
    name: str
    type: str
    data: dict[str, Any] = {}
    children: Optional[list["MindmapNode"]] = None


def _resource_nodes(milestone: dict[str, Any]) -> Optional[list[MindmapNode]]:
    resources = milestone.get("resources") or []
    if not resources:
        return None
    return [MindmapNode(name=resource.get("title", ""), type="resource", data=resource) for resource in resources]


def _phase_node(phase: dict[str, Any]) -> MindmapNode:
    milestones = [
        MindmapNode(
            name=milestone.get("title", ""),
            type="milestone",
            data=milestone,
            children=_resource_nodes(milestone),
        )
        for milestone in phase.get("milestones") or []
    ]
    return MindmapNode(name=phase.get("title", ""), type="phase", data=phase, children=milestones)


def build_mindmap(roadmap: CareerRoadmap) -> MindmapNode:
    """Render ``roadmap`` as a root > career > phase > milestone > resource tree."""
    primary = roadmap.primary_career_path or {}
    career = MindmapNode(
        name=primary.get("title") or "Primary Path",
        type="career",
        data=primary,
        children=[_phase_node(phase) for phase in roadmap.phases],
    )
    children = [career]

    if roadmap.alternative_career_paths:
        children.append(
            MindmapNode(
                name="Alternative Paths",
                type="alternatives",
                data={"alternatives": roadmap.alternative_career_paths},
                children=[
                    MindmapNode(name=alternative.get("title", ""), type="alternative", data=alternative)
                    for alternative in roadmap.alternative_career_paths
                ],
            )
        )

    if roadmap.personalized_recommendations:
        children.append(
            MindmapNode(
                name="Recommendations",
                type="recommendations",
                data={"recommendations": roadmap.personalized_recommendations},
                children=[
                    MindmapNode(name=recommendation.get("type", ""), type="recommendation", data=recommendation)
                    for recommendation in roadmap.personalized_recommendations
                ],
            )
        )

    return MindmapNode(
        name=roadmap.title,
        type="root",
        data={
            "description": roadmap.description,
            "match_score": roadmap.match_score,
            "primary_career": primary,
        },
        children=children,
    )
