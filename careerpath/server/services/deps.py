"""
Service Dependencies.

Annotated FastAPI dependencies for the process-wide service singletons, so
that endpoints declare them in one place and tests can override them.
"""

from typing import Annotated

from fastapi import Depends

from careerpath.server.core.security import get_current_user
from careerpath.server.models.user import User
from careerpath.server.services.ai_client import GenerativeAIClient, get_ai_client
from careerpath.server.services.college_finder import CollegeFinder, get_college_finder
from careerpath.server.services.roadmap_cache import RoadmapCache, get_roadmap_cache

CurrentUserDep = Annotated[User, Depends(get_current_user)]
AIClientDep = Annotated[GenerativeAIClient, Depends(get_ai_client)]
RoadmapCacheDep = Annotated[RoadmapCache, Depends(get_roadmap_cache)]
CollegeFinderDep = Annotated[CollegeFinder, Depends(get_college_finder)]
