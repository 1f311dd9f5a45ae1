"""Unit tests for server service dependencies.

Tests verify that the Annotated dependencies resolve to the process-wide
service singletons and can be overridden through FastAPI.
"""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from careerpath.server.core.security import get_current_user
from careerpath.server.services.ai_client import GenerativeAIClient, get_ai_client
from careerpath.server.services.college_finder import CollegeFinder, get_college_finder
from careerpath.server.services.deps import AIClientDep, CollegeFinderDep, CurrentUserDep, RoadmapCacheDep
from careerpath.server.services.roadmap_cache import RoadmapCache, get_roadmap_cache, roadmap_cache


class TestAnnotatedDependencies:
    """Each alias wraps a Depends on the matching provider."""

    def test_current_user_dep(self):
        assert CurrentUserDep.__metadata__[0].dependency is get_current_user

    def test_ai_client_dep(self):
        assert AIClientDep.__metadata__[0].dependency is get_ai_client

    def test_roadmap_cache_dep(self):
        assert RoadmapCacheDep.__metadata__[0].dependency is get_roadmap_cache

    def test_college_finder_dep(self):
        assert CollegeFinderDep.__metadata__[0].dependency is get_college_finder


class TestProviders:
    """Providers hand out one shared instance per process."""

    def test_ai_client_is_singleton(self):
        first = get_ai_client()
        assert isinstance(first, GenerativeAIClient)
        assert get_ai_client() is first

    def test_college_finder_is_singleton(self):
        first = get_college_finder()
        assert isinstance(first, CollegeFinder)
        assert get_college_finder() is first

    def test_roadmap_cache_is_module_cache(self):
        assert isinstance(get_roadmap_cache(), RoadmapCache)
        assert get_roadmap_cache() is roadmap_cache


class TestOverride:
    """Dependencies can be swapped in tests via ``dependency_overrides``."""

    def test_override_roadmap_cache(self):
        app = FastAPI()
        replacement = RoadmapCache(max_size=5)

        @app.get("/cache-size")
        async def cache_size(cache: RoadmapCacheDep):
            return {"max_size": cache.max_size}

        app.dependency_overrides[get_roadmap_cache] = lambda: replacement
        with TestClient(app) as client:
            response = client.get("/cache-size")
        assert response.json() == {"max_size": 5}
