"""
In-process cache of generated roadmap content.

Roadmaps are expensive to generate and users with the same onboarding
answers get the same advice, so generated content is cached by a key derived
from the profile. Entries expire after ``CACHE_TTL_SECONDS``; when the cache
is full the least recently accessed tenth is evicted.
"""

import asyncio
import re
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from careerpath.core.logging_config import get_logger
from careerpath.server.models.roadmap import CareerRoadmap

logger = get_logger(__name__)

CACHE_TTL_SECONDS = 24 * 60 * 60
MAX_CACHE_SIZE = 1000
EVICTION_FRACTION = 0.1
SIMILARITY_THRESHOLD = 0.7
CLEANUP_INTERVAL_SECONDS = 60 * 60

SIMILARITY_WEIGHTS = {
    "current_level": 0.3,
    "career_stage": 0.2,
    "time_commitment": 0.15,
    "preferred_learning_style": 0.1,
}
INTEREST_WEIGHT = 0.15
GOAL_WEIGHT = 0.1

_KEY_CLEAN_RE = re.compile(r"[^a-zA-Z0-9_]")


@dataclass
class CacheEntry:
    content: dict[str, Any]
    user_id: Optional[int]
    created: float
    last_accessed: float
    access_count: int = 1


def generate_cache_key(profile: dict[str, Any]) -> str:
    """Deterministic key for a profile; list order does not matter."""
    interests = "_".join(sorted(profile.get("interests") or []))
    goals = "_".join(sorted(profile.get("goals") or []))
    key = (
        f"roadmap_{profile.get('current_level')}_{profile.get('career_stage')}_{interests}_{goals}_"
        f"{profile.get('time_commitment')}_{profile.get('preferred_learning_style')}"
    )
    return _KEY_CLEAN_RE.sub("", key).lower()


def overlap(first: Sequence[str], second: Sequence[str]) -> float:
    """Shared items over the size of the larger set; 0 when either is empty."""
    set_one, set_two = set(first or []), set(second or [])
    if not set_one or not set_two:
        return 0.0
    return len(set_one & set_two) / max(len(set_one), len(set_two))


def similarity(first: dict[str, Any], second: dict[str, Any]) -> float:
    """Weighted profile similarity in [0, 1]."""
    score = 0.0
    for key, weight in SIMILARITY_WEIGHTS.items():
        if first.get(key) == second.get(key):
            score += weight
    score += overlap(first.get("interests") or [], second.get("interests") or []) * INTEREST_WEIGHT
    score += overlap(first.get("goals") or [], second.get("goals") or []) * GOAL_WEIGHT
    return score


def find_similar(profile: dict[str, Any], candidates: Sequence[CareerRoadmap]) -> Optional[CareerRoadmap]:
    """Best candidate whose profile similarity strictly exceeds the threshold."""
    best: Optional[CareerRoadmap] = None
    best_score = SIMILARITY_THRESHOLD
    for candidate in candidates:
        score = similarity(profile, candidate.user_profile or {})
        if score > best_score:
            best, best_score = candidate, score
    return best


class RoadmapCache:
    """TTL cache of roadmap content keyed by ``generate_cache_key``."""

    def __init__(
        self,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        max_size: int = MAX_CACHE_SIZE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created > self.ttl_seconds

    def get(self, key: str) -> Optional[dict[str, Any]]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        now = self._clock()
        if self._expired(entry, now):
            del self._entries[key]
            return None

        entry.last_accessed = now
        entry.access_count += 1
        return entry.content

    def set(self, key: str, content: dict[str, Any], user_id: Optional[int] = None) -> None:
        if key not in self._entries and len(self._entries) >= self.max_size:
            self._evict(max(1, int(self.max_size * EVICTION_FRACTION)))

        now = self._clock()
        self._entries[key] = CacheEntry(content=content, user_id=user_id, created=now, last_accessed=now)

    def _evict(self, count: int) -> None:
        oldest = sorted(self._entries.items(), key=lambda item: item[1].last_accessed)[:count]
        for key, _ in oldest:
            del self._entries[key]
        logger.debug(f"Evicted {len(oldest)} roadmap cache entries")

    def invalidate_user(self, user_id: int) -> int:
        """Drop every entry generated for ``user_id``; returns how many."""
        keys = [key for key, entry in self._entries.items() if entry.user_id == user_id]
        for key in keys:
            del self._entries[key]
        if keys:
            logger.info(f"Roadmap cache invalidated for user {user_id}: {len(keys)} entries")
        return len(keys)

    def cleanup_expired(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._expired(entry, now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info(f"Cleaned up {len(expired)} expired roadmap cache entries")
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> dict[str, Any]:
        entries = list(self._entries.values())
        if not entries:
            return {
                "memory_cache_size": 0,
                "max_cache_size": self.max_size,
                "average_access_count": 0,
                "oldest_entry": None,
                "newest_entry": None,
            }
        return {
            "memory_cache_size": len(entries),
            "max_cache_size": self.max_size,
            "average_access_count": sum(entry.access_count for entry in entries) / len(entries),
            "oldest_entry": datetime.utcfromtimestamp(min(entry.created for entry in entries)).isoformat(),
            "newest_entry": datetime.utcfromtimestamp(max(entry.created for entry in entries)).isoformat(),
        }


roadmap_cache = RoadmapCache()


def get_roadmap_cache() -> RoadmapCache:
    """FastAPI dependency returning the process-wide roadmap cache."""
    return roadmap_cache


async def run_periodic_cleanup(cache: RoadmapCache, interval_seconds: float = CLEANUP_INTERVAL_SECONDS) -> None:
    """Expire stale entries forever; started and cancelled by the app lifespan."""
    while True:
        await asyncio.sleep(interval_seconds)
        cache.cleanup_expired()
