"""
College directory backed by the data.gov.in open data API.

The dataset only carries college names, so city, state and offered courses
are inferred from keywords in the name.
"""

import time
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from careerpath.core.logging_config import get_logger
from careerpath.server.core.config import CollegeDataConfig, settings

logger = get_logger(__name__)

FETCH_LIMIT = 500
CACHE_TTL_SECONDS = 60 * 60

UNKNOWN_CITY = "Unknown City"
UNKNOWN_STATE = "Unknown State"

LOCATION_KEYWORDS: dict[str, tuple[str, str]] = {
    "bangalore": ("Bangalore", "Karnataka"),
    "bengaluru": ("Bangalore", "Karnataka"),
    "mumbai": ("Mumbai", "Maharashtra"),
    "pune": ("Pune", "Maharashtra"),
    "chennai": ("Chennai", "Tamil Nadu"),
    "delhi": ("Delhi", "Delhi"),
    "kolkata": ("Kolkata", "West Bengal"),
    "hyderabad": ("Hyderabad", "Telangana"),
    "karnataka": ("Various Cities", "Karnataka"),
    "maharashtra": ("Various Cities", "Maharashtra"),
    "tamil nadu": ("Various Cities", "Tamil Nadu"),
}

COURSE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Engineering": ("engineering", "technical", "technology"),
    "Medical": ("medical", "medicine", "dental"),
    "Management": ("management", "mba", "business"),
    "Arts": ("arts", "humanities"),
    "Science": ("science", "physics", "chemistry"),
}
DEFAULT_COURSE = "General"


class CollegeDataError(Exception):
    """The college dataset could not be fetched or had an unexpected shape."""


class College(BaseModel):
    id: Any
    name: str
    city: str
    state: str
    type: str
    courses: list[str]
    website: str = ""
    phone: str = ""


def extract_location(name: str) -> tuple[str, str]:
    lowered = (name or "").lower()
    for keyword, location in LOCATION_KEYWORDS.items():
        if keyword in lowered:
            return location
    return UNKNOWN_CITY, UNKNOWN_STATE


def infer_courses(name: str) -> list[str]:
    lowered = (name or "").lower()
    courses = [course for course, keywords in COURSE_KEYWORDS.items() if any(k in lowered for k in keywords)]
    return courses or [DEFAULT_COURSE]


def normalize_record(record: dict[str, Any], index: int) -> College:
    """Map a raw dataset record to a ``College``; ``index`` stands in for a missing id."""
    name = record.get("title") or record.get("name") or ""
    city, state = extract_location(name)
    return College(
        id=record.get("id") or index,
        name=name or "Unknown College",
        city=city,
        state=state,
        type=record.get("type") or "Unknown",
        courses=infer_courses(name),
        website=record.get("website") or "",
        phone=record.get("phone") or "",
    )


def _active(value: Optional[str]) -> bool:
    return bool(value) and value != "all"


def filter_colleges(
    colleges: list[College],
    search: Optional[str] = None,
    state: Optional[str] = None,
    course: Optional[str] = None,
    college_type: Optional[str] = None,
) -> list[College]:
    """Apply the directory filters; an empty value or ``"all"`` disables a filter."""
    filtered = colleges
    term = (search or "").strip().lower()
    if term:
        filtered = [
            college
            for college in filtered
            if term in college.name.lower()
            or term in college.city.lower()
            or term in college.state.lower()
            or any(term in c.lower() for c in college.courses)
        ]
    if _active(state):
        filtered = [college for college in filtered if college.state == state]
    if _active(course):
        filtered = [college for college in filtered if course in college.courses]
    if _active(college_type):
        filtered = [college for college in filtered if college.type == college_type]
    return filtered


def known_states(colleges: list[College]) -> list[str]:
    return sorted({college.state for college in colleges if college.state and college.state != UNKNOWN_STATE})


class CollegeFinder:
    """
    Fetches and caches the college directory.

    Args:
        config: Dataset location and API key, defaults to ``settings.college_data``.
        client: Optional ``httpx.AsyncClient``; tests pass one with a mock
            transport.
        ttl_seconds: How long a fetched directory is served from memory.
    """

    def __init__(
        self,
        config: Optional[CollegeDataConfig] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        ttl_seconds: float = CACHE_TTL_SECONDS,
    ) -> None:
        self._config = config or settings.college_data
        self._http = client or httpx.AsyncClient(timeout=15.0, follow_redirects=True)
        self._ttl = ttl_seconds
        self._cache: Optional[tuple[list[College], float]] = None

    def _url(self) -> str:
        return f"{self._config.base_url.rstrip('/')}/{self._config.resource_id}"

    async def fetch(self) -> list[College]:
        """
        Return the normalized directory, from cache when still fresh.

        Raises:
            CollegeDataError: The upstream call failed or ``records`` is not a list.
        """
        now = time.monotonic()
        if self._cache and self._cache[1] > now:
            return list(self._cache[0])

        params = {"api-key": self._config.api_key or "", "format": "json", "limit": FETCH_LIMIT}
        logger.debug(f"Fetching college directory from {self._url()}")
        try:
            response = await self._http.get(self._url(), params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"College directory request failed: {e}")
            raise CollegeDataError("Failed to fetch college data") from e

        records = data.get("records") if isinstance(data, dict) else None
        if not isinstance(records, list):
            raise CollegeDataError("Invalid API response structure")

        colleges = [normalize_record(record, index) for index, record in enumerate(records) if isinstance(record, dict)]
        logger.info(f"Loaded {len(colleges)} colleges")
        self._cache = (colleges, now + self._ttl)
        return list(colleges)

    def clear_cache(self) -> None:
        self._cache = None


_college_finder: Optional[CollegeFinder] = None


def get_college_finder() -> CollegeFinder:
    """FastAPI dependency returning the process-wide college finder."""
    global _college_finder

    if _college_finder is None:
        _college_finder = CollegeFinder()
    return _college_finder
