"""
API endpoints for the college finder.

College data comes from the data.gov.in open data API and is cached in
process for an hour. Filtering happens on the cached list.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from careerpath.core.logging_config import get_logger
from careerpath.server.services.college_finder import College, CollegeDataError, filter_colleges, known_states
from careerpath.server.services.deps import CollegeFinderDep

logger = get_logger(__name__)

router = APIRouter(tags=["colleges"])

UPSTREAM_FAILED = "Failed to fetch college data"


class CollegeListResponse(BaseModel):
    colleges: list[College]
    total: int
    filtered: int


class StatesResponse(BaseModel):
    states: list[str]


@router.get(
    "",
    response_model=CollegeListResponse,
    summary="Find Colleges",
    description="Search Indian colleges. ``all`` or an empty value disables a filter.",
    response_description="Matching colleges with the unfiltered and filtered counts.",
    responses={502: {"description": "The college data service failed"}},
)
async def find_colleges(
    finder: CollegeFinderDep,
    search: Optional[str] = Query(default=None, description="Matches name, city, state or course"),
    state: Optional[str] = Query(default=None),
    course: Optional[str] = Query(default=None),
    college_type: Optional[str] = Query(default=None, alias="type"),
) -> CollegeListResponse:
    try:
        colleges = await finder.fetch()
    except CollegeDataError as e:
        logger.error(f"College lookup failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=UPSTREAM_FAILED) from e

    matches = filter_colleges(colleges, search=search, state=state, course=course, college_type=college_type)
    return CollegeListResponse(colleges=matches, total=len(colleges), filtered=len(matches))


@router.get(
    "/states",
    response_model=StatesResponse,
    summary="College States",
    description="States that at least one college could be located in, alphabetically.",
    responses={502: {"description": "The college data service failed"}},
)
async def college_states(finder: CollegeFinderDep) -> StatesResponse:
    try:
        colleges = await finder.fetch()
    except CollegeDataError as e:
        logger.error(f"College lookup failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=UPSTREAM_FAILED) from e
    return StatesResponse(states=known_states(colleges))
