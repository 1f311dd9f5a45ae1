"""
API endpoints for mentors and mentoring sessions.

Browsing mentors is public; creating a mentor profile, booking a session and
managing booked sessions require a signed-in user.
"""

from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from careerpath.core.database import PageParams, paginate, slice_page
from careerpath.core.logging_config import get_logger
from careerpath.server.core.database import get_session
from careerpath.server.models.mentor import (
    Mentor,
    MentorAvailability,
    MentorRead,
    MentorSession,
    MentorSessionRead,
    SessionStatus,
    SessionType,
)
from careerpath.server.models.user import User
from careerpath.server.schemas.mentors import (
    BookingRequest,
    FeedbackRequest,
    MentorCreate,
    MentorEnvelope,
    MentorListResponse,
    MentorRegister,
    MentorUpdate,
    SessionEnvelope,
    SessionListResponse,
    SessionStatusUpdate,
)
from careerpath.server.services.deps import CurrentUserDep

logger = get_logger(__name__)

router = APIRouter(tags=["mentors"])

BOOKING_LEAD_TIME = timedelta(hours=1)
CONFLICT_WINDOW = timedelta(hours=1)
MEETING_LINK_TEMPLATE = "https://meet.careerpath.com/session/{session_id}"
MENTOR_ONLY_STATUSES = {SessionStatus.ONGOING, SessionStatus.COMPLETED, SessionStatus.NO_SHOW}


async def _get_mentor(session: AsyncSession, mentor_id: int) -> Mentor:
    mentor = await session.get(Mentor, mentor_id)
    if mentor is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Mentor not found")
    return mentor


async def _mentor_of_user(session: AsyncSession, user_id: int) -> Optional[Mentor]:
    result = await session.execute(select(Mentor).where(Mentor.user_id == user_id))
    return result.scalars().first()


def _matches_search(mentor: Mentor, term: str) -> bool:
    term = term.lower()
    return (
        term in mentor.name.lower()
        or term in mentor.title.lower()
        or any(term in expertise.lower() for expertise in mentor.expertise)
    )


@router.get(
    "",
    response_model=MentorListResponse,
    summary="List Mentors",
    description="Browse mentors, best rated first.",
    response_description="One page of mentors.",
)
async def list_mentors(
    search: Optional[str] = Query(default=None, description="Matches name, title or expertise"),
    expertise: Optional[str] = Query(default=None, description="Comma separated expertise list; any match"),
    location: Optional[str] = None,
    availability: Optional[MentorAvailability] = None,
    min_rating: Optional[float] = Query(default=None, ge=0, le=5),
    max_price: Optional[float] = Query(default=None, ge=0),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
) -> MentorListResponse:
    """
    List mentors.

    - **search**: Case-insensitive match on name, title or any expertise.
    - **expertise**: Comma separated; a mentor matches when it has any of them.
    - **location**: Case-insensitive substring of the mentor location.
    - **availability**: Available, Busy or Away.
    - **min_rating** / **max_price**: Rating floor and price ceiling.
    """
    statement = select(Mentor).order_by(Mentor.rating_average.desc(), Mentor.total_sessions.desc(), Mentor.id)
    if availability:
        statement = statement.where(Mentor.availability == availability)
    if min_rating is not None:
        statement = statement.where(Mentor.rating_average >= min_rating)
    if max_price is not None:
        statement = statement.where(Mentor.price_amount <= max_price)

    result = await session.execute(statement)
    mentors = list(result.scalars().all())

    # JSON list columns are filtered here rather than in SQL
    if search:
        mentors = [m for m in mentors if _matches_search(m, search)]
    if expertise:
        wanted = {item.strip() for item in expertise.split(",") if item.strip()}
        mentors = [m for m in mentors if wanted & set(m.expertise)]
    if location:
        mentors = [m for m in mentors if m.location and location.lower() in m.location.lower()]

    found = slice_page(mentors, PageParams(page=page, limit=limit))
    return MentorListResponse(
        mentors=[MentorRead.model_validate(m) for m in found.items],
        total_pages=found.total_pages,
        current_page=found.page,
        total_mentors=found.total,
    )


@router.get(
    "/sessions/my",
    response_model=SessionListResponse,
    summary="My Sessions",
    description="Sessions the caller booked as a student, most recent session date first.",
)
async def my_sessions(
    user: CurrentUserDep,
    session_status: Optional[SessionStatus] = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
) -> SessionListResponse:
    statement = select(MentorSession).where(MentorSession.student_id == user.id)
    if session_status:
        statement = statement.where(MentorSession.status == session_status)
    statement = statement.order_by(MentorSession.session_date.desc())

    found = await paginate(session, statement, PageParams(page=page, limit=limit))
    return SessionListResponse(
        sessions=[MentorSessionRead.model_validate(s) for s in found.items],
        total_pages=found.total_pages,
        current_page=found.page,
        total_sessions=found.total,
    )


@router.get(
    "/{mentor_id}",
    response_model=MentorRead,
    summary="Get Mentor",
    responses={404: {"description": "Mentor not found"}},
)
async def get_mentor(
    mentor_id: int,
    session: AsyncSession = Depends(get_session),
) -> MentorRead:
    return MentorRead.model_validate(await _get_mentor(session, mentor_id))


async def _create_mentor(session: AsyncSession, user: User, data: dict) -> Mentor:
    if await _mentor_of_user(session, user.id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You are already registered as a mentor")

    mentor = Mentor(user_id=user.id, is_verified=False, **data)
    session.add(mentor)
    await session.commit()
    await session.refresh(mentor)
    logger.info(f"User {user.id} registered mentor profile {mentor.id}")
    return mentor


@router.post(
    "",
    response_model=MentorEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Add Mentor",
    description="Create the caller's mentor profile. New profiles start unverified.",
    responses={
        201: {"description": "Mentor created"},
        400: {"description": "Invalid data or caller already is a mentor"},
    },
)
async def add_mentor(
    payload: MentorCreate,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> MentorEnvelope:
    """
    Create a mentor profile.

    - **name**, **title**, **company**, **experience**, **location**: Required.
    - **expertise**: At least one entry.
    - **price_amount**: Session price, in ``price_currency`` (INR by default).
    - **bio**: At most 500 characters.
    """
    mentor = await _create_mentor(session, user, payload.model_dump())
    return MentorEnvelope(message="Mentor added successfully", mentor=MentorRead.model_validate(mentor))


@router.post(
    "/register",
    response_model=MentorEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Register As Mentor",
    description="Create the caller's mentor profile, named after the caller unless a name is given.",
    responses={
        201: {"description": "Mentor created"},
        400: {"description": "Invalid data or caller already is a mentor"},
    },
)
async def register_as_mentor(
    payload: MentorRegister,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> MentorEnvelope:
    data = payload.model_dump()
    data["name"] = data.get("name") or user.name or user.email.split("@")[0]
    mentor = await _create_mentor(session, user, data)
    return MentorEnvelope(message="Successfully registered as mentor", mentor=MentorRead.model_validate(mentor))


@router.put(
    "/{mentor_id}",
    response_model=MentorEnvelope,
    summary="Update Mentor",
    description="Partially update a mentor profile. Only its owner may do this.",
    responses={
        403: {"description": "Not the owner"},
        404: {"description": "Mentor not found"},
    },
)
async def update_mentor(
    mentor_id: int,
    payload: MentorUpdate,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> MentorEnvelope:
    mentor = await _get_mentor(session, mentor_id)
    if mentor.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to update this mentor profile")

    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(mentor, key, value)
    mentor.updated_at = datetime.utcnow()
    session.add(mentor)
    await session.commit()
    await session.refresh(mentor)
    return MentorEnvelope(message="Mentor profile updated successfully", mentor=MentorRead.model_validate(mentor))


@router.post(
    "/{mentor_id}/book",
    response_model=SessionEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Book Session",
    description="Book a session with a mentor at least one hour ahead.",
    responses={
        201: {"description": "Session booked"},
        400: {"description": "Mentor unavailable, too short notice or conflicting session"},
        404: {"description": "Mentor not found"},
    },
)
async def book_session(
    mentor_id: int,
    payload: BookingRequest,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> SessionEnvelope:
    """
    Book a mentoring session.

    A mentor cannot have two scheduled or ongoing sessions starting within
    an hour of each other. Video calls get a meeting link.

    - **session_date**: Start time, at least one hour from now.
    - **duration**: 30 to 180 minutes, 60 by default.
    - **session_type**: video-call, phone-call, chat or in-person.
    - **topics**: Topics to discuss.
    """
    mentor = await _get_mentor(session, mentor_id)
    if mentor.availability != MentorAvailability.AVAILABLE:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Mentor is not available for booking")

    if payload.session_date < datetime.utcnow() + BOOKING_LEAD_TIME:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Session must be booked at least 1 hour in advance"
        )

    conflicts = await session.execute(
        select(MentorSession).where(
            MentorSession.mentor_id == mentor.id,
            MentorSession.session_date >= payload.session_date - CONFLICT_WINDOW,
            MentorSession.session_date <= payload.session_date + CONFLICT_WINDOW,
            MentorSession.status.in_([SessionStatus.SCHEDULED, SessionStatus.ONGOING]),
        )
    )
    conflict_count = len(conflicts.scalars().all())
    if conflict_count:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "Mentor has a conflicting session. Please choose a different time.",
                "conflict_count": conflict_count,
            },
        )

    booked = MentorSession(
        mentor_id=mentor.id,
        student_id=user.id,
        session_date=payload.session_date,
        duration=payload.duration,
        session_type=payload.session_type,
        topics=payload.topics,
        notes=payload.notes,
        payment_amount=mentor.price_amount,
        payment_currency=mentor.price_currency,
    )
    session.add(booked)
    await session.flush()

    if booked.session_type == SessionType.VIDEO_CALL:
        booked.meeting_link = MEETING_LINK_TEMPLATE.format(session_id=booked.id)

    mentor.total_sessions += 1
    mentor.updated_at = datetime.utcnow()
    session.add(mentor)
    await session.commit()
    await session.refresh(booked)
    logger.info(f"User {user.id} booked session {booked.id} with mentor {mentor.id}")
    return SessionEnvelope(message="Session booked successfully", session=MentorSessionRead.model_validate(booked))


async def _session_with_roles(
    session: AsyncSession, session_id: int, user: User
) -> tuple[MentorSession, Mentor, bool, bool]:
    booked = await session.get(MentorSession, session_id)
    if booked is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    mentor = await _get_mentor(session, booked.mentor_id)
    return booked, mentor, booked.student_id == user.id, mentor.user_id == user.id


@router.put(
    "/sessions/{session_id}/status",
    response_model=SessionEnvelope,
    summary="Update Session Status",
    description="Participants may cancel a session; only the mentor may mark it ongoing, completed or no-show.",
    responses={
        400: {"description": "Session can no longer change"},
        403: {"description": "Not allowed to set this status"},
        404: {"description": "Session not found"},
    },
)
async def update_session_status(
    session_id: int,
    payload: SessionStatusUpdate,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> SessionEnvelope:
    booked, _, is_student, is_mentor = await _session_with_roles(session, session_id, user)
    if not is_student and not is_mentor:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to update this session")
    if payload.status in MENTOR_ONLY_STATUSES and not is_mentor:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail=f"Only the mentor can mark a session {payload.status.value}"
        )
    if payload.status == SessionStatus.SCHEDULED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Session cannot be rescheduled")
    if booked.status in (SessionStatus.CANCELLED, SessionStatus.COMPLETED):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Session is already {booked.status.value}")

    booked.status = payload.status
    booked.updated_at = datetime.utcnow()
    session.add(booked)
    await session.commit()
    await session.refresh(booked)
    return SessionEnvelope(message="Session status updated", session=MentorSessionRead.model_validate(booked))


@router.put(
    "/sessions/{session_id}/feedback",
    response_model=SessionEnvelope,
    summary="Submit Feedback",
    description="Rate a completed session. Student ratings update the mentor's average rating.",
    responses={
        400: {"description": "Session is not completed"},
        403: {"description": "Not a participant"},
        404: {"description": "Session not found"},
    },
)
async def submit_feedback(
    session_id: int,
    payload: FeedbackRequest,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> SessionEnvelope:
    """
    Submit session feedback.

    - **rating**: 1 to 5.
    - **comment**: Optional, at most 500 characters.
    """
    booked, mentor, is_student, is_mentor = await _session_with_roles(session, session_id, user)
    if not is_student and not is_mentor:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to submit feedback for this session"
        )
    if booked.status != SessionStatus.COMPLETED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Can only submit feedback for completed sessions"
        )

    feedback = dict(booked.feedback)
    role = "student" if is_student else "mentor"
    feedback[f"{role}_rating"] = payload.rating
    feedback[f"{role}_comment"] = payload.comment
    booked.feedback = feedback
    booked.updated_at = datetime.utcnow()
    session.add(booked)

    if is_student:
        result = await session.execute(select(MentorSession).where(MentorSession.mentor_id == mentor.id))
        ratings = [
            s.feedback["student_rating"]
            for s in result.scalars().all()
            if s.feedback.get("student_rating") is not None
        ]
        if ratings:
            mentor.rating_average = round(sum(ratings) / len(ratings), 1)
            mentor.rating_count = len(ratings)
            mentor.updated_at = datetime.utcnow()
            session.add(mentor)

    await session.commit()
    await session.refresh(booked)
    return SessionEnvelope(message="Feedback submitted successfully", session=MentorSessionRead.model_validate(booked))
