"""
API endpoints for community events.

Published events are public. Organizing an event and registering for one
require a signed-in user; ``current_attendees`` always equals the number of
registrations.
"""

from datetime import datetime
from typing import Literal, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from careerpath.core.database import PageParams, paginate, slice_page
from careerpath.core.logging_config import get_logger
from careerpath.server.core.database import get_session
from careerpath.server.models.event import (
    Event,
    EventCategory,
    EventRegistration,
    EventRegistrationRead,
    EventStatus,
    EventType,
    RegistrationPaymentStatus,
)
from careerpath.server.schemas.common import CategoryCount, MessageResponse
from careerpath.server.schemas.events import (
    EventCreate,
    EventDetail,
    EventEnvelope,
    EventListResponse,
    EventUpdate,
    RegisteredEvent,
    RegisteredFilter,
    RegistrationRequest,
    RegistrationResponse,
)
from careerpath.server.services.deps import CurrentUserDep
from careerpath.server.services.events import event_read, registration_open

logger = get_logger(__name__)

router = APIRouter(tags=["events"])


async def _get_event(session: AsyncSession, event_id: int) -> Event:
    event = await session.get(Event, event_id)
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


async def _registration_of(session: AsyncSession, event_id: int, user_id: int) -> Optional[EventRegistration]:
    result = await session.execute(
        select(EventRegistration).where(EventRegistration.event_id == event_id, EventRegistration.user_id == user_id)
    )
    return result.scalars().first()


async def _count_registrations(session: AsyncSession, event_id: int) -> int:
    result = await session.execute(
        select(func.count()).select_from(EventRegistration).where(EventRegistration.event_id == event_id)
    )
    return result.scalar_one()


def _matches_search(event: Event, term: str) -> bool:
    term = term.lower()
    return (
        term in event.title.lower()
        or term in event.description.lower()
        or any(term in tag.lower() for tag in event.tags)
    )


@router.get(
    "",
    response_model=EventListResponse,
    summary="List Events",
    description="Browse events, soonest first. Each event carries its registration state.",
    response_description="One page of events.",
)
async def list_events(
    category: Optional[Union[EventCategory, Literal["all"]]] = Query(default=None, description="Event category or 'all'"),
    event_type: Optional[Union[EventType, Literal["all"]]] = Query(
        default=None, alias="type", description="Online, Offline, Hybrid or 'all'"
    ),
    event_status: EventStatus = Query(default=EventStatus.PUBLISHED, alias="status"),
    upcoming: bool = Query(default=True, description="Only events that have not started yet"),
    search: Optional[str] = Query(default=None, description="Matches title, description or tags"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
) -> EventListResponse:
    """
    List events.

    - **category** / **type**: Exact match; ``all`` disables the filter.
    - **status**: Event status, ``published`` by default.
    - **upcoming**: When true (default) only events starting from now on.
    - **search**: Case-insensitive match on title, description or any tag.
    """
    now = datetime.utcnow()
    statement = select(Event).where(Event.status == event_status)
    if category and category != "all":
        statement = statement.where(Event.category == category)
    if event_type and event_type != "all":
        statement = statement.where(Event.type == event_type)
    if upcoming:
        statement = statement.where(Event.start_date >= now)
    statement = statement.order_by(Event.start_date, Event.id)

    params = PageParams(page=page, limit=limit)
    if search:
        result = await session.execute(statement)
        found = slice_page([e for e in result.scalars().all() if _matches_search(e, search)], params)
    else:
        found = await paginate(session, statement, params)

    return EventListResponse(
        events=[event_read(e, now) for e in found.items],
        total_pages=found.total_pages,
        current_page=found.page,
        total_events=found.total,
    )


@router.get(
    "/categories",
    response_model=list[CategoryCount],
    summary="Event Categories",
    description="Number of published events per category, most populated first.",
)
async def event_categories(session: AsyncSession = Depends(get_session)) -> list[CategoryCount]:
    count = func.count(Event.id).label("count")
    result = await session.execute(
        select(Event.category, count)
        .where(Event.status == EventStatus.PUBLISHED)
        .group_by(Event.category)
        .order_by(count.desc())
    )
    return [CategoryCount(name=category.value, count=total) for category, total in result.all()]


@router.get(
    "/my/registered",
    response_model=EventListResponse,
    summary="My Registered Events",
    description="Events the caller registered for, soonest first.",
)
async def my_registered_events(
    user: CurrentUserDep,
    when: Optional[RegisteredFilter] = Query(default=None, alias="status", description="upcoming or past"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
) -> EventListResponse:
    now = datetime.utcnow()
    statement = (
        select(Event)
        .join(EventRegistration, EventRegistration.event_id == Event.id)
        .where(EventRegistration.user_id == user.id)
    )
    if when == "upcoming":
        statement = statement.where(Event.start_date >= now)
    elif when == "past":
        statement = statement.where(Event.start_date < now)
    statement = statement.order_by(Event.start_date, Event.id)

    found = await paginate(session, statement, PageParams(page=page, limit=limit))
    return EventListResponse(
        events=[event_read(e, now) for e in found.items],
        total_pages=found.total_pages,
        current_page=found.page,
        total_events=found.total,
    )


@router.get(
    "/{event_id}",
    response_model=EventDetail,
    summary="Get Event",
    description="Event details including its attendees.",
    responses={404: {"description": "Event not found"}},
)
async def get_event(
    event_id: int,
    session: AsyncSession = Depends(get_session),
) -> EventDetail:
    event = await _get_event(session, event_id)
    result = await session.execute(
        select(EventRegistration)
        .where(EventRegistration.event_id == event.id)
        .order_by(EventRegistration.registered_at)
    )
    attendees = [EventRegistrationRead.model_validate(r) for r in result.scalars().all()]
    return EventDetail(**event_read(event).model_dump(), attendees=attendees)


@router.post(
    "",
    response_model=EventEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Event",
    description="Publish a new event organized by the caller.",
    responses={
        201: {"description": "Event created"},
        400: {"description": "Invalid event data or start date not in the future"},
    },
)
async def create_event(
    payload: EventCreate,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> EventEnvelope:
    """
    Create an event.

    - **title**: 5 to 100 characters.
    - **description**: 20 to 2000 characters.
    - **type** / **category**: See ``EventType`` and ``EventCategory``.
    - **speakers**: At least one.
    - **start_date** / **start_time**: Must lie in the future; time is HH:MM.
    - **max_attendees**: At least 1.
    """
    if payload.start_date <= datetime.utcnow():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Event start date must be in the future")

    event = Event(
        **payload.model_dump(exclude={"location"}),
        location=payload.location.model_dump(exclude_none=True),
        organizer_id=user.id,
        organizer_name=user.name or user.email,
        status=EventStatus.PUBLISHED,
    )
    session.add(event)
    await session.commit()
    await session.refresh(event)
    logger.info(f"User {user.id} created event {event.id}")
    return EventEnvelope(message="Event created successfully", event=event_read(event))


@router.put(
    "/{event_id}",
    response_model=EventEnvelope,
    summary="Update Event",
    description="Partially update an event. Location fields are merged. Organizer only.",
    responses={
        403: {"description": "Not the organizer"},
        404: {"description": "Event not found"},
    },
)
async def update_event(
    event_id: int,
    payload: EventUpdate,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> EventEnvelope:
    event = await _get_event(session, event_id)
    if event.organizer_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to update this event")

    changes = payload.model_dump(exclude_unset=True)
    for key, value in changes.items():
        if value is None:
            continue
        if key == "location":
            location = dict(event.location)
            location.update({k: v for k, v in value.items() if v is not None})
            event.location = location
        else:
            setattr(event, key, value)

    event.updated_at = datetime.utcnow()
    session.add(event)
    await session.commit()
    await session.refresh(event)
    return EventEnvelope(message="Event updated successfully", event=event_read(event))


@router.delete(
    "/{event_id}",
    response_model=MessageResponse,
    summary="Delete Event",
    description="Delete an event without registrations. Organizer only.",
    responses={
        400: {"description": "Event has registered attendees"},
        403: {"description": "Not the organizer"},
        404: {"description": "Event not found"},
    },
)
async def delete_event(
    event_id: int,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    event = await _get_event(session, event_id)
    if event.organizer_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to delete this event")
    if await _count_registrations(session, event.id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete event with registered attendees"
        )

    await session.delete(event)
    await session.commit()
    logger.info(f"User {user.id} deleted event {event_id}")
    return MessageResponse(message="Event deleted successfully")


@router.post(
    "/{event_id}/register",
    response_model=RegistrationResponse,
    summary="Register For Event",
    description="Register the caller for an event while registration is open.",
    responses={
        400: {"description": "Registration closed or already registered"},
        404: {"description": "Event not found"},
    },
)
async def register_for_event(
    event_id: int,
    payload: RegistrationRequest,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> RegistrationResponse:
    """
    Register for an event.

    Paid events start with a pending payment; free events are marked paid.

    - **name**: At least 2 characters.
    - **email**: Contact e-mail.
    - **phone**: At least 10 characters.
    """
    event = await _get_event(session, event_id)
    if not registration_open(event):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Registration is closed for this event")
    if await _registration_of(session, event.id, user.id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You are already registered for this event")

    session.add(
        EventRegistration(
            event_id=event.id,
            user_id=user.id,
            payment_status=(
                RegistrationPaymentStatus.PENDING if event.fee_amount > 0 else RegistrationPaymentStatus.PAID
            ),
            **payload.model_dump(),
        )
    )
    await session.flush()
    event.current_attendees = await _count_registrations(session, event.id)
    event.updated_at = datetime.utcnow()
    session.add(event)
    await session.commit()
    await session.refresh(event)

    return RegistrationResponse(
        message="Successfully registered for event",
        event=RegisteredEvent(id=event.id, title=event.title, start_date=event.start_date, start_time=event.start_time),
    )


@router.delete(
    "/{event_id}/register",
    response_model=MessageResponse,
    summary="Unregister From Event",
    responses={
        400: {"description": "Caller is not registered"},
        404: {"description": "Event not found"},
    },
)
async def unregister_from_event(
    event_id: int,
    user: CurrentUserDep,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    event = await _get_event(session, event_id)
    registration = await _registration_of(session, event.id, user.id)
    if registration is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You are not registered for this event")

    await session.delete(registration)
    await session.flush()
    event.current_attendees = await _count_registrations(session, event.id)
    event.updated_at = datetime.utcnow()
    session.add(event)
    await session.commit()
    return MessageResponse(message="Successfully unregistered from event")
