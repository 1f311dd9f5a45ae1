"""Derived event values: free spots, registration window and countdown."""

from datetime import datetime, time
from typing import Optional

from careerpath.server.models.event import Event, EventRead


def available_spots(event: Event) -> int:
    return event.max_attendees - event.current_attendees


def registration_open(event: Event, now: Optional[datetime] = None) -> bool:
    """
    Whether the event currently accepts registrations.

    The window is compared by whole days: it opens at the start of the
    registration start day and closes at the end of the deadline day.
    """
    if not event.registration_required:
        return True

    today = datetime.combine((now or datetime.utcnow()).date(), time.min)
    if event.registration_start and today < datetime.combine(event.registration_start.date(), time.min):
        return False
    if event.registration_deadline and today > datetime.combine(event.registration_deadline.date(), time.max):
        return False
    return event.current_attendees < event.max_attendees


def time_until_event(start: datetime, now: Optional[datetime] = None) -> str:
    diff = start - (now or datetime.utcnow())
    if diff.total_seconds() < 0:
        return "Event has passed"
    hours = diff.seconds // 3600
    if diff.days > 0:
        return f"{diff.days} days"
    if hours > 0:
        return f"{hours} hours"
    return "Starting soon"


def event_read(event: Event, now: Optional[datetime] = None) -> EventRead:
    now = now or datetime.utcnow()
    return EventRead.model_validate(
        event,
        update={
            "available_spots": available_spots(event),
            "registration_open": registration_open(event, now),
            "time_until_event": time_until_event(event.start_date, now),
        },
    )
