from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

REGISTRATION = {"name": "Student One", "email": "student@example.com", "phone": "9876543210"}


def _event_payload(**overrides) -> dict:
    payload = {
        "title": "Resume Writing Workshop",
        "description": "Hands-on workshop on writing a resume that gets shortlisted.",
        "type": "Online",
        "category": "Career Workshops",
        "speakers": [{"name": "Anita Rao", "title": "HR Lead"}],
        "tags": ["resume", "jobs"],
        "start_date": (datetime.utcnow() + timedelta(days=3)).replace(microsecond=0).isoformat(),
        "start_time": "10:00",
        "max_attendees": 2,
        "location": {"meeting_link": "https://meet.example.com/abc"},
    }
    payload.update(overrides)
    return payload


async def _create_event(client: AsyncClient, headers, **overrides) -> dict:
    response = await client.post("/api/v1/events", json=_event_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["event"]


async def test_create_event(client: AsyncClient, other_headers):
    response = await client.post("/api/v1/events", json=_event_payload(), headers=other_headers)
    assert response.status_code == 201
    event = response.json()["event"]
    assert response.json()["message"] == "Event created successfully"
    assert event["organizer_name"] == "Mentor Two"
    assert event["status"] == "published"
    assert event["available_spots"] == 2
    assert event["registration_open"] is True
    assert event["time_until_event"].endswith("days")
    assert event["location"] == {"meeting_link": "https://meet.example.com/abc"}


async def test_create_event_with_schedule_window(client: AsyncClient, other_headers):
    start = (datetime.utcnow() + timedelta(days=5)).replace(microsecond=0)
    payload = _event_payload(
        start_date=start.isoformat(),
        end_date=(start + timedelta(hours=3)).isoformat(),
        registration_start=(start - timedelta(days=10)).isoformat(),
        registration_deadline=(start - timedelta(days=1)).isoformat() + "Z",
    )
    response = await client.post("/api/v1/events", json=payload, headers=other_headers)
    assert response.status_code == 201, response.text
    event = response.json()["event"]
    assert event["end_date"] == (start + timedelta(hours=3)).isoformat()
    assert event["registration_deadline"] == (start - timedelta(days=1)).isoformat()
    assert event["registration_open"] is True

    update = await client.put(
        f"/api/v1/events/{event['id']}",
        json={"registration_deadline": (datetime.utcnow() - timedelta(days=2)).isoformat()},
        headers=other_headers,
    )
    assert update.status_code == 200
    assert update.json()["event"]["registration_open"] is False


async def test_create_event_in_past_rejected(client: AsyncClient, other_headers):
    past = (datetime.utcnow() - timedelta(days=1)).isoformat()
    response = await client.post("/api/v1/events", json=_event_payload(start_date=past), headers=other_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Event start date must be in the future"


async def test_create_event_validation(client: AsyncClient, other_headers):
    response = await client.post(
        "/api/v1/events", json=_event_payload(title="Hey", start_time="25:00", speakers=[]), headers=other_headers
    )
    assert response.status_code == 400
    fields = {error["loc"][-1] for error in response.json()["errors"]}
    assert {"title", "start_time", "speakers"} <= fields


async def test_list_events_filters(client: AsyncClient, other_headers):
    await _create_event(client, other_headers)
    await _create_event(
        client,
        other_headers,
        title="Mock Interview Marathon",
        description="Practice technical interviews with industry engineers.",
        category="Mock Interviews",
        type="Offline",
        tags=["interview"],
    )

    everything = await client.get("/api/v1/events")
    assert everything.json()["total_events"] == 2

    by_category = await client.get("/api/v1/events", params={"category": "Mock Interviews"})
    assert [e["title"] for e in by_category.json()["events"]] == ["Mock Interview Marathon"]

    all_categories = await client.get("/api/v1/events", params={"category": "all", "type": "all"})
    assert all_categories.json()["total_events"] == 2

    by_type = await client.get("/api/v1/events", params={"type": "Online"})
    assert by_type.json()["total_events"] == 1

    by_tag = await client.get("/api/v1/events", params={"search": "RESUME"})
    assert [e["title"] for e in by_tag.json()["events"]] == ["Resume Writing Workshop"]

    drafts = await client.get("/api/v1/events", params={"status": "draft"})
    assert drafts.json()["total_events"] == 0


async def test_event_categories(client: AsyncClient, other_headers):
    await _create_event(client, other_headers)
    await _create_event(client, other_headers, title="Second Resume Session")
    await _create_event(client, other_headers, title="Webinar on Careers", category="Webinars")

    response = await client.get("/api/v1/events/categories")
    assert response.json() == [{"name": "Career Workshops", "count": 2}, {"name": "Webinars", "count": 1}]


async def test_register_and_unregister(client: AsyncClient, other_headers, auth_headers):
    event = await _create_event(client, other_headers)
    url = f"/api/v1/events/{event['id']}/register"

    response = await client.post(url, json=REGISTRATION, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Successfully registered for event"
    assert response.json()["event"]["id"] == event["id"]

    detail = (await client.get(f"/api/v1/events/{event['id']}")).json()
    assert detail["current_attendees"] == 1
    assert detail["available_spots"] == 1
    assert [a["name"] for a in detail["attendees"]] == ["Student One"]
    assert detail["attendees"][0]["payment_status"] == "paid"

    twice = await client.post(url, json=REGISTRATION, headers=auth_headers)
    assert twice.status_code == 400
    assert twice.json()["detail"] == "You are already registered for this event"

    left = await client.delete(url, headers=auth_headers)
    assert left.json() == {"message": "Successfully unregistered from event"}
    assert (await client.get(f"/api/v1/events/{event['id']}")).json()["current_attendees"] == 0

    again = await client.delete(url, headers=auth_headers)
    assert again.status_code == 400


async def test_paid_event_registration_pending(client: AsyncClient, other_headers, auth_headers):
    event = await _create_event(client, other_headers, fee_amount=499)
    await client.post(f"/api/v1/events/{event['id']}/register", json=REGISTRATION, headers=auth_headers)
    detail = (await client.get(f"/api/v1/events/{event['id']}")).json()
    assert detail["attendees"][0]["payment_status"] == "pending"


async def test_full_event_closes_registration(client: AsyncClient, other_headers, auth_headers, make_user, headers_for):
    event = await _create_event(client, other_headers, max_attendees=1)
    await client.post(f"/api/v1/events/{event['id']}/register", json=REGISTRATION, headers=auth_headers)

    late = await make_user(email="late@example.com")
    response = await client.post(f"/api/v1/events/{event['id']}/register", json=REGISTRATION, headers=headers_for(late))
    assert response.status_code == 400
    assert response.json()["detail"] == "Registration is closed for this event"


async def test_my_registered_events(client: AsyncClient, other_headers, auth_headers):
    event = await _create_event(client, other_headers)
    await _create_event(client, other_headers, title="Not Registered Event")
    await client.post(f"/api/v1/events/{event['id']}/register", json=REGISTRATION, headers=auth_headers)

    response = await client.get("/api/v1/events/my/registered", headers=auth_headers)
    assert [e["id"] for e in response.json()["events"]] == [event["id"]]

    past = await client.get("/api/v1/events/my/registered", params={"status": "past"}, headers=auth_headers)
    assert past.json()["total_events"] == 0


async def test_update_event_merges_location(client: AsyncClient, other_headers, auth_headers):
    event = await _create_event(client, other_headers)
    url = f"/api/v1/events/{event['id']}"

    assert (await client.put(url, json={"title": "Hijacked title"}, headers=auth_headers)).status_code == 403

    response = await client.put(
        url, json={"location": {"instructions": "Join 5 minutes early"}, "current_attendees": 99}, headers=other_headers
    )
    assert response.status_code == 200
    updated = response.json()["event"]
    assert updated["location"] == {"meeting_link": "https://meet.example.com/abc", "instructions": "Join 5 minutes early"}
    assert updated["current_attendees"] == 0


async def test_delete_event_rules(client: AsyncClient, other_headers, auth_headers):
    event = await _create_event(client, other_headers)
    url = f"/api/v1/events/{event['id']}"
    await client.post(f"{url}/register", json=REGISTRATION, headers=auth_headers)

    assert (await client.delete(url, headers=auth_headers)).status_code == 403
    blocked = await client.delete(url, headers=other_headers)
    assert blocked.status_code == 400
    assert blocked.json()["detail"] == "Cannot delete event with registered attendees"

    await client.delete(f"{url}/register", headers=auth_headers)
    deleted = await client.delete(url, headers=other_headers)
    assert deleted.json() == {"message": "Event deleted successfully"}
    assert (await client.get(url)).status_code == 404
