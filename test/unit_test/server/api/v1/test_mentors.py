from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

MENTOR_PAYLOAD = {
    "name": "Priya Sharma",
    "title": "Data Scientist",
    "company": "Flipkart",
    "experience": "6 years",
    "expertise": ["Machine Learning", "Python"],
    "location": "Bangalore",
    "price_amount": 1500,
}


def _in_days(days: float) -> str:
    return (datetime.utcnow() + timedelta(days=days)).replace(microsecond=0).isoformat()


async def _create_mentor(client: AsyncClient, headers, **overrides) -> dict:
    response = await client.post("/api/v1/mentors", json={**MENTOR_PAYLOAD, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["mentor"]


async def _book(client: AsyncClient, mentor_id: int, headers, **overrides):
    payload = {"session_date": _in_days(2), "topics": ["resume"], **overrides}
    return await client.post(f"/api/v1/mentors/{mentor_id}/book", json=payload, headers=headers)


async def test_add_mentor_starts_unverified(client: AsyncClient, other_headers):
    response = await client.post("/api/v1/mentors", json=MENTOR_PAYLOAD, headers=other_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Mentor added successfully"
    assert body["mentor"]["is_verified"] is False
    assert body["mentor"]["price_currency"] == "INR"
    assert body["mentor"]["schedule"]["timezone"] == "Asia/Kolkata"


async def test_add_mentor_twice_is_rejected(client: AsyncClient, other_headers):
    await _create_mentor(client, other_headers)
    response = await client.post("/api/v1/mentors", json=MENTOR_PAYLOAD, headers=other_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "You are already registered as a mentor"


async def test_add_mentor_requires_expertise(client: AsyncClient, other_headers):
    response = await client.post("/api/v1/mentors", json={**MENTOR_PAYLOAD, "expertise": []}, headers=other_headers)
    assert response.status_code == 400


async def test_register_as_mentor_uses_display_name(client: AsyncClient, other_headers):
    payload = {key: value for key, value in MENTOR_PAYLOAD.items() if key != "name"}
    response = await client.post("/api/v1/mentors/register", json=payload, headers=other_headers)
    assert response.status_code == 201
    assert response.json()["message"] == "Successfully registered as mentor"
    assert response.json()["mentor"]["name"] == "Mentor Two"


async def test_list_mentors_filters(client: AsyncClient, other_headers, make_user, headers_for):
    await _create_mentor(client, other_headers)
    third = await make_user(email="designer@example.com", name="Designer")
    await _create_mentor(
        client,
        headers_for(third),
        name="Arjun Mehta",
        title="UX Designer",
        expertise=["Figma"],
        location="Pune",
        price_amount=500,
    )

    everyone = await client.get("/api/v1/mentors")
    assert everyone.status_code == 200
    assert everyone.json()["total_mentors"] == 2
    assert everyone.json()["current_page"] == 1

    by_search = await client.get("/api/v1/mentors", params={"search": "python"})
    assert [m["name"] for m in by_search.json()["mentors"]] == ["Priya Sharma"]

    by_expertise = await client.get("/api/v1/mentors", params={"expertise": "Figma,Go"})
    assert [m["name"] for m in by_expertise.json()["mentors"]] == ["Arjun Mehta"]

    by_location = await client.get("/api/v1/mentors", params={"location": "bang"})
    assert by_location.json()["total_mentors"] == 1

    by_price = await client.get("/api/v1/mentors", params={"max_price": 1000})
    assert [m["name"] for m in by_price.json()["mentors"]] == ["Arjun Mehta"]

    paged = await client.get("/api/v1/mentors", params={"limit": 1, "page": 2})
    assert len(paged.json()["mentors"]) == 1
    assert paged.json()["total_pages"] == 2


async def test_get_mentor_not_found(client: AsyncClient):
    response = await client.get("/api/v1/mentors/999")
    assert response.status_code == 404
    assert response.json()["detail"] == "Mentor not found"


async def test_update_mentor_owner_only(client: AsyncClient, other_headers, auth_headers):
    mentor = await _create_mentor(client, other_headers)

    forbidden = await client.put(f"/api/v1/mentors/{mentor['id']}", json={"bio": "hi"}, headers=auth_headers)
    assert forbidden.status_code == 403

    response = await client.put(
        f"/api/v1/mentors/{mentor['id']}", json={"bio": "Ten years in ML", "availability": "Busy"}, headers=other_headers
    )
    assert response.status_code == 200
    assert response.json()["mentor"]["bio"] == "Ten years in ML"
    assert response.json()["mentor"]["availability"] == "Busy"


async def test_book_session_creates_meeting_link(client: AsyncClient, other_headers, auth_headers):
    mentor = await _create_mentor(client, other_headers)

    response = await _book(client, mentor["id"], auth_headers)
    assert response.status_code == 201
    booked = response.json()["session"]
    assert response.json()["message"] == "Session booked successfully"
    assert booked["status"] == "scheduled"
    assert booked["payment_amount"] == 1500
    assert booked["meeting_link"] == f"https://meet.careerpath.com/session/{booked['id']}"

    refreshed = await client.get(f"/api/v1/mentors/{mentor['id']}")
    assert refreshed.json()["total_sessions"] == 1


async def test_book_session_phone_call_has_no_link(client: AsyncClient, other_headers, auth_headers):
    mentor = await _create_mentor(client, other_headers)
    response = await _book(client, mentor["id"], auth_headers, session_type="phone-call")
    assert response.json()["session"]["meeting_link"] is None


async def test_book_session_needs_lead_time(client: AsyncClient, other_headers, auth_headers):
    mentor = await _create_mentor(client, other_headers)
    response = await _book(client, mentor["id"], auth_headers, session_date=_in_days(0.01))
    assert response.status_code == 400
    assert response.json()["detail"] == "Session must be booked at least 1 hour in advance"


async def test_book_session_mentor_unavailable(client: AsyncClient, other_headers, auth_headers):
    mentor = await _create_mentor(client, other_headers, availability="Away")
    response = await _book(client, mentor["id"], auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Mentor is not available for booking"


async def test_book_session_conflict(client: AsyncClient, other_headers, auth_headers):
    mentor = await _create_mentor(client, other_headers)
    start = datetime.utcnow() + timedelta(days=3)
    await _book(client, mentor["id"], auth_headers, session_date=start.replace(microsecond=0).isoformat())

    clash = (start + timedelta(minutes=30)).replace(microsecond=0).isoformat()
    response = await _book(client, mentor["id"], auth_headers, session_date=clash)
    assert response.status_code == 400
    assert response.json()["detail"]["conflict_count"] == 1


async def test_my_sessions(client: AsyncClient, other_headers, auth_headers):
    mentor = await _create_mentor(client, other_headers)
    await _book(client, mentor["id"], auth_headers, session_date=_in_days(2))
    await _book(client, mentor["id"], auth_headers, session_date=_in_days(5))

    response = await client.get("/api/v1/mentors/sessions/my", headers=auth_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["total_sessions"] == 2
    assert body["sessions"][0]["session_date"] > body["sessions"][1]["session_date"]

    none_cancelled = await client.get("/api/v1/mentors/sessions/my", params={"status": "cancelled"}, headers=auth_headers)
    assert none_cancelled.json()["total_sessions"] == 0


async def test_session_status_rules(client: AsyncClient, other_headers, auth_headers):
    mentor = await _create_mentor(client, other_headers)
    booked = (await _book(client, mentor["id"], auth_headers)).json()["session"]
    url = f"/api/v1/mentors/sessions/{booked['id']}/status"

    student_completes = await client.put(url, json={"status": "completed"}, headers=auth_headers)
    assert student_completes.status_code == 403

    mentor_completes = await client.put(url, json={"status": "completed"}, headers=other_headers)
    assert mentor_completes.status_code == 200
    assert mentor_completes.json()["session"]["status"] == "completed"

    too_late = await client.put(url, json={"status": "cancelled"}, headers=auth_headers)
    assert too_late.status_code == 400


async def test_feedback_updates_mentor_rating(client: AsyncClient, other_headers, auth_headers):
    mentor = await _create_mentor(client, other_headers)
    booked = (await _book(client, mentor["id"], auth_headers)).json()["session"]
    feedback_url = f"/api/v1/mentors/sessions/{booked['id']}/feedback"

    early = await client.put(feedback_url, json={"rating": 5}, headers=auth_headers)
    assert early.status_code == 400
    assert early.json()["detail"] == "Can only submit feedback for completed sessions"

    await client.put(f"/api/v1/mentors/sessions/{booked['id']}/status", json={"status": "completed"}, headers=other_headers)
    response = await client.put(feedback_url, json={"rating": 4, "comment": "Helpful"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["session"]["feedback"] == {"student_rating": 4, "student_comment": "Helpful"}

    refreshed = (await client.get(f"/api/v1/mentors/{mentor['id']}")).json()
    assert refreshed["rating_average"] == 4.0
    assert refreshed["rating_count"] == 1


async def test_feedback_from_stranger_forbidden(client: AsyncClient, other_headers, auth_headers, make_user, headers_for):
    mentor = await _create_mentor(client, other_headers)
    booked = (await _book(client, mentor["id"], auth_headers)).json()["session"]
    stranger = await make_user(email="stranger@example.com")

    response = await client.put(
        f"/api/v1/mentors/sessions/{booked['id']}/feedback", json={"rating": 1}, headers=headers_for(stranger)
    )
    assert response.status_code == 403
