"""
Tests for booking endpoints: uniqueness, ownership gate and status lifecycle.
"""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.models.booking import Booking
from app.services import booking_service


async def _book(client: AsyncClient, headers: dict, event_id, notes: str | None = None):
    payload = {"eventId": str(event_id)}
    if notes is not None:
        payload["notes"] = notes
    return await client.post("/bookings", json=payload, headers=headers)


@pytest.mark.asyncio
async def test_create_booking(client: AsyncClient, auth_headers, test_event, test_user):
    """New bookings start pending and come back with user and event."""
    response = await _book(client, auth_headers, test_event.id, notes="Front row please")
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["notes"] == "Front row please"
    assert data["userId"] == test_user.id
    assert data["eventId"] == str(test_event.id)
    assert data["user"]["email"] == "test@example.com"
    assert "password" not in data["user"]
    assert data["event"]["title"] == "Test Concert"


@pytest.mark.asyncio
async def test_create_booking_unauthenticated(client: AsyncClient, test_event):
    response = await client.post("/bookings", json={"eventId": str(test_event.id)})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_booking_cannot_choose_owner(client: AsyncClient, auth_headers, test_event, other_user):
    """The owner is always the caller; a userId in the body is rejected."""
    response = await client.post(
        "/bookings",
        json={"eventId": str(test_event.id), "userId": other_user.id},
        headers=auth_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_booking(client: AsyncClient, auth_headers, test_event):
    """Same user booking same event twice returns 409."""
    first = await _book(client, auth_headers, test_event.id)
    assert first.status_code == 201

    second = await _book(client, auth_headers, test_event.id, notes="different notes")
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_other_user_can_book_same_event(client: AsyncClient, auth_headers, other_headers, test_event):
    assert (await _book(client, auth_headers, test_event.id)).status_code == 201
    assert (await _book(client, other_headers, test_event.id)).status_code == 201


@pytest.mark.asyncio
async def test_book_nonexistent_event(client: AsyncClient, auth_headers):
    """Booking non-existent event returns 404."""
    response = await _book(client, auth_headers, uuid.uuid4())
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_book_malformed_event_id(client: AsyncClient, auth_headers):
    response = await client.post("/bookings", json={"eventId": "42"}, headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_user_bookings(client: AsyncClient, auth_headers, other_headers, test_event):
    """Users see only their own bookings, with event details."""
    await _book(client, auth_headers, test_event.id)
    await _book(client, other_headers, test_event.id)

    response = await client.get("/bookings", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["eventId"] == str(test_event.id)
    assert data[0]["event"]["title"] == "Test Concert"


@pytest.mark.asyncio
async def test_list_user_bookings_newest_first(client: AsyncClient, auth_headers, test_event):
    created = await client.post(
        "/events",
        json={"title": "Second Show", "date": "2030-01-01T20:00:00Z"},
        headers=auth_headers,
    )
    first = await _book(client, auth_headers, test_event.id)
    second = await _book(client, auth_headers, created.json()["id"])

    response = await client.get("/bookings", headers=auth_headers)
    assert [b["id"] for b in response.json()] == [second.json()["id"], first.json()["id"]]


@pytest.mark.asyncio
async def test_list_event_bookings(client: AsyncClient, auth_headers, other_headers, test_event, other_user):
    await _book(client, auth_headers, test_event.id)
    await _book(client, other_headers, test_event.id)

    response = await client.get(f"/bookings/event/{test_event.id}", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 2
    assert data[0]["user"]["id"] == other_user.id
    assert all("password" not in b["user"] for b in data)


@pytest.mark.asyncio
async def test_list_event_bookings_unknown_event(client: AsyncClient, auth_headers):
    response = await client.get(f"/bookings/event/{uuid.uuid4()}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_get_booking_owner(client: AsyncClient, auth_headers, test_event):
    booking_id = (await _book(client, auth_headers, test_event.id)).json()["id"]
    response = await client.get(f"/bookings/{booking_id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["id"] == booking_id


@pytest.mark.asyncio
async def test_get_booking_not_found(client: AsyncClient, auth_headers):
    response = await client.get("/bookings/99999", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_non_owner_gets_forbidden(client: AsyncClient, auth_headers, other_headers, test_event):
    """get/update/delete by another user are 403, never 404 or success."""
    booking_id = (await _book(client, auth_headers, test_event.id)).json()["id"]

    assert (await client.get(f"/bookings/{booking_id}", headers=other_headers)).status_code == 403
    assert (await client.patch(
        f"/bookings/{booking_id}", json={"status": "cancelled"}, headers=other_headers,
    )).status_code == 403
    assert (await client.delete(f"/bookings/{booking_id}", headers=other_headers)).status_code == 403

    # Untouched
    response = await client.get(f"/bookings/{booking_id}", headers=auth_headers)
    assert response.json()["status"] == "pending"


@pytest.mark.asyncio
async def test_update_booking_status_lifecycle(client: AsyncClient, auth_headers, test_event):
    booking_id = (await _book(client, auth_headers, test_event.id, notes="keep me")).json()["id"]

    confirmed = await client.patch(f"/bookings/{booking_id}", json={"status": "confirmed"}, headers=auth_headers)
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "confirmed"
    assert confirmed.json()["notes"] == "keep me"

    cancelled = await client.patch(f"/bookings/{booking_id}", json={"status": "cancelled"}, headers=auth_headers)
    assert cancelled.json()["status"] == "cancelled"


@pytest.mark.asyncio
async def test_update_booking_notes_only(client: AsyncClient, auth_headers, test_event):
    booking_id = (await _book(client, auth_headers, test_event.id)).json()["id"]
    response = await client.patch(f"/bookings/{booking_id}", json={"notes": "Vegetarian"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["notes"] == "Vegetarian"
    assert response.json()["status"] == "pending"


@pytest.mark.asyncio
async def test_update_booking_invalid_status(client: AsyncClient, auth_headers, test_event):
    booking_id = (await _book(client, auth_headers, test_event.id)).json()["id"]
    response = await client.patch(f"/bookings/{booking_id}", json={"status": "archived"}, headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_booking_allows_rebooking(client: AsyncClient, auth_headers, test_event):
    booking_id = (await _book(client, auth_headers, test_event.id)).json()["id"]

    response = await client.delete(f"/bookings/{booking_id}", headers=auth_headers)
    assert response.status_code == 204
    assert (await client.get(f"/bookings/{booking_id}", headers=auth_headers)).status_code == 404

    assert (await _book(client, auth_headers, test_event.id)).status_code == 201


@pytest.mark.asyncio
async def test_booking_flow_end_to_end(client: AsyncClient):
    """Two users, one event: normalization, duplicate and ownership checks."""
    a = await client.post("/auth/register", json={"email": "a@x.com", "password": "secret-a", "displayName": "A"})
    b = await client.post("/auth/register", json={"email": "b@x.com", "password": "secret-b", "displayName": "B"})
    headers_a = {"Authorization": f"Bearer {a.json()['access_token']}"}
    headers_b = {"Authorization": f"Bearer {b.json()['access_token']}"}

    event = await client.post(
        "/events",
        json={"title": "  conference   X  ", "date": "2030-05-01T09:00:00Z"},
        headers=headers_a,
    )
    assert event.json()["title"] == "Conference X"
    event_id = event.json()["id"]

    booking = await _book(client, headers_a, event_id)
    assert booking.status_code == 201
    assert booking.json()["status"] == "pending"

    assert (await _book(client, headers_a, event_id)).status_code == 409

    booking_id = booking.json()["id"]
    confirmed = await client.patch(f"/bookings/{booking_id}", json={"status": "confirmed"}, headers=headers_a)
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "confirmed"

    foreign = await client.patch(f"/bookings/{booking_id}", json={"status": "cancelled"}, headers=headers_b)
    assert foreign.status_code == 403


@pytest.mark.asyncio
async def test_create_booking_race_reports_conflict(
    client: AsyncClient, db_session, auth_headers, test_event, test_user, monkeypatch
):
    """A booking committed between the pre-check and the insert still yields 409."""
    user_id, event_id = test_user.id, test_event.id

    async def booked_concurrently(db, user_id, event_id):
        db.add(Booking(user_id=user_id, event_id=event_id, status="confirmed"))
        await db.commit()
        return None

    monkeypatch.setattr(booking_service, "_find_booking_id", booked_concurrently)

    response = await _book(client, auth_headers, event_id)
    assert response.status_code == 409
    assert response.json()["detail"] == booking_service.DUPLICATE_BOOKING

    rows = (await db_session.execute(
        select(Booking.status).where(Booking.user_id == user_id, Booking.event_id == event_id)
    )).scalars().all()
    assert rows == ["confirmed"]
