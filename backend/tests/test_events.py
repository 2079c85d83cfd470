"""
Tests for event CRUD endpoints, normalization and image uploads.
"""

import uuid
from datetime import datetime, timezone, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from app.schemas.event import EventCreate
from app.services.event_service import create_event
from app.services.upload_service import IncomingImage

FUTURE_DATE = (datetime.now(timezone.utc) + timedelta(days=30)).isoformat()

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.mark.asyncio
async def test_create_event(client: AsyncClient, auth_headers):
    """Authenticated user can create an event."""
    response = await client.post(
        "/events",
        json={
            "title": "Python Conference 2026",
            "description": "Annual Python gathering",
            "date": FUTURE_DATE,
            "location": "Convention Center",
        },
        headers=auth_headers,
    )
    assert response.status_code == 201
    data = response.json()
    uuid.UUID(data["id"])
    assert data["title"] == "Python Conference 2026"
    assert data["location"] == "Convention Center"
    assert data["images"] is None
    assert "createdAt" in data and "updatedAt" in data


@pytest.mark.asyncio
async def test_create_event_normalizes_text_fields(client: AsyncClient, auth_headers):
    response = await client.post(
        "/events",
        json={
            "title": "  conference   X  ",
            "description": "   talks and workshops  ",
            "date": FUTURE_DATE,
            "location": "    ",
        },
        headers=auth_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Conference X"
    assert data["description"] == "talks and workshops"
    assert data["location"] is None


@pytest.mark.asyncio
async def test_create_event_blank_title(client: AsyncClient, auth_headers):
    response = await client.post(
        "/events",
        json={"title": "   ", "date": FUTURE_DATE},
        headers=auth_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_event_missing_date(client: AsyncClient, auth_headers):
    response = await client.post("/events", json={"title": "No Date"}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "date"


@pytest.mark.asyncio
async def test_create_event_title_too_long(client: AsyncClient, auth_headers):
    response = await client.post(
        "/events",
        json={"title": "x" * 201, "date": FUTURE_DATE},
        headers=auth_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_event_unauthenticated(client: AsyncClient):
    """Unauthenticated request returns 401."""
    response = await client.post("/events", json={
        "title": "Unauthorized Event",
        "date": FUTURE_DATE,
    })
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_event_with_images(client: AsyncClient, auth_headers, upload_dir):
    response = await client.post(
        "/events",
        data={"title": "photo walk", "date": FUTURE_DATE, "location": "Old Town"},
        files=[
            ("images", ("first.png", PNG_BYTES, "image/png")),
            ("images", ("second.JPG", b"\xff\xd8\xff" + b"\x00" * 32, "image/jpeg")),
        ],
        headers=auth_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Photo Walk"
    assert len(data["images"]) == 2
    assert all(path.startswith("uploads/events/") for path in data["images"])
    assert data["images"][1].endswith(".jpg")

    stored = sorted(p.name for p in (upload_dir / "events").iterdir())
    assert sorted(path.rsplit("/", 1)[1] for path in data["images"]) == stored


@pytest.mark.asyncio
async def test_create_event_too_many_images(client: AsyncClient, auth_headers, upload_dir):
    files = [("images", (f"img{i}.png", PNG_BYTES, "image/png")) for i in range(6)]
    response = await client.post(
        "/events",
        data={"title": "Gallery", "date": FUTURE_DATE},
        files=files,
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert not (upload_dir / "events").exists()


@pytest.mark.asyncio
async def test_create_event_blank_title_writes_no_images(client: AsyncClient, auth_headers, upload_dir):
    """A rejected event leaves nothing on disk."""
    response = await client.post(
        "/events",
        data={"title": "    ", "date": FUTURE_DATE},
        files=[("images", ("cover.png", PNG_BYTES, "image/png"))],
        headers=auth_headers,
    )
    assert response.status_code == 400
    events_dir = upload_dir / "events"
    assert not events_dir.exists() or list(events_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_create_event_failed_insert_removes_images(db_session, upload_dir, monkeypatch):
    async def failing_flush(*args, **kwargs):
        raise OperationalError("INSERT INTO events", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db_session, "flush", failing_flush)
    event_data = EventCreate(title="Open Air", date=FUTURE_DATE)
    image = IncomingImage(filename="cover.png", content_type="image/png", data=PNG_BYTES)

    with pytest.raises(OperationalError):
        await create_event(db_session, event_data, [image])

    assert list((upload_dir / "events").iterdir()) == []


@pytest.mark.asyncio
async def test_create_event_rejects_non_image(client: AsyncClient, auth_headers, upload_dir):
    response = await client.post(
        "/events",
        data={"title": "Docs", "date": FUTURE_DATE},
        files=[("images", ("notes.txt", b"hello", "text/plain"))],
        headers=auth_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_events(client: AsyncClient, auth_headers, test_event):
    response = await client.get("/events", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert [event["id"] for event in data] == [str(test_event.id)]


@pytest.mark.asyncio
async def test_get_event(client: AsyncClient, auth_headers, test_event):
    """Get single event by ID."""
    response = await client.get(f"/events/{test_event.id}", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == str(test_event.id)
    assert data["title"] == "Test Concert"


@pytest.mark.asyncio
async def test_get_event_not_found(client: AsyncClient, auth_headers):
    """Non-existent event returns 404."""
    response = await client.get(f"/events/{uuid.uuid4()}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_get_event_malformed_id(client: AsyncClient, auth_headers):
    response = await client.get("/events/not-a-uuid", headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_event_partial(client: AsyncClient, auth_headers, test_event):
    """Only provided fields change, and they are normalized."""
    response = await client.patch(
        f"/events/{test_event.id}",
        json={"title": "  the  big   show "},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "The Big Show"
    assert data["description"] == "A test event"
    assert data["location"] == "Test Venue"


@pytest.mark.asyncio
async def test_update_event_not_found(client: AsyncClient, auth_headers):
    response = await client.patch(
        f"/events/{uuid.uuid4()}",
        json={"title": "Ghost"},
        headers=auth_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_event(client: AsyncClient, auth_headers, test_event):
    response = await client.delete(f"/events/{test_event.id}", headers=auth_headers)
    assert response.status_code == 204

    response = await client.get(f"/events/{test_event.id}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_event_not_found(client: AsyncClient, auth_headers):
    response = await client.delete(f"/events/{uuid.uuid4()}", headers=auth_headers)
    assert response.status_code == 404
