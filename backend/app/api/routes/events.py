"""
Event endpoints: CRUD, image uploads and attendee membership.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from app.db.session import get_db
from app.schemas.event import EventCreate, EventUpdate, EventResponse, EventWithAttendees
from app.schemas.user import UserResponse
from app.services.event_service import (
    create_event,
    list_events,
    get_event,
    update_event,
    delete_event,
    register_attendee,
    unregister_attendee,
    list_attendees,
)
from app.services.upload_service import IncomingImage
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


async def _read_event_request(request: Request) -> tuple[EventCreate, list[IncomingImage]]:
    """
    Accept either a JSON body or multipart form data with optional `images`.
    Uploaded files are read completely before any service is called.
    """
    content_type = request.headers.get("content-type", "")
    images: list[IncomingImage] = []

    try:
        if content_type.startswith("multipart/form-data"):
            form = await request.form()
            # Unknown form fields are passed through so validation rejects them
            payload = {key: value for key, value in form.multi_items() if key != "images"}
            for item in form.getlist("images"):
                if isinstance(item, UploadFile):
                    images.append(IncomingImage(
                        filename=item.filename or "",
                        content_type=item.content_type or "",
                        data=await item.read(),
                    ))
            event_data = EventCreate.model_validate(payload)
        else:
            event_data = EventCreate.model_validate_json(await request.body())
    except ValidationError as exc:
        raise RequestValidationError(exc.errors())

    return event_data, images


@router.post(
    "",
    name="events:create",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {"schema": EventCreate.model_json_schema(by_alias=True)},
                "multipart/form-data": {
                    "schema": {
                        "type": "object",
                        "required": ["title", "date"],
                        "properties": {
                            "title": {"type": "string"},
                            "description": {"type": "string"},
                            "date": {"type": "string", "format": "date-time"},
                            "location": {"type": "string"},
                            "images": {"type": "array", "items": {"type": "string", "format": "binary"}},
                        },
                    }
                },
            },
        }
    },
)
async def create_event_endpoint(request: Request, db: AsyncSession = Depends(get_db)):
    """Create an event from JSON, or from multipart form data with up to 5 images."""
    event_data, images = await _read_event_request(request)
    return await create_event(db, event_data, images)


@router.get("", name="events:list", response_model=list[EventResponse])
async def list_events_endpoint(db: AsyncSession = Depends(get_db)):
    """List all events ordered by date."""
    return await list_events(db)


@router.get("/{event_id}/attendees", name="events:attendees", response_model=list[UserResponse])
async def list_attendees_endpoint(event_id: UUID, db: AsyncSession = Depends(get_db)):
    return await list_attendees(db, event_id)


@router.post(
    "/{event_id}/register/{user_id}",
    name="events:register_attendee",
    response_model=EventWithAttendees,
)
async def register_attendee_endpoint(event_id: UUID, user_id: int, db: AsyncSession = Depends(get_db)):
    """Add a user to the event's attendees. 400 if already registered."""
    return await register_attendee(db, event_id, user_id)


@router.delete(
    "/{event_id}/unregister/{user_id}",
    name="events:unregister_attendee",
    response_model=EventWithAttendees,
)
async def unregister_attendee_endpoint(event_id: UUID, user_id: int, db: AsyncSession = Depends(get_db)):
    """Remove a user from the event's attendees. 400 if not registered."""
    return await unregister_attendee(db, event_id, user_id)


@router.get("/{event_id}", name="events:get", response_model=EventResponse)
async def get_event_endpoint(event_id: UUID, db: AsyncSession = Depends(get_db)):
    """Get a single event by ID."""
    return await get_event(db, event_id)


@router.patch("/{event_id}", name="events:update", response_model=EventResponse)
async def update_event_endpoint(
    event_id: UUID,
    event_data: EventUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await update_event(db, event_id, event_data)


@router.delete("/{event_id}", name="events:delete", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event_endpoint(event_id: UUID, db: AsyncSession = Depends(get_db)):
    await delete_event(db, event_id)
