"""
HTTP routes for events, resources, the tech list and the contact form.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel

from caucus_api.auth import SessionPayload
from caucus_api.caching import (
    EVENTS_MAX_AGE,
    RESOURCES_MAX_AGE,
    TECH_LIST_MAX_AGE,
    apply_cache_headers,
)
from caucus_api.config import Settings
from caucus_api.db import DbClient, DuplicateNameError, EventRecord
from caucus_api.dependencies import (
    SecurityContext,
    admin_view,
    client_identifier,
    get_app_settings,
    get_db_client,
    get_security,
    optional_admin,
    require_admin,
)
from caucus_api.errors import RateLimited
from caucus_api.ical import build_event_calendar
from caucus_api.schemas import (
    ContactCreated,
    ContactCreatedResponse,
    ContactListResponse,
    ContactOut,
    ContactReadUpdate,
    ContactRequest,
    ContactResponse,
    EventCreate,
    EventListResponse,
    EventOut,
    EventResponse,
    EventUpdate,
    MessageResponse,
    ResourceCreate,
    ResourceListResponse,
    ResourceOut,
    ResourceResponse,
    ResourceUpdate,
    TechItemCreate,
    TechItemListResponse,
    TechItemOut,
    TechItemResponse,
    TechItemUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_MESSAGE_LENGTH = 10
MAX_MESSAGE_LENGTH = 5000


def _changes(payload: BaseModel, required: tuple[str, ...]) -> dict:
    """Fields explicitly sent in a partial update; required fields cannot be nulled."""
    changes = payload.model_dump(exclude_unset=True)
    return {
        key: value
        for key, value in changes.items()
        if value is not None or key not in required
    }


def _visible_event(
    db: DbClient, event_id: str, session: Optional[SessionPayload]
) -> EventRecord:
    event = db.get_event(event_id)
    if not event or (not event.is_visible and session is None):
        raise HTTPException(status_code=404, detail="Event not found")
    return event


# Events


@router.get("/events", response_model=EventListResponse)
def list_events(
    response: Response,
    limit: Optional[int] = Query(None, ge=1),
    include_hidden: bool = Depends(admin_view),
    db: DbClient = Depends(get_db_client),
):
    events, total = db.list_events(include_hidden=include_hidden, limit=limit)
    apply_cache_headers(response, 0 if include_hidden else EVENTS_MAX_AGE)
    return EventListResponse(
        data=[EventOut.model_validate(event) for event in events], total=total
    )


@router.get("/events/{event_id}", response_model=EventResponse)
def get_event(
    event_id: str,
    session: Optional[SessionPayload] = Depends(optional_admin),
    db: DbClient = Depends(get_db_client),
):
    event = _visible_event(db, event_id, session)
    return EventResponse(data=EventOut.model_validate(event))


@router.post(
    "/events",
    response_model=EventResponse,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_event(payload: EventCreate, db: DbClient = Depends(get_db_client)):
    event = db.create_event(payload.model_dump())
    logger.info("Created event %s (%s)", event.id, event.topic)
    return EventResponse(data=EventOut.model_validate(event))


@router.put(
    "/events/{event_id}",
    response_model=EventResponse,
    dependencies=[Depends(require_admin)],
)
def update_event(
    event_id: str, payload: EventUpdate, db: DbClient = Depends(get_db_client)
):
    changes = _changes(payload, ("date", "time", "topic", "location", "is_visible"))
    event = db.update_event(event_id, changes)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    logger.info("Updated event %s", event.id)
    return EventResponse(data=EventOut.model_validate(event))


@router.delete(
    "/events/{event_id}",
    response_model=EventResponse,
    dependencies=[Depends(require_admin)],
)
def delete_event(event_id: str, db: DbClient = Depends(get_db_client)):
    event = db.delete_event(event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    logger.info("Deleted event %s", event.id)
    return EventResponse(data=EventOut.model_validate(event))


@router.get("/events/{event_id}/ical")
def event_ical(
    event_id: str,
    session: Optional[SessionPayload] = Depends(optional_admin),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_app_settings),
):
    event = _visible_event(db, event_id, session)
    calendar = build_event_calendar(
        event, site_name=settings.site_name, site_domain=settings.site_domain
    )
    return Response(
        content=calendar,
        media_type="text/calendar; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="event-{event.id}.ics"',
            "Cache-Control": "no-cache",
        },
    )


# Resources


@router.get("/resources", response_model=ResourceListResponse)
def list_resources(
    response: Response,
    limit: Optional[int] = Query(None, ge=1),
    featured: bool = Query(False),
    include_hidden: bool = Depends(admin_view),
    db: DbClient = Depends(get_db_client),
):
    resources, total = db.list_resources(
        include_hidden=include_hidden, featured_only=featured, limit=limit
    )
    apply_cache_headers(response, 0 if include_hidden else RESOURCES_MAX_AGE)
    return ResourceListResponse(
        data=[ResourceOut.model_validate(r) for r in resources], total=total
    )


@router.post(
    "/resources",
    response_model=ResourceResponse,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_resource(payload: ResourceCreate, db: DbClient = Depends(get_db_client)):
    resource = db.create_resource(payload.model_dump())
    return ResourceResponse(data=ResourceOut.model_validate(resource))


@router.put(
    "/resources/{resource_id}",
    response_model=ResourceResponse,
    dependencies=[Depends(require_admin)],
)
def update_resource(
    resource_id: str, payload: ResourceUpdate, db: DbClient = Depends(get_db_client)
):
    changes = _changes(payload, ("title", "url", "featured", "order", "is_visible"))
    resource = db.update_resource(resource_id, changes)
    if not resource:
        raise HTTPException(status_code=404, detail="Resource not found")
    return ResourceResponse(data=ResourceOut.model_validate(resource))


@router.delete(
    "/resources/{resource_id}",
    response_model=ResourceResponse,
    dependencies=[Depends(require_admin)],
)
def delete_resource(resource_id: str, db: DbClient = Depends(get_db_client)):
    resource = db.delete_resource(resource_id)
    if not resource:
        raise HTTPException(status_code=404, detail="Resource not found")
    return ResourceResponse(data=ResourceOut.model_validate(resource))


# Tech list


@router.get("/tech-list", response_model=TechItemListResponse)
def list_tech_items(
    response: Response,
    include_hidden: bool = Depends(admin_view),
    db: DbClient = Depends(get_db_client),
):
    items = db.list_tech_items(include_hidden=include_hidden)
    apply_cache_headers(response, 0 if include_hidden else TECH_LIST_MAX_AGE)
    return TechItemListResponse(data=[TechItemOut.model_validate(i) for i in items])


@router.post(
    "/tech-list",
    response_model=TechItemResponse,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_tech_item(payload: TechItemCreate, db: DbClient = Depends(get_db_client)):
    try:
        item = db.create_tech_item(payload.model_dump())
    except DuplicateNameError as exc:
        raise HTTPException(
            status_code=409, detail="Tech item with this name already exists"
        ) from exc
    return TechItemResponse(data=TechItemOut.model_validate(item))


@router.put(
    "/tech-list/{item_id}",
    response_model=TechItemResponse,
    dependencies=[Depends(require_admin)],
)
def update_tech_item(
    item_id: str, payload: TechItemUpdate, db: DbClient = Depends(get_db_client)
):
    changes = _changes(payload, ("name", "url", "order", "is_visible"))
    try:
        item = db.update_tech_item(item_id, changes)
    except DuplicateNameError as exc:
        raise HTTPException(
            status_code=409, detail="Tech item with this name already exists"
        ) from exc
    if not item:
        raise HTTPException(status_code=404, detail="Tech item not found")
    return TechItemResponse(data=TechItemOut.model_validate(item))


@router.delete(
    "/tech-list/{item_id}",
    response_model=TechItemResponse,
    dependencies=[Depends(require_admin)],
)
def delete_tech_item(item_id: str, db: DbClient = Depends(get_db_client)):
    item = db.delete_tech_item(item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Tech item not found")
    return TechItemResponse(data=TechItemOut.model_validate(item))


# Contact form


@router.post("/contact", response_model=ContactCreatedResponse, status_code=201)
def submit_contact(
    payload: ContactRequest,
    client_id: str = Depends(client_identifier),
    security: SecurityContext = Depends(get_security),
    settings: Settings = Depends(get_app_settings),
    db: DbClient = Depends(get_db_client),
):
    allowed = security.contact_limiter.check_and_record(
        client_id, settings.contact_max_submissions, settings.contact_window_ms
    )
    if not allowed:
        logger.warning("Contact rate limit exceeded for %s", client_id)
        minutes = max(1, settings.contact_window_seconds // 60)
        raise RateLimited(
            f"Too many submissions. Please try again in {minutes} minutes."
        )

    name = (payload.name or "").strip()
    email = (payload.email or "").strip().lower()
    message = (payload.message or "").strip()
    if not name or not email or not message:
        raise HTTPException(status_code=400, detail="All fields are required")
    if not EMAIL_PATTERN.match(email):
        raise HTTPException(status_code=400, detail="Invalid email format")
    if len(message) < MIN_MESSAGE_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Message must be at least {MIN_MESSAGE_LENGTH} characters long",
        )
    if len(message) > MAX_MESSAGE_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Message is too long (max {MAX_MESSAGE_LENGTH} characters)",
        )

    contact = db.create_contact(name=name, email=email, message=message)
    logger.info("Contact form submission received: %s", contact.id)
    return ContactCreatedResponse(data=ContactCreated(id=contact.id))


@router.get(
    "/contact",
    response_model=ContactListResponse,
    dependencies=[Depends(require_admin)],
)
def list_contacts(
    limit: int = Query(50, ge=1, le=500),
    skip: int = Query(0, ge=0),
    unread: bool = Query(False),
    db: DbClient = Depends(get_db_client),
):
    contacts, total = db.list_contacts(limit=limit, skip=skip, unread_only=unread)
    return ContactListResponse(
        data=[ContactOut.model_validate(c) for c in contacts],
        total=total,
        unread_count=db.count_unread_contacts(),
    )


@router.put(
    "/contact/{contact_id}",
    response_model=ContactResponse,
    dependencies=[Depends(require_admin)],
)
def update_contact(
    contact_id: str, payload: ContactReadUpdate, db: DbClient = Depends(get_db_client)
):
    if not isinstance(payload.read, bool):
        raise HTTPException(status_code=400, detail="read field must be a boolean")
    contact = db.set_contact_read(contact_id, payload.read)
    if not contact:
        raise HTTPException(status_code=404, detail="Contact submission not found")
    logger.info("Contact submission %s marked read=%s", contact.id, contact.read)
    return ContactResponse(data=ContactOut.model_validate(contact))


@router.delete(
    "/contact/{contact_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin)],
)
def delete_contact(contact_id: str, db: DbClient = Depends(get_db_client)):
    contact = db.delete_contact(contact_id)
    if not contact:
        raise HTTPException(status_code=404, detail="Contact submission not found")
    logger.info("Contact submission %s deleted", contact.id)
    return MessageResponse(message="Contact submission deleted successfully")
