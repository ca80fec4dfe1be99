"""
Event routes: listing with geo/time/tag filters, creation with hosts,
detail, update with auto-changelog, and delete.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from planit.auth import AuthUser
from planit.changelog import can_edit_event, diff_tracked_fields
from planit.config import Settings, get_settings
from planit.db import (
    DbClient,
    DbError,
    EventRecord,
    HostRecord,
    RecordNotFound,
    UniqueViolation,
    as_utc,
    new_id,
)
from planit.dependencies import get_current_user, get_db_client, get_optional_user
from planit.routes.common import (
    check_location,
    event_payloads,
    load_event,
    load_hosts,
)
from planit.schemas import (
    DeleteResponse,
    EventCreatePayload,
    EventDetailOut,
    EventOut,
    EventUpdatePayload,
)
from planit.search import (
    SearchValidationError,
    build_event_query,
    find_events,
    parse_center,
    parse_tags,
)
from planit.slugs import event_slug

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_time_range(starts_at: Optional[datetime], ends_at: Optional[datetime]) -> None:
    if starts_at and ends_at and ends_at < starts_at:
        raise HTTPException(status_code=400, detail="ends_at must not be before starts_at")


@router.get("/events", response_model=list[EventOut])
def list_events(
    lat: Optional[float] = Query(None),
    lng: Optional[float] = Query(None),
    radius: Optional[float] = Query(None, gt=0, description="meters"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    tags: Optional[str] = Query(None, description="comma-separated"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    try:
        center = parse_center(lat, lng)
    except SearchValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    query = build_event_query(
        start_date=start_date,
        end_date=end_date,
        tags=parse_tags(tags),
        limit=limit or settings.default_page_size,
        offset=offset,
    )
    events = find_events(
        db, query, center, radius or settings.default_radius_meters
    )
    return event_payloads(db, events)


@router.post("/events", response_model=EventOut, status_code=201)
def create_event(
    payload: EventCreatePayload,
    user: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    """
    Create an event hosted by one or more entities.

    The caller must admin at least one host; hosts they do not admin are
    attached without edit rights. Event and host rows are written in a single
    store call.
    """
    title = (payload.title or "").strip()
    if not title or payload.starts_at is None:
        raise HTTPException(
            status_code=400, detail="Missing required fields: title, starts_at"
        )

    host_ids = list(dict.fromkeys(payload.host_entity_ids or []))
    if not host_ids:
        raise HTTPException(
            status_code=400, detail="At least one host entity is required"
        )

    found = {e.id: e for e in db.get_entities(host_ids)}
    owned = {eid for eid, e in found.items() if e.admin_id == user.id}
    if not owned:
        raise HTTPException(
            status_code=403, detail="You must own at least one of the host entities"
        )
    missing = [eid for eid in host_ids if eid not in found]
    if missing:
        raise HTTPException(
            status_code=400, detail=f"Unknown host entities: {', '.join(missing)}"
        )

    check_location(payload.location)
    starts_at = as_utc(payload.starts_at)
    ends_at = as_utc(payload.ends_at)
    _check_time_range(starts_at, ends_at)

    event = EventRecord(
        id=new_id(),
        title=title,
        slug=event_slug(title),
        starts_at=starts_at,
        ends_at=ends_at,
        created_by=user.id,
        description=payload.description,
        address=payload.address,
        location=payload.location,
        banner_url=payload.banner_url,
        tags=list(dict.fromkeys(t.strip() for t in payload.tags if t.strip())),
    )
    hosts = [
        HostRecord(event_id=event.id, entity_id=eid, can_edit=eid in owned)
        for eid in host_ids
    ]
    try:
        db.create_event_with_hosts(event, hosts)
    except UniqueViolation as exc:
        raise HTTPException(
            status_code=409, detail="An event with this slug already exists"
        ) from exc
    logger.info("Event %s created by %s with %d hosts", event.slug, user.id, len(hosts))
    return event_payloads(db, [event])[0]


@router.get("/events/{slug}", response_model=EventDetailOut)
def get_event(
    slug: str,
    user: Optional[AuthUser] = Depends(get_optional_user),
    db: DbClient = Depends(get_db_client),
):
    event = load_event(db, slug)
    payload = event_payloads(db, [event])[0]
    payload["updates"] = [u.as_dict() for u in db.list_updates(event.id)]
    creator = db.get_user(event.created_by)
    payload["created_by_user"] = (
        {"id": creator.id, "username": creator.username} if creator else None
    )
    payload["rsvp_counts"] = db.count_rsvps(event.id)
    if user:
        rsvp = db.get_rsvp(user.id, event.id)
        payload["user_status"] = {
            "rsvp": rsvp.status if rsvp else None,
            "saved": db.is_saved(user.id, event.id),
        }
    return payload


@router.patch("/events/{slug}", response_model=EventOut)
def update_event(
    slug: str,
    payload: EventUpdatePayload,
    user: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    """
    Apply a partial update and record auto changelog entries.

    Changelog rows are written after the update. If that write fails the
    update is kept and the failure is only logged.
    """
    event = load_event(db, slug)
    hosts, entities = load_hosts(db, event)
    if not can_edit_event(event, hosts, entities, user.id):
        raise HTTPException(
            status_code=403, detail="You don't have permission to edit this event"
        )

    changes = payload.model_dump(exclude_unset=True)
    if "title" in changes:
        if not (changes["title"] or "").strip():
            raise HTTPException(status_code=400, detail="Title cannot be empty")
        changes["title"] = changes["title"].strip()
    if "starts_at" in changes and changes["starts_at"] is None:
        raise HTTPException(status_code=400, detail="starts_at cannot be cleared")
    for key in ("starts_at", "ends_at"):
        if key in changes:
            changes[key] = as_utc(changes[key])
    if "location" in changes:
        check_location(changes["location"])
    if "tags" in changes:
        changes["tags"] = list(
            dict.fromkeys(t.strip() for t in changes["tags"] or [] if t.strip())
        )
    _check_time_range(
        changes.get("starts_at", event.starts_at),
        changes.get("ends_at", event.ends_at),
    )

    updates = diff_tracked_fields(event, changes, author_id=user.id)
    try:
        updated = db.update_event(event.id, changes)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail="Event not found") from exc

    if updates:
        try:
            db.add_updates(updates)
        except DbError as exc:
            logger.error("Failed to create changelog for event %s: %s", event.id, exc)
    return event_payloads(db, [updated])[0]


@router.delete("/events/{slug}", response_model=DeleteResponse)
def delete_event(
    slug: str,
    user: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    event = load_event(db, slug)
    hosts, entities = load_hosts(db, event)
    if not can_edit_event(event, hosts, entities, user.id):
        raise HTTPException(
            status_code=403, detail="You don't have permission to delete this event"
        )
    try:
        db.delete_event(event.id)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail="Event not found") from exc
    logger.info("Event %s deleted by %s", event.slug, user.id)
    return DeleteResponse(success=True)
