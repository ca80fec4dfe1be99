"""
Per-event actions: RSVP, save toggle, organizer contact, and manual updates.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from planit.auth import AuthUser
from planit.changelog import can_edit_event, manual_update
from planit.db import RSVP_STATUSES, DbClient, MessageRecord, new_id
from planit.dependencies import get_current_user, get_db_client
from planit.routes.common import load_event, load_hosts
from planit.schemas import (
    ContactPayload,
    MessageOut,
    MessagePayload,
    RsvpPayload,
    RsvpResponse,
    SaveResponse,
    UpdateOut,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_message(text: str | None) -> str:
    message = (text or "").strip()
    if not message:
        raise HTTPException(status_code=400, detail="Message is required")
    return message


@router.post(
    "/events/{slug}/rsvp",
    response_model=RsvpResponse,
    response_model_exclude_unset=True,
)
def set_rsvp(
    slug: str,
    payload: RsvpPayload,
    user: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    event = load_event(db, slug)
    if payload.status is not None and payload.status not in RSVP_STATUSES:
        raise HTTPException(
            status_code=400,
            detail="Invalid status. Must be 'yes', 'no', 'maybe', or null",
        )
    if payload.status is None:
        db.delete_rsvp(user.id, event.id)
        return RsvpResponse(status=None)
    rsvp = db.upsert_rsvp(user.id, event.id, payload.status)
    return RsvpResponse(**rsvp.as_dict())


@router.post("/events/{slug}/save", response_model=SaveResponse)
def toggle_save(
    slug: str,
    user: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    event = load_event(db, slug)
    return SaveResponse(saved=db.toggle_save(user.id, event.id))


@router.post("/events/{slug}/contact", response_model=MessageOut, status_code=201)
def contact_organizers(
    slug: str,
    payload: ContactPayload,
    user: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    """
    Send a message to one of the event's hosts (the first host by default).
    """
    event = load_event(db, slug)
    message = _require_message(payload.message)
    host_ids = [h.entity_id for h in db.list_hosts([event.id])]

    target = payload.entity_id
    if not target:
        if not host_ids:
            raise HTTPException(
                status_code=400, detail="No host entities found for this event"
            )
        target = host_ids[0]
    elif target not in host_ids:
        raise HTTPException(
            status_code=400,
            detail="The specified entity is not a host of this event",
        )

    record = db.create_message(
        MessageRecord(
            id=new_id(),
            entity_id=target,
            event_id=event.id,
            from_user_id=user.id,
            message=message,
        )
    )
    return record.as_dict()


@router.get("/events/{slug}/updates", response_model=list[UpdateOut])
def list_updates(slug: str, db: DbClient = Depends(get_db_client)):
    event = load_event(db, slug)
    return [u.as_dict() for u in db.list_updates(event.id)]


@router.post("/events/{slug}/updates", response_model=UpdateOut, status_code=201)
def post_update(
    slug: str,
    payload: MessagePayload,
    user: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    event = load_event(db, slug)
    hosts, entities = load_hosts(db, event)
    if not can_edit_event(event, hosts, entities, user.id):
        raise HTTPException(
            status_code=403,
            detail="You don't have permission to post updates for this event",
        )
    message = _require_message(payload.message)
    update = manual_update(event.id, user.id, message)
    db.add_updates([update])
    logger.info("Manual update posted on %s by %s", event.slug, user.id)
    return update.as_dict()
