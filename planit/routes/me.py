"""
Routes scoped to the signed-in user: owned entities, calendar, and inbox.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from planit.auth import AuthUser
from planit.db import DbClient, RecordNotFound
from planit.dependencies import get_current_user, get_db_client
from planit.routes.common import event_payloads
from planit.schemas import CalendarResponse, EntityOut, MessageOut, MessageReadPayload

router = APIRouter()


@router.get("/me/entities", response_model=list[EntityOut])
def my_entities(
    user: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    return [e.as_dict() for e in db.list_entities_by_admin(user.id)]


@router.get("/me/calendar", response_model=CalendarResponse)
def my_calendar(
    user: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    rsvps = db.list_user_rsvps(user.id)
    status_by_event = {r.event_id: r.status for r in rsvps}
    saved_ids = db.list_user_saves(user.id)

    events = db.get_events(set(status_by_event) | set(saved_ids))
    payloads = {p["id"]: p for p in event_payloads(db, events)}
    ordered_ids = [e.id for e in events]
    saved_set = set(saved_ids)
    return {
        "rsvps": [
            {"status": status_by_event[eid], "event": payloads[eid]}
            for eid in ordered_ids
            if eid in status_by_event
        ],
        "saved": [payloads[eid] for eid in ordered_ids if eid in saved_set],
    }


@router.get("/inbox", response_model=list[MessageOut])
def inbox(
    user: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    entity_ids = [e.id for e in db.list_entities_by_admin(user.id)]
    return [m.as_dict() for m in db.list_messages(entity_ids)]


@router.patch("/inbox/{message_id}", response_model=MessageOut)
def mark_message(
    message_id: str,
    payload: MessageReadPayload,
    user: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    message = db.get_message(message_id)
    owned = {e.id for e in db.list_entities_by_admin(user.id)}
    # Messages for other people's entities are reported as missing.
    if not message or message.entity_id not in owned:
        raise HTTPException(status_code=404, detail="Message not found")
    try:
        updated = db.set_message_read(message_id, payload.read)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail="Message not found") from exc
    return updated.as_dict()
