"""
Entity (organization / venue) routes.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from planit.auth import AuthUser
from planit.config import Settings, get_settings
from planit.db import (
    ENTITY_TYPES,
    DbClient,
    EntityQuery,
    EntityRecord,
    RecordNotFound,
    UniqueViolation,
    new_id,
    utcnow,
)
from planit.dependencies import get_current_user, get_db_client, get_optional_user
from planit.routes.common import check_location, event_payloads, load_entity
from planit.schemas import (
    EntityCreatePayload,
    EntityDetailOut,
    EntityOut,
    EntityUpdatePayload,
    FollowResponse,
)
from planit.slugs import entity_slug

logger = logging.getLogger(__name__)

router = APIRouter()

UPCOMING_LIMIT = 20
PAST_LIMIT = 10


@router.get("/entities", response_model=list[EntityOut])
def list_entities(
    type: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    query = EntityQuery(
        type=type if type in ENTITY_TYPES else None,
        name_contains=(q or "").strip() or None,
        limit=limit or settings.default_page_size,
        offset=offset,
    )
    return [e.as_dict() for e in db.list_entities(query)]


@router.post("/entities", response_model=EntityOut, status_code=201)
def create_entity(
    payload: EntityCreatePayload,
    user: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    name = (payload.name or "").strip()
    if not name or not payload.type:
        raise HTTPException(status_code=400, detail="Missing required fields: name, type")
    if payload.type not in ENTITY_TYPES:
        raise HTTPException(
            status_code=400, detail="Type must be 'organization' or 'venue'"
        )
    if payload.type == "venue" and not (payload.address or "").strip():
        raise HTTPException(status_code=400, detail="Venues require an address")
    check_location(payload.location)

    entity = EntityRecord(
        id=new_id(),
        type=payload.type,
        name=name,
        slug=entity_slug(name),
        admin_id=user.id,
        description=payload.description or None,
        address=payload.address or None,
        location=payload.location or None,
        banner_url=payload.banner_url or None,
    )
    try:
        db.create_entity(entity)
    except UniqueViolation as exc:
        raise HTTPException(
            status_code=409, detail="An entity with this name already exists"
        ) from exc
    logger.info("Entity %s (%s) created by %s", entity.slug, entity.type, user.id)
    return entity.as_dict()


@router.get("/entities/{slug}", response_model=EntityDetailOut)
def get_entity(
    slug: str,
    user: Optional[AuthUser] = Depends(get_optional_user),
    db: DbClient = Depends(get_db_client),
):
    entity = load_entity(db, slug)
    now = utcnow()
    payload = entity.as_dict()
    payload["upcoming_events"] = event_payloads(
        db, db.list_entity_events(entity.id, upcoming=True, now=now, limit=UPCOMING_LIMIT)
    )
    payload["past_events"] = event_payloads(
        db, db.list_entity_events(entity.id, upcoming=False, now=now, limit=PAST_LIMIT)
    )
    payload["follower_count"] = db.count_followers(entity.id)
    payload["is_following"] = bool(user) and db.is_following(user.id, entity.id)
    return payload


@router.patch("/entities/{slug}", response_model=EntityOut)
def update_entity(
    slug: str,
    payload: EntityUpdatePayload,
    user: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    entity = load_entity(db, slug)
    if entity.admin_id != user.id:
        raise HTTPException(
            status_code=403, detail="You don't have permission to edit this entity"
        )
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes and not (changes["name"] or "").strip():
        raise HTTPException(status_code=400, detail="Name cannot be empty")
    if entity.type == "venue" and "address" in changes:
        if not (changes["address"] or "").strip():
            raise HTTPException(status_code=400, detail="Venues require an address")
    if "location" in changes:
        check_location(changes["location"])
    try:
        updated = db.update_entity(entity.id, changes)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail="Entity not found") from exc
    return updated.as_dict()


@router.post("/entities/{slug}/follow", response_model=FollowResponse)
def toggle_follow(
    slug: str,
    user: AuthUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    entity = load_entity(db, slug)
    return FollowResponse(following=db.toggle_follow(user.id, entity.id))
