"""
Keyword search across events and entities.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from planit.config import Settings, get_settings
from planit.db import ENTITY_TYPES, DbClient, DbError, EntityQuery
from planit.dependencies import get_db_client
from planit.routes.common import event_payloads
from planit.schemas import SearchResponse
from planit.search import (
    SearchValidationError,
    build_event_query,
    find_entities,
    find_events,
    normalize_query,
    parse_center,
    parse_tags,
)

logger = logging.getLogger(__name__)

router = APIRouter()

SEARCH_TYPES = ("events", "entities")


@router.get("/search", response_model=SearchResponse)
def search(
    q: Optional[str] = Query(None),
    type: Optional[str] = Query(None, description="events, entities, or both"),
    entity_type: Optional[str] = Query(None),
    tags: Optional[str] = Query(None, description="comma-separated, events only"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    lat: Optional[float] = Query(None),
    lng: Optional[float] = Query(None),
    radius: Optional[float] = Query(None, gt=0, description="meters"),
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    """
    Case-insensitive substring search. Events default to upcoming ones and can
    be narrowed by tags (any overlap) and date range; both kinds can be
    narrowed to a radius around ``lat``/``lng``.
    """
    try:
        term = normalize_query(q)
        center = parse_center(lat, lng)
    except SearchValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if type and type not in SEARCH_TYPES:
        raise HTTPException(
            status_code=400, detail="type must be 'events' or 'entities'"
        )

    page_size = limit or settings.search_page_size
    radius_meters = radius or settings.default_radius_meters
    events: list[dict] = []
    entities: list[dict] = []

    if type in (None, "events"):
        query = build_event_query(
            text=term,
            start_date=start_date,
            end_date=end_date,
            tags=parse_tags(tags),
            limit=page_size,
        )
        try:
            events = event_payloads(db, find_events(db, query, center, radius_meters))
        except DbError as exc:
            logger.error("Events search error: %s", exc)

    if type in (None, "entities"):
        query = EntityQuery(
            type=entity_type if entity_type in ENTITY_TYPES else None,
            text=term,
            limit=page_size,
        )
        try:
            entities = [
                e.as_dict() for e in find_entities(db, query, center, radius_meters)
            ]
        except DbError as exc:
            logger.error("Entities search error: %s", exc)

    return {
        "query": term,
        "results": {"events": events, "entities": entities},
        "counts": {
            "events": len(events),
            "entities": len(entities),
            "total": len(events) + len(entities),
        },
    }
