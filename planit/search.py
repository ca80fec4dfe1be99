"""
Composition of keyword, tag, date and radius filters for events and entities.

Radius queries run as server-side spatial functions. Stores that do not have
those functions yet answer with SpatialQueryError, and the caller gets the
plain filtered result instead.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from planit.db import (
    DbClient,
    EntityQuery,
    EntityRecord,
    EventQuery,
    EventRecord,
    SpatialQueryError,
    as_utc,
    utcnow,
)
from planit.geo import GeoPoint

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


class SearchValidationError(ValueError):
    """Bad search parameters; surfaced to clients as 400."""


def normalize_query(q: Optional[str]) -> str:
    term = (q or "").strip()
    if len(term) < MIN_QUERY_LENGTH:
        raise SearchValidationError(
            f"Search query must be at least {MIN_QUERY_LENGTH} characters"
        )
    return term


def parse_tags(raw: Optional[str]) -> Optional[list[str]]:
    if not raw:
        return None
    tags = [t.strip() for t in raw.split(",") if t.strip()]
    return tags or None


def parse_center(lat: Optional[float], lng: Optional[float]) -> Optional[GeoPoint]:
    if lat is None or lng is None:
        return None
    if not -90 <= lat <= 90 or not -180 <= lng <= 180:
        raise SearchValidationError("lat/lng out of range")
    return GeoPoint(lat=lat, lng=lng)


def build_event_query(
    *,
    text: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    tags: Optional[list[str]] = None,
    limit: int = 50,
    offset: int = 0,
    now: Optional[datetime] = None,
) -> EventQuery:
    """Without a start date only upcoming events are returned."""
    starts_after = as_utc(start_date) if start_date else (now or utcnow())
    return EventQuery(
        text=text,
        starts_after=starts_after,
        starts_before=as_utc(end_date),
        tags=tags,
        limit=limit,
        offset=offset,
    )


def find_events(
    db: DbClient,
    query: EventQuery,
    center: Optional[GeoPoint] = None,
    radius_meters: float = 10000.0,
) -> list[EventRecord]:
    if center is not None:
        try:
            return db.events_within_radius(query, center, radius_meters)
        except SpatialQueryError as exc:
            logger.warning("Spatial event query unavailable, falling back: %s", exc)
    return db.list_events(query)


def find_entities(
    db: DbClient,
    query: EntityQuery,
    center: Optional[GeoPoint] = None,
    radius_meters: float = 10000.0,
) -> list[EntityRecord]:
    if center is not None:
        try:
            return db.entities_within_radius(query, center, radius_meters)
        except SpatialQueryError as exc:
            logger.warning("Spatial entity query unavailable, falling back: %s", exc)
    return db.list_entities(query)
