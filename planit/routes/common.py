"""
Helpers shared by the route modules.
"""

from __future__ import annotations

from typing import Iterable, Optional

from fastapi import HTTPException

from planit.db import DbClient, EntityRecord, EventRecord, HostRecord
from planit.geo import parse_point


def load_event(db: DbClient, slug: str) -> EventRecord:
    event = db.get_event_by_slug(slug)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


def load_entity(db: DbClient, slug: str) -> EntityRecord:
    entity = db.get_entity_by_slug(slug)
    if not entity:
        raise HTTPException(status_code=404, detail="Entity not found")
    return entity


def load_hosts(
    db: DbClient, event: EventRecord
) -> tuple[list[HostRecord], dict[str, EntityRecord]]:
    hosts = db.list_hosts([event.id])
    entities = {e.id: e for e in db.get_entities(h.entity_id for h in hosts)}
    return hosts, entities


def check_location(location: Optional[str]) -> None:
    try:
        parse_point(location)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _entity_summary(entity: EntityRecord) -> dict:
    return {
        "id": entity.id,
        "type": entity.type,
        "name": entity.name,
        "slug": entity.slug,
        "banner_url": entity.banner_url,
    }


def event_payloads(db: DbClient, events: Iterable[EventRecord]) -> list[dict]:
    """Serialize events with their hosts, two store round trips in total."""
    events = list(events)
    if not events:
        return []
    hosts = db.list_hosts(e.id for e in events)
    entities = {e.id: e for e in db.get_entities({h.entity_id for h in hosts})}
    hosts_by_event: dict[str, list[dict]] = {}
    for host in hosts:
        entity = entities.get(host.entity_id)
        hosts_by_event.setdefault(host.event_id, []).append(
            {
                "entity_id": host.entity_id,
                "can_edit": host.can_edit,
                "entity": _entity_summary(entity) if entity else None,
            }
        )
    payloads = []
    for event in events:
        payload = event.as_dict()
        payload["event_hosts"] = hosts_by_event.get(event.id, [])
        payloads.append(payload)
    return payloads
