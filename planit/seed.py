"""
Demo data around Charlotte, NC for local development.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from planit.db import (
    DbClient,
    EntityRecord,
    EventRecord,
    HostRecord,
    UniqueViolation,
    UserRecord,
    new_id,
    utcnow,
)
from planit.geo import format_point
from planit.slugs import entity_slug, event_slug

logger = logging.getLogger(__name__)

DEMO_CENTER = (35.2271, -80.8431)

DEMO_ENTITIES = [
    {
        "type": "venue",
        "name": "The Spot",
        "description": "Neighborhood music room with a small patio.",
        "address": "1425 Elizabeth Ave, Charlotte, NC",
        "lat": 35.2145,
        "lng": -80.8290,
    },
    {
        "type": "venue",
        "name": "Freedom Park Bandshell",
        "description": "Outdoor stage by the lake.",
        "address": "1900 East Blvd, Charlotte, NC",
        "lat": 35.1936,
        "lng": -80.8433,
    },
    {
        "type": "organization",
        "name": "Queen City Runners",
        "description": "Weekly group runs for every pace.",
        "address": None,
        "lat": None,
        "lng": None,
    },
    {
        "type": "organization",
        "name": "NoDa Makers",
        "description": "Workshops and open studio nights.",
        "address": None,
        "lat": None,
        "lng": None,
    },
]

# (title, host names, days from now, hours long, tags, address/location source)
DEMO_EVENTS = [
    ("Friday Night Jazz", ["The Spot"], 3, 3, ["music", "jazz"], "The Spot"),
    ("Sunday Concert in the Park", ["Freedom Park Bandshell"], 5, 2, ["music", "outdoors"], "Freedom Park Bandshell"),
    ("Lakeside 5K", ["Queen City Runners", "Freedom Park Bandshell"], 8, 2, ["running", "outdoors"], "Freedom Park Bandshell"),
    ("Screen Printing 101", ["NoDa Makers", "The Spot"], 12, 3, ["workshop", "art"], "The Spot"),
    ("Open Studio Night", ["NoDa Makers"], -4, 3, ["art"], None),
]


def seed_demo_data(
    db: DbClient, admin: UserRecord, now: datetime | None = None
) -> dict[str, int]:
    """
    Insert the demo entities and events owned by ``admin``.

    Entities that already exist (same slug) are reused, so running this twice
    only adds a second batch of events. Hosts admined by someone else are
    attached without edit rights, and events with no host owned by ``admin``
    are skipped.
    """
    now = now or utcnow()
    db.save_user(admin)

    by_name: dict[str, EntityRecord] = {}
    created_entities = 0
    for item in DEMO_ENTITIES:
        slug = entity_slug(item["name"])
        location = None
        if item["lat"] is not None:
            location = format_point(item["lat"], item["lng"])
        record = EntityRecord(
            id=new_id(),
            type=item["type"],
            name=item["name"],
            slug=slug,
            admin_id=admin.id,
            description=item["description"],
            address=item["address"],
            location=location,
        )
        try:
            by_name[item["name"]] = db.create_entity(record)
            created_entities += 1
        except UniqueViolation:
            logger.info("Entity %s already exists; reusing it", slug)
            by_name[item["name"]] = db.get_entity_by_slug(slug)

    created_events = 0
    for title, host_names, days, hours, tags, place in DEMO_EVENTS:
        starts_at = (now + timedelta(days=days)).replace(
            hour=19, minute=0, second=0, microsecond=0
        )
        venue = by_name.get(place) if place else None
        event = EventRecord(
            id=new_id(),
            title=title,
            slug=event_slug(title),
            starts_at=starts_at,
            ends_at=starts_at + timedelta(hours=hours),
            created_by=admin.id,
            description=f"{title} hosted by {', '.join(host_names)}.",
            address=venue.address if venue else None,
            location=venue.location if venue else None,
            tags=list(tags),
        )
        hosts = [
            HostRecord(
                event_id=event.id,
                entity_id=by_name[name].id,
                can_edit=by_name[name].admin_id == admin.id,
            )
            for name in host_names
        ]
        if not any(host.can_edit for host in hosts):
            logger.warning("Skipping %s; %s owns none of its hosts", title, admin.id)
            continue
        db.create_event_with_hosts(event, hosts)
        created_events += 1

    logger.info(
        "Seeded %d entities and %d events", created_entities, created_events
    )
    return {"entities": created_entities, "events": created_events}
