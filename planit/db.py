"""
Store abstraction for the PlanIt tables and an in-memory test implementation.

The production implementation lives in ``planit.db_postgres``.
"""

from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Protocol

from planit.geo import GeoPoint, haversine_meters, parse_point

ENTITY_TYPES = ("organization", "venue")
RSVP_STATUSES = ("yes", "no", "maybe")
UPDATE_TYPES = ("auto", "manual")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize to aware UTC; naive values are taken to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DbError(Exception):
    """Unclassified failure reported by the store."""


class UniqueViolation(DbError):
    """A unique constraint rejected the write."""


class RecordNotFound(DbError):
    """The targeted row does not exist."""


class SpatialQueryError(DbError):
    """The store cannot run the spatial query (e.g. functions not installed)."""


@dataclass
class UserRecord:
    id: str
    email: str
    username: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def as_dict(self) -> dict:
        return dataclasses.asdict(self)


@dataclass
class EntityRecord:
    id: str
    type: str
    name: str
    slug: str
    admin_id: str
    description: Optional[str] = None
    address: Optional[str] = None
    location: Optional[str] = None
    banner_url: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def as_dict(self) -> dict:
        return dataclasses.asdict(self)


@dataclass
class EventRecord:
    id: str
    title: str
    slug: str
    starts_at: datetime
    created_by: str
    description: Optional[str] = None
    address: Optional[str] = None
    location: Optional[str] = None
    ends_at: Optional[datetime] = None
    banner_url: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)

    def as_dict(self) -> dict:
        return dataclasses.asdict(self)


@dataclass
class HostRecord:
    event_id: str
    entity_id: str
    can_edit: bool = False

    def as_dict(self) -> dict:
        return dataclasses.asdict(self)


@dataclass
class RsvpRecord:
    id: str
    user_id: str
    event_id: str
    status: str
    created_at: datetime = field(default_factory=utcnow)

    def as_dict(self) -> dict:
        return dataclasses.asdict(self)


@dataclass
class UpdateRecord:
    """Changelog row. Auto rows carry the field diff, manual rows a message."""

    id: str
    event_id: str
    type: str
    author_id: str
    field_changed: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    message: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def as_dict(self) -> dict:
        return dataclasses.asdict(self)


@dataclass
class MessageRecord:
    id: str
    entity_id: str
    from_user_id: str
    message: str
    event_id: Optional[str] = None
    read: bool = False
    created_at: datetime = field(default_factory=utcnow)

    def as_dict(self) -> dict:
        return dataclasses.asdict(self)


@dataclass
class EventQuery:
    """Filters for event listing and search.

    ``text`` is a case-insensitive substring matched against title and
    description. ``tags`` matches when the event has any of the tags.
    """

    text: Optional[str] = None
    starts_after: Optional[datetime] = None
    starts_before: Optional[datetime] = None
    tags: Optional[list[str]] = None
    limit: int = 50
    offset: int = 0

    def matches(self, event: EventRecord) -> bool:
        if self.text:
            needle = self.text.lower()
            haystacks = (event.title or "", event.description or "")
            if not any(needle in value.lower() for value in haystacks):
                return False
        if self.starts_after and event.starts_at < self.starts_after:
            return False
        if self.starts_before and event.starts_at > self.starts_before:
            return False
        if self.tags and not set(self.tags) & set(event.tags or []):
            return False
        return True


@dataclass
class EntityQuery:
    """Filters for entity listing and search.

    ``name_contains`` only looks at the name; ``text`` looks at name and
    description.
    """

    type: Optional[str] = None
    name_contains: Optional[str] = None
    text: Optional[str] = None
    limit: int = 50
    offset: int = 0

    def matches(self, entity: EntityRecord) -> bool:
        if self.type and entity.type != self.type:
            return False
        if self.name_contains and self.name_contains.lower() not in entity.name.lower():
            return False
        if self.text:
            needle = self.text.lower()
            haystacks = (entity.name or "", entity.description or "")
            if not any(needle in value.lower() for value in haystacks):
                return False
        return True


class DbClient(Protocol):
    """Interface for the relational + spatial store."""

    # users
    def save_user(self, user: UserRecord) -> None:
        ...

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        ...

    # entities
    def create_entity(self, entity: EntityRecord) -> EntityRecord:
        ...

    def get_entity(self, entity_id: str) -> Optional[EntityRecord]:
        ...

    def get_entity_by_slug(self, slug: str) -> Optional[EntityRecord]:
        ...

    def get_entities(self, entity_ids: Iterable[str]) -> list[EntityRecord]:
        ...

    def list_entities(self, query: EntityQuery) -> list[EntityRecord]:
        ...

    def list_entities_by_admin(self, admin_id: str) -> list[EntityRecord]:
        ...

    def entities_within_radius(
        self, query: EntityQuery, center: GeoPoint, radius_meters: float
    ) -> list[EntityRecord]:
        ...

    def update_entity(self, entity_id: str, fields: dict) -> EntityRecord:
        ...

    # events
    def create_event_with_hosts(
        self, event: EventRecord, hosts: list[HostRecord]
    ) -> EventRecord:
        ...

    def get_event_by_slug(self, slug: str) -> Optional[EventRecord]:
        ...

    def get_events(self, event_ids: Iterable[str]) -> list[EventRecord]:
        ...

    def list_events(self, query: EventQuery) -> list[EventRecord]:
        ...

    def events_within_radius(
        self, query: EventQuery, center: GeoPoint, radius_meters: float
    ) -> list[EventRecord]:
        ...

    def list_entity_events(
        self, entity_id: str, *, upcoming: bool, now: datetime, limit: int
    ) -> list[EventRecord]:
        ...

    def update_event(self, event_id: str, fields: dict) -> EventRecord:
        ...

    def delete_event(self, event_id: str) -> None:
        ...

    def list_hosts(self, event_ids: Iterable[str]) -> list[HostRecord]:
        ...

    # changelog
    def add_updates(self, updates: list[UpdateRecord]) -> list[UpdateRecord]:
        ...

    def list_updates(self, event_id: str) -> list[UpdateRecord]:
        ...

    # rsvps
    def upsert_rsvp(self, user_id: str, event_id: str, status: str) -> RsvpRecord:
        ...

    def delete_rsvp(self, user_id: str, event_id: str) -> None:
        ...

    def get_rsvp(self, user_id: str, event_id: str) -> Optional[RsvpRecord]:
        ...

    def count_rsvps(self, event_id: str) -> dict[str, int]:
        ...

    def list_user_rsvps(self, user_id: str) -> list[RsvpRecord]:
        ...

    # saves
    def toggle_save(self, user_id: str, event_id: str) -> bool:
        ...

    def is_saved(self, user_id: str, event_id: str) -> bool:
        ...

    def list_user_saves(self, user_id: str) -> list[str]:
        ...

    # follows
    def toggle_follow(self, user_id: str, entity_id: str) -> bool:
        ...

    def is_following(self, user_id: str, entity_id: str) -> bool:
        ...

    def count_followers(self, entity_id: str) -> int:
        ...

    # messages
    def create_message(self, message: MessageRecord) -> MessageRecord:
        ...

    def get_message(self, message_id: str) -> Optional[MessageRecord]:
        ...

    def list_messages(self, entity_ids: Iterable[str]) -> list[MessageRecord]:
        ...

    def set_message_read(self, message_id: str, read: bool) -> MessageRecord:
        ...


def _page(items: list, limit: int, offset: int) -> list:
    return items[offset : offset + limit]


class InMemoryDbClient:
    """Simple in-memory store for development and tests.

    Set ``spatial_enabled`` to False to behave like a store whose spatial
    functions were never installed.
    """

    def __init__(self, spatial_enabled: bool = True):
        self.spatial_enabled = spatial_enabled
        self.users: Dict[str, UserRecord] = {}
        self.entities: Dict[str, EntityRecord] = {}
        self.events: Dict[str, EventRecord] = {}
        self.hosts: list[HostRecord] = []
        self.updates: list[UpdateRecord] = []
        self.rsvps: Dict[tuple[str, str], RsvpRecord] = {}
        self.saves: Dict[tuple[str, str], datetime] = {}
        self.follows: Dict[tuple[str, str], datetime] = {}
        self.messages: Dict[str, MessageRecord] = {}

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.users.clear()
        self.entities.clear()
        self.events.clear()
        self.hosts.clear()
        self.updates.clear()
        self.rsvps.clear()
        self.saves.clear()
        self.follows.clear()
        self.messages.clear()

    # users

    def save_user(self, user: UserRecord) -> None:
        existing = self.users.get(user.id)
        if existing:
            user = dataclasses.replace(user, created_at=existing.created_at)
        self.users[user.id] = user

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        return self.users.get(user_id)

    # entities

    def create_entity(self, entity: EntityRecord) -> EntityRecord:
        if any(e.slug == entity.slug for e in self.entities.values()):
            raise UniqueViolation(
                'duplicate key value violates unique constraint "entities_slug_key"'
            )
        self.entities[entity.id] = entity
        return entity

    def get_entity(self, entity_id: str) -> Optional[EntityRecord]:
        return self.entities.get(entity_id)

    def get_entity_by_slug(self, slug: str) -> Optional[EntityRecord]:
        for entity in self.entities.values():
            if entity.slug == slug:
                return entity
        return None

    def get_entities(self, entity_ids: Iterable[str]) -> list[EntityRecord]:
        return [self.entities[i] for i in entity_ids if i in self.entities]

    def list_entities(self, query: EntityQuery) -> list[EntityRecord]:
        matched = [e for e in self.entities.values() if query.matches(e)]
        matched.sort(key=lambda e: e.name)
        return _page(matched, query.limit, query.offset)

    def list_entities_by_admin(self, admin_id: str) -> list[EntityRecord]:
        owned = [e for e in self.entities.values() if e.admin_id == admin_id]
        return sorted(owned, key=lambda e: e.name)

    def entities_within_radius(
        self, query: EntityQuery, center: GeoPoint, radius_meters: float
    ) -> list[EntityRecord]:
        self._require_spatial("entities_within_radius")
        scored = []
        for entity in self.entities.values():
            point = parse_point(entity.location) if entity.location else None
            if point is None or not query.matches(entity):
                continue
            distance = haversine_meters(center, point)
            if distance <= radius_meters:
                scored.append((distance, entity))
        scored.sort(key=lambda pair: pair[0])
        return _page([e for _, e in scored], query.limit, query.offset)

    def update_entity(self, entity_id: str, fields: dict) -> EntityRecord:
        entity = self.entities.get(entity_id)
        if not entity:
            raise RecordNotFound(f"entity {entity_id} not found")
        updated = dataclasses.replace(entity, **fields)
        self.entities[entity_id] = updated
        return updated

    # events

    def create_event_with_hosts(
        self, event: EventRecord, hosts: list[HostRecord]
    ) -> EventRecord:
        if any(e.slug == event.slug for e in self.events.values()):
            raise UniqueViolation(
                'duplicate key value violates unique constraint "events_slug_key"'
            )
        missing = [h.entity_id for h in hosts if h.entity_id not in self.entities]
        if missing:
            raise DbError(f"unknown host entities: {', '.join(missing)}")
        self.events[event.id] = event
        self.hosts.extend(hosts)
        return event

    def get_event_by_slug(self, slug: str) -> Optional[EventRecord]:
        for event in self.events.values():
            if event.slug == slug:
                return event
        return None

    def get_events(self, event_ids: Iterable[str]) -> list[EventRecord]:
        found = [self.events[i] for i in event_ids if i in self.events]
        return sorted(found, key=lambda e: e.starts_at)

    def list_events(self, query: EventQuery) -> list[EventRecord]:
        matched = [e for e in self.events.values() if query.matches(e)]
        matched.sort(key=lambda e: e.starts_at)
        return _page(matched, query.limit, query.offset)

    def events_within_radius(
        self, query: EventQuery, center: GeoPoint, radius_meters: float
    ) -> list[EventRecord]:
        self._require_spatial("events_within_radius")
        matched = []
        for event in self.events.values():
            point = parse_point(event.location) if event.location else None
            if point is None or not query.matches(event):
                continue
            if haversine_meters(center, point) <= radius_meters:
                matched.append(event)
        matched.sort(key=lambda e: e.starts_at)
        return _page(matched, query.limit, query.offset)

    def list_entity_events(
        self, entity_id: str, *, upcoming: bool, now: datetime, limit: int
    ) -> list[EventRecord]:
        event_ids = {h.event_id for h in self.hosts if h.entity_id == entity_id}
        events = [self.events[i] for i in event_ids if i in self.events]
        if upcoming:
            events = [e for e in events if e.starts_at >= now]
        else:
            events = [e for e in events if e.starts_at < now]
        events.sort(key=lambda e: e.starts_at, reverse=not upcoming)
        return events[:limit]

    def update_event(self, event_id: str, fields: dict) -> EventRecord:
        event = self.events.get(event_id)
        if not event:
            raise RecordNotFound(f"event {event_id} not found")
        updated = dataclasses.replace(event, **fields)
        self.events[event_id] = updated
        return updated

    def delete_event(self, event_id: str) -> None:
        if self.events.pop(event_id, None) is None:
            raise RecordNotFound(f"event {event_id} not found")
        self.hosts = [h for h in self.hosts if h.event_id != event_id]
        self.updates = [u for u in self.updates if u.event_id != event_id]
        for key in [k for k in self.rsvps if k[1] == event_id]:
            del self.rsvps[key]
        for key in [k for k in self.saves if k[1] == event_id]:
            del self.saves[key]
        for message_id in [
            m.id for m in self.messages.values() if m.event_id == event_id
        ]:
            del self.messages[message_id]

    def list_hosts(self, event_ids: Iterable[str]) -> list[HostRecord]:
        wanted = set(event_ids)
        return [h for h in self.hosts if h.event_id in wanted]

    # changelog

    def add_updates(self, updates: list[UpdateRecord]) -> list[UpdateRecord]:
        self.updates.extend(updates)
        return updates

    def list_updates(self, event_id: str) -> list[UpdateRecord]:
        rows = [u for u in self.updates if u.event_id == event_id]
        return sorted(rows, key=lambda u: u.created_at)

    # rsvps

    def upsert_rsvp(self, user_id: str, event_id: str, status: str) -> RsvpRecord:
        key = (user_id, event_id)
        existing = self.rsvps.get(key)
        if existing:
            record = dataclasses.replace(existing, status=status)
        else:
            record = RsvpRecord(
                id=new_id(), user_id=user_id, event_id=event_id, status=status
            )
        self.rsvps[key] = record
        return record

    def delete_rsvp(self, user_id: str, event_id: str) -> None:
        self.rsvps.pop((user_id, event_id), None)

    def get_rsvp(self, user_id: str, event_id: str) -> Optional[RsvpRecord]:
        return self.rsvps.get((user_id, event_id))

    def count_rsvps(self, event_id: str) -> dict[str, int]:
        counts = {status: 0 for status in RSVP_STATUSES}
        for rsvp in self.rsvps.values():
            if rsvp.event_id == event_id:
                counts[rsvp.status] += 1
        return counts

    def list_user_rsvps(self, user_id: str) -> list[RsvpRecord]:
        return [r for r in self.rsvps.values() if r.user_id == user_id]

    # saves

    def toggle_save(self, user_id: str, event_id: str) -> bool:
        return self._toggle(self.saves, (user_id, event_id))

    def is_saved(self, user_id: str, event_id: str) -> bool:
        return (user_id, event_id) in self.saves

    def list_user_saves(self, user_id: str) -> list[str]:
        return [event_id for (uid, event_id) in self.saves if uid == user_id]

    # follows

    def toggle_follow(self, user_id: str, entity_id: str) -> bool:
        return self._toggle(self.follows, (user_id, entity_id))

    def is_following(self, user_id: str, entity_id: str) -> bool:
        return (user_id, entity_id) in self.follows

    def count_followers(self, entity_id: str) -> int:
        return sum(1 for (_, eid) in self.follows if eid == entity_id)

    # messages

    def create_message(self, message: MessageRecord) -> MessageRecord:
        self.messages[message.id] = message
        return message

    def get_message(self, message_id: str) -> Optional[MessageRecord]:
        return self.messages.get(message_id)

    def list_messages(self, entity_ids: Iterable[str]) -> list[MessageRecord]:
        wanted = set(entity_ids)
        rows = [m for m in self.messages.values() if m.entity_id in wanted]
        return sorted(rows, key=lambda m: m.created_at, reverse=True)

    def set_message_read(self, message_id: str, read: bool) -> MessageRecord:
        message = self.messages.get(message_id)
        if not message:
            raise RecordNotFound(f"message {message_id} not found")
        message.read = read
        return message

    # helpers

    def _toggle(self, table: Dict[tuple[str, str], datetime], key: tuple[str, str]) -> bool:
        if key in table:
            del table[key]
            return False
        table[key] = utcnow()
        return True

    def _require_spatial(self, function_name: str) -> None:
        if not self.spatial_enabled:
            raise SpatialQueryError(f"function {function_name} does not exist")
