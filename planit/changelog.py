"""
Event changelog: auto entries diffed from PATCH bodies and manual announcements.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from planit.db import EntityRecord, EventRecord, HostRecord, UpdateRecord, new_id, utcnow

# Changes to these fields are announced to attendees.
TRACKED_FIELDS = ("starts_at", "ends_at", "address", "title")


def stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return str(value)


def diff_tracked_fields(
    event: EventRecord, changes: dict, *, author_id: str
) -> list[UpdateRecord]:
    """
    Build one auto update per tracked field whose incoming value differs from
    the stored one. Fields absent from ``changes`` are left alone.
    """
    now = utcnow()
    updates = []
    for field_name in TRACKED_FIELDS:
        if field_name not in changes:
            continue
        old_value = getattr(event, field_name)
        new_value = changes[field_name]
        if new_value == old_value:
            continue
        updates.append(
            UpdateRecord(
                id=new_id(),
                event_id=event.id,
                type="auto",
                author_id=author_id,
                field_changed=field_name,
                old_value=stringify(old_value),
                new_value=stringify(new_value),
                created_at=now,
            )
        )
    return updates


def manual_update(event_id: str, author_id: str, message: str) -> UpdateRecord:
    return UpdateRecord(
        id=new_id(),
        event_id=event_id,
        type="manual",
        author_id=author_id,
        message=message,
    )


def can_edit_event(
    event: EventRecord,
    hosts: Iterable[HostRecord],
    entities: dict[str, EntityRecord],
    user_id: str,
) -> bool:
    """Creator, or admin of a host entity whose row grants edit rights."""
    if event.created_by == user_id:
        return True
    for host in hosts:
        entity = entities.get(host.entity_id)
        if host.can_edit and entity is not None and entity.admin_id == user_id:
            return True
    return False
