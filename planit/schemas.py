"""
Pydantic schemas for the PlanIt API.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# Requests


class EntityCreatePayload(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    location: Optional[str] = None
    banner_url: Optional[str] = None


class EntityUpdatePayload(BaseModel):
    """Immutable columns (id, slug, type, admin_id) are silently dropped."""

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    location: Optional[str] = None
    banner_url: Optional[str] = None


class EventCreatePayload(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    location: Optional[str] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    tags: list[str] = Field(default_factory=list)
    banner_url: Optional[str] = None
    host_entity_ids: Optional[list[str]] = None


class EventUpdatePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    location: Optional[str] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    tags: Optional[list[str]] = None
    banner_url: Optional[str] = None


class RsvpPayload(BaseModel):
    # Required key; null clears the RSVP.
    status: Optional[str] = Field(...)


class MessagePayload(BaseModel):
    message: Optional[str] = None


class ContactPayload(BaseModel):
    message: Optional[str] = None
    entity_id: Optional[str] = None


class MessageReadPayload(BaseModel):
    read: bool = True


# Responses


class EntitySummary(BaseModel):
    id: str
    type: str
    name: str
    slug: str
    banner_url: Optional[str] = None


class EntityOut(BaseModel):
    id: str
    type: str
    name: str
    slug: str
    description: Optional[str] = None
    address: Optional[str] = None
    location: Optional[str] = None
    banner_url: Optional[str] = None
    admin_id: str
    created_at: datetime


class HostOut(BaseModel):
    entity_id: str
    can_edit: bool
    entity: Optional[EntitySummary] = None


class EventOut(BaseModel):
    id: str
    title: str
    slug: str
    description: Optional[str] = None
    address: Optional[str] = None
    location: Optional[str] = None
    starts_at: datetime
    ends_at: Optional[datetime] = None
    banner_url: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    created_by: str
    created_at: datetime
    event_hosts: list[HostOut] = Field(default_factory=list)


class UpdateOut(BaseModel):
    id: str
    event_id: str
    type: Literal["auto", "manual"]
    field_changed: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    message: Optional[str] = None
    author_id: str
    created_at: datetime


class UserSummary(BaseModel):
    id: str
    username: Optional[str] = None


class UserStatus(BaseModel):
    rsvp: Optional[str] = None
    saved: bool = False


class EventDetailOut(EventOut):
    updates: list[UpdateOut] = Field(default_factory=list)
    created_by_user: Optional[UserSummary] = None
    user_status: Optional[UserStatus] = None
    rsvp_counts: dict[str, int] = Field(default_factory=dict)


class EntityDetailOut(EntityOut):
    upcoming_events: list[EventOut] = Field(default_factory=list)
    past_events: list[EventOut] = Field(default_factory=list)
    follower_count: int = 0
    is_following: bool = False


class FollowResponse(BaseModel):
    following: bool


class SaveResponse(BaseModel):
    saved: bool


class RsvpResponse(BaseModel):
    status: Optional[str] = None
    id: Optional[str] = None
    user_id: Optional[str] = None
    event_id: Optional[str] = None
    created_at: Optional[datetime] = None


class MessageOut(BaseModel):
    id: str
    entity_id: str
    event_id: Optional[str] = None
    from_user_id: str
    message: str
    read: bool
    created_at: datetime


class DeleteResponse(BaseModel):
    success: bool


class SearchResults(BaseModel):
    events: list[EventOut] = Field(default_factory=list)
    entities: list[EntityOut] = Field(default_factory=list)


class SearchCounts(BaseModel):
    events: int
    entities: int
    total: int


class SearchResponse(BaseModel):
    query: str
    results: SearchResults
    counts: SearchCounts


class BannerUploadResponse(BaseModel):
    banner_url: Optional[str] = None


class GeocodeResponse(BaseModel):
    lat: float
    lng: float
    display_name: str
    location: str


class CalendarEntry(BaseModel):
    status: str
    event: EventOut


class CalendarResponse(BaseModel):
    rsvps: list[CalendarEntry]
    saved: list[EventOut]


class BannerKind(str, Enum):
    events = "events"
    entities = "entities"
