"""
SQLAlchemy-backed store. Accepts any SQLAlchemy URL (Postgres/PostGIS in
production, SQLite for tests).

Spatial queries call the server-side functions from ``planit/sql/spatial.sql``;
when they are missing the call raises SpatialQueryError.
"""

from __future__ import annotations

import logging
from datetime import datetime
from importlib import resources
from typing import Iterable, Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    delete,
    exists,
    func,
    or_,
    select,
    text,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker

from planit.db import (
    RSVP_STATUSES,
    DbError,
    EntityQuery,
    EntityRecord,
    EventQuery,
    EventRecord,
    HostRecord,
    MessageRecord,
    RecordNotFound,
    RsvpRecord,
    SpatialQueryError,
    UniqueViolation,
    UpdateRecord,
    UserRecord,
    as_utc,
    new_id,
    utcnow,
)
from planit.geo import GeoPoint

logger = logging.getLogger(__name__)

TOGGLE_ATTEMPTS = 3

ENTITY_FIELDS = ("name", "description", "address", "location", "banner_url")
EVENT_FIELDS = (
    "title",
    "description",
    "address",
    "location",
    "starts_at",
    "ends_at",
    "banner_url",
)


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code == "23505":
        return True
    message = str(orig).lower()
    return "unique constraint" in message or "duplicate key" in message


def _translate_integrity(exc: IntegrityError) -> DbError:
    if _is_unique_violation(exc):
        return UniqueViolation(str(exc.orig))
    return DbError(str(exc.orig))


class PostgresDbClient:
    """
    SQLAlchemy-backed implementation of DbClient.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    # conversions

    def _to_user(self, row: "UserRow") -> UserRecord:
        return UserRecord(
            id=row.id,
            email=row.email,
            username=row.username,
            created_at=as_utc(row.created_at),
        )

    def _to_entity(self, row: "EntityRow") -> EntityRecord:
        return EntityRecord(
            id=row.id,
            type=row.type,
            name=row.name,
            slug=row.slug,
            admin_id=row.admin_id,
            description=row.description,
            address=row.address,
            location=row.location,
            banner_url=row.banner_url,
            created_at=as_utc(row.created_at),
        )

    def _to_event(self, row: "EventRow") -> EventRecord:
        return EventRecord(
            id=row.id,
            title=row.title,
            slug=row.slug,
            starts_at=as_utc(row.starts_at),
            created_by=row.created_by,
            description=row.description,
            address=row.address,
            location=row.location,
            ends_at=as_utc(row.ends_at),
            banner_url=row.banner_url,
            tags=sorted(t.tag for t in row.tag_rows),
            created_at=as_utc(row.created_at),
        )

    def _to_rsvp(self, row: "RsvpRow") -> RsvpRecord:
        return RsvpRecord(
            id=row.id,
            user_id=row.user_id,
            event_id=row.event_id,
            status=row.status,
            created_at=as_utc(row.created_at),
        )

    def _to_update(self, row: "UpdateRow") -> UpdateRecord:
        return UpdateRecord(
            id=row.id,
            event_id=row.event_id,
            type=row.type,
            author_id=row.author_id,
            field_changed=row.field_changed,
            old_value=row.old_value,
            new_value=row.new_value,
            message=row.message,
            created_at=as_utc(row.created_at),
        )

    def _to_message(self, row: "MessageRow") -> MessageRecord:
        return MessageRecord(
            id=row.id,
            entity_id=row.entity_id,
            from_user_id=row.from_user_id,
            message=row.message,
            event_id=row.event_id,
            read=row.read,
            created_at=as_utc(row.created_at),
        )

    # users

    def save_user(self, user: UserRecord) -> None:
        with self.Session() as session:
            row = session.get(UserRow, user.id)
            if row:
                row.email = user.email
                row.username = user.username
            else:
                session.add(
                    UserRow(
                        id=user.id,
                        email=user.email,
                        username=user.username,
                        created_at=as_utc(user.created_at),
                    )
                )
            self._commit(session)

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self.Session() as session:
            row = session.get(UserRow, user_id)
            return self._to_user(row) if row else None

    # entities

    def create_entity(self, entity: EntityRecord) -> EntityRecord:
        with self.Session() as session:
            session.add(
                EntityRow(
                    id=entity.id,
                    type=entity.type,
                    name=entity.name,
                    slug=entity.slug,
                    admin_id=entity.admin_id,
                    description=entity.description,
                    address=entity.address,
                    location=entity.location,
                    banner_url=entity.banner_url,
                    created_at=as_utc(entity.created_at),
                )
            )
            self._commit(session)
        return entity

    def get_entity(self, entity_id: str) -> Optional[EntityRecord]:
        with self.Session() as session:
            row = session.get(EntityRow, entity_id)
            return self._to_entity(row) if row else None

    def get_entity_by_slug(self, slug: str) -> Optional[EntityRecord]:
        with self.Session() as session:
            row = session.execute(
                select(EntityRow).where(EntityRow.slug == slug)
            ).scalar_one_or_none()
            return self._to_entity(row) if row else None

    def get_entities(self, entity_ids: Iterable[str]) -> list[EntityRecord]:
        ids = list(entity_ids)
        if not ids:
            return []
        with self.Session() as session:
            rows = session.execute(
                select(EntityRow).where(EntityRow.id.in_(ids))
            ).scalars()
            return [self._to_entity(row) for row in rows]

    def list_entities(self, query: EntityQuery) -> list[EntityRecord]:
        stmt = select(EntityRow).order_by(EntityRow.name.asc())
        if query.type:
            stmt = stmt.where(EntityRow.type == query.type)
        if query.name_contains:
            stmt = stmt.where(EntityRow.name.ilike(f"%{query.name_contains}%"))
        if query.text:
            pattern = f"%{query.text}%"
            stmt = stmt.where(
                or_(EntityRow.name.ilike(pattern), EntityRow.description.ilike(pattern))
            )
        stmt = stmt.offset(query.offset).limit(query.limit)
        with self.Session() as session:
            return [self._to_entity(row) for row in session.execute(stmt).scalars()]

    def list_entities_by_admin(self, admin_id: str) -> list[EntityRecord]:
        stmt = (
            select(EntityRow)
            .where(EntityRow.admin_id == admin_id)
            .order_by(EntityRow.name.asc())
        )
        with self.Session() as session:
            return [self._to_entity(row) for row in session.execute(stmt).scalars()]

    def entities_within_radius(
        self, query: EntityQuery, center: GeoPoint, radius_meters: float
    ) -> list[EntityRecord]:
        params = {
            "lat": center.lat,
            "lng": center.lng,
            "radius_meters": radius_meters,
            "entity_type": query.type,
            "search_term": query.text or query.name_contains,
            "result_limit": query.limit,
            "result_offset": query.offset,
        }
        ids = self._call_spatial(
            "SELECT id FROM entities_within_radius(:lat, :lng, :radius_meters, "
            ":entity_type, :search_term, :result_limit, :result_offset)",
            params,
        )
        by_id = {e.id: e for e in self.get_entities(ids)}
        return [by_id[i] for i in ids if i in by_id]

    def update_entity(self, entity_id: str, fields: dict) -> EntityRecord:
        with self.Session() as session:
            row = session.get(EntityRow, entity_id)
            if not row:
                raise RecordNotFound(f"entity {entity_id} not found")
            for key, value in fields.items():
                if key in ENTITY_FIELDS:
                    setattr(row, key, value)
            self._commit(session)
            return self._to_entity(row)

    # events

    def create_event_with_hosts(
        self, event: EventRecord, hosts: list[HostRecord]
    ) -> EventRecord:
        with self.Session() as session:
            known = set(
                session.execute(
                    select(EntityRow.id).where(
                        EntityRow.id.in_([h.entity_id for h in hosts])
                    )
                ).scalars()
            )
            missing = [h.entity_id for h in hosts if h.entity_id not in known]
            if missing:
                raise DbError(f"unknown host entities: {', '.join(missing)}")
            row = EventRow(
                id=event.id,
                title=event.title,
                slug=event.slug,
                description=event.description,
                address=event.address,
                location=event.location,
                starts_at=as_utc(event.starts_at),
                ends_at=as_utc(event.ends_at),
                banner_url=event.banner_url,
                created_by=event.created_by,
                created_at=as_utc(event.created_at),
            )
            row.tag_rows = [EventTagRow(tag=tag) for tag in dict.fromkeys(event.tags)]
            session.add(row)
            session.add_all(
                EventHostRow(
                    event_id=event.id, entity_id=h.entity_id, can_edit=h.can_edit
                )
                for h in hosts
            )
            self._commit(session)
        return event

    def get_event_by_slug(self, slug: str) -> Optional[EventRecord]:
        with self.Session() as session:
            row = session.execute(
                select(EventRow).where(EventRow.slug == slug)
            ).scalar_one_or_none()
            return self._to_event(row) if row else None

    def get_events(self, event_ids: Iterable[str]) -> list[EventRecord]:
        ids = list(event_ids)
        if not ids:
            return []
        stmt = (
            select(EventRow)
            .where(EventRow.id.in_(ids))
            .order_by(EventRow.starts_at.asc())
        )
        with self.Session() as session:
            return [self._to_event(row) for row in session.execute(stmt).scalars()]

    def list_events(self, query: EventQuery) -> list[EventRecord]:
        stmt = select(EventRow).order_by(EventRow.starts_at.asc())
        if query.text:
            pattern = f"%{query.text}%"
            stmt = stmt.where(
                or_(EventRow.title.ilike(pattern), EventRow.description.ilike(pattern))
            )
        if query.starts_after:
            stmt = stmt.where(EventRow.starts_at >= as_utc(query.starts_after))
        if query.starts_before:
            stmt = stmt.where(EventRow.starts_at <= as_utc(query.starts_before))
        if query.tags:
            stmt = stmt.where(
                exists().where(
                    EventTagRow.event_id == EventRow.id,
                    EventTagRow.tag.in_(query.tags),
                )
            )
        stmt = stmt.offset(query.offset).limit(query.limit)
        with self.Session() as session:
            return [self._to_event(row) for row in session.execute(stmt).scalars()]

    def events_within_radius(
        self, query: EventQuery, center: GeoPoint, radius_meters: float
    ) -> list[EventRecord]:
        params = {
            "lat": center.lat,
            "lng": center.lng,
            "radius_meters": radius_meters,
            "start_date": as_utc(query.starts_after),
            "end_date": as_utc(query.starts_before),
            "tag_filter": query.tags or None,
            "search_term": query.text,
            "result_limit": query.limit,
            "result_offset": query.offset,
        }
        ids = self._call_spatial(
            "SELECT id FROM events_within_radius(:lat, :lng, :radius_meters, "
            ":start_date, :end_date, :tag_filter, :search_term, :result_limit, "
            ":result_offset)",
            params,
        )
        by_id = {e.id: e for e in self.get_events(ids)}
        return [by_id[i] for i in ids if i in by_id]

    def list_entity_events(
        self, entity_id: str, *, upcoming: bool, now: datetime, limit: int
    ) -> list[EventRecord]:
        stmt = select(EventRow).join(
            EventHostRow, EventHostRow.event_id == EventRow.id
        ).where(EventHostRow.entity_id == entity_id)
        if upcoming:
            stmt = stmt.where(EventRow.starts_at >= as_utc(now)).order_by(
                EventRow.starts_at.asc()
            )
        else:
            stmt = stmt.where(EventRow.starts_at < as_utc(now)).order_by(
                EventRow.starts_at.desc()
            )
        stmt = stmt.limit(limit)
        with self.Session() as session:
            return [self._to_event(row) for row in session.execute(stmt).scalars()]

    def update_event(self, event_id: str, fields: dict) -> EventRecord:
        with self.Session() as session:
            row = session.get(EventRow, event_id)
            if not row:
                raise RecordNotFound(f"event {event_id} not found")
            for key, value in fields.items():
                if key in ("starts_at", "ends_at"):
                    setattr(row, key, as_utc(value))
                elif key in EVENT_FIELDS:
                    setattr(row, key, value)
            if "tags" in fields:
                row.tag_rows = [
                    EventTagRow(tag=tag) for tag in dict.fromkeys(fields["tags"] or [])
                ]
            self._commit(session)
            return self._to_event(row)

    def delete_event(self, event_id: str) -> None:
        with self.Session() as session:
            row = session.get(EventRow, event_id)
            if not row:
                raise RecordNotFound(f"event {event_id} not found")
            for table in (EventHostRow, RsvpRow, SaveRow, UpdateRow, MessageRow):
                session.execute(delete(table).where(table.event_id == event_id))
            session.delete(row)
            self._commit(session)

    def list_hosts(self, event_ids: Iterable[str]) -> list[HostRecord]:
        ids = list(event_ids)
        if not ids:
            return []
        stmt = select(EventHostRow).where(EventHostRow.event_id.in_(ids))
        with self.Session() as session:
            return [
                HostRecord(
                    event_id=row.event_id,
                    entity_id=row.entity_id,
                    can_edit=row.can_edit,
                )
                for row in session.execute(stmt).scalars()
            ]

    # changelog

    def add_updates(self, updates: list[UpdateRecord]) -> list[UpdateRecord]:
        with self.Session() as session:
            session.add_all(
                UpdateRow(
                    id=u.id,
                    event_id=u.event_id,
                    type=u.type,
                    author_id=u.author_id,
                    field_changed=u.field_changed,
                    old_value=u.old_value,
                    new_value=u.new_value,
                    message=u.message,
                    created_at=as_utc(u.created_at),
                )
                for u in updates
            )
            self._commit(session)
        return updates

    def list_updates(self, event_id: str) -> list[UpdateRecord]:
        stmt = (
            select(UpdateRow)
            .where(UpdateRow.event_id == event_id)
            .order_by(UpdateRow.created_at.asc())
        )
        with self.Session() as session:
            return [self._to_update(row) for row in session.execute(stmt).scalars()]

    # rsvps

    def upsert_rsvp(self, user_id: str, event_id: str, status: str) -> RsvpRecord:
        for _ in range(2):
            with self.Session() as session:
                row = session.execute(
                    select(RsvpRow)
                    .where(RsvpRow.user_id == user_id, RsvpRow.event_id == event_id)
                    .with_for_update()
                ).scalar_one_or_none()
                if row:
                    row.status = status
                else:
                    row = RsvpRow(
                        id=new_id(),
                        user_id=user_id,
                        event_id=event_id,
                        status=status,
                        created_at=utcnow(),
                    )
                    session.add(row)
                try:
                    session.commit()
                except IntegrityError as exc:
                    session.rollback()
                    if not _is_unique_violation(exc):
                        raise DbError(str(exc.orig)) from exc
                    # A concurrent insert won; retry as an update.
                    continue
                return self._to_rsvp(row)
        raise DbError(f"could not upsert rsvp for {user_id}/{event_id}")

    def delete_rsvp(self, user_id: str, event_id: str) -> None:
        with self.Session() as session:
            session.execute(
                delete(RsvpRow).where(
                    RsvpRow.user_id == user_id, RsvpRow.event_id == event_id
                )
            )
            self._commit(session)

    def get_rsvp(self, user_id: str, event_id: str) -> Optional[RsvpRecord]:
        with self.Session() as session:
            row = session.execute(
                select(RsvpRow).where(
                    RsvpRow.user_id == user_id, RsvpRow.event_id == event_id
                )
            ).scalar_one_or_none()
            return self._to_rsvp(row) if row else None

    def count_rsvps(self, event_id: str) -> dict[str, int]:
        stmt = (
            select(RsvpRow.status, func.count())
            .where(RsvpRow.event_id == event_id)
            .group_by(RsvpRow.status)
        )
        counts = {status: 0 for status in RSVP_STATUSES}
        with self.Session() as session:
            for status, count in session.execute(stmt):
                counts[status] = count
        return counts

    def list_user_rsvps(self, user_id: str) -> list[RsvpRecord]:
        stmt = select(RsvpRow).where(RsvpRow.user_id == user_id)
        with self.Session() as session:
            return [self._to_rsvp(row) for row in session.execute(stmt).scalars()]

    # saves

    def toggle_save(self, user_id: str, event_id: str) -> bool:
        return self._toggle(SaveRow, user_id=user_id, event_id=event_id)

    def is_saved(self, user_id: str, event_id: str) -> bool:
        with self.Session() as session:
            return session.get(SaveRow, (user_id, event_id)) is not None

    def list_user_saves(self, user_id: str) -> list[str]:
        stmt = select(SaveRow.event_id).where(SaveRow.user_id == user_id)
        with self.Session() as session:
            return list(session.execute(stmt).scalars())

    # follows

    def toggle_follow(self, user_id: str, entity_id: str) -> bool:
        return self._toggle(FollowRow, user_id=user_id, entity_id=entity_id)

    def is_following(self, user_id: str, entity_id: str) -> bool:
        with self.Session() as session:
            return session.get(FollowRow, (user_id, entity_id)) is not None

    def count_followers(self, entity_id: str) -> int:
        stmt = select(func.count()).select_from(FollowRow).where(
            FollowRow.entity_id == entity_id
        )
        with self.Session() as session:
            return session.execute(stmt).scalar_one()

    # messages

    def create_message(self, message: MessageRecord) -> MessageRecord:
        with self.Session() as session:
            session.add(
                MessageRow(
                    id=message.id,
                    entity_id=message.entity_id,
                    event_id=message.event_id,
                    from_user_id=message.from_user_id,
                    message=message.message,
                    read=message.read,
                    created_at=as_utc(message.created_at),
                )
            )
            self._commit(session)
        return message

    def get_message(self, message_id: str) -> Optional[MessageRecord]:
        with self.Session() as session:
            row = session.get(MessageRow, message_id)
            return self._to_message(row) if row else None

    def list_messages(self, entity_ids: Iterable[str]) -> list[MessageRecord]:
        ids = list(entity_ids)
        if not ids:
            return []
        stmt = (
            select(MessageRow)
            .where(MessageRow.entity_id.in_(ids))
            .order_by(MessageRow.created_at.desc())
        )
        with self.Session() as session:
            return [self._to_message(row) for row in session.execute(stmt).scalars()]

    def set_message_read(self, message_id: str, read: bool) -> MessageRecord:
        with self.Session() as session:
            row = session.get(MessageRow, message_id)
            if not row:
                raise RecordNotFound(f"message {message_id} not found")
            row.read = read
            self._commit(session)
            return self._to_message(row)

    # helpers

    def _commit(self, session: Session) -> None:
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise _translate_integrity(exc) from exc
        except SQLAlchemyError as exc:
            session.rollback()
            raise DbError(str(exc)) from exc

    def _toggle(self, model, **key) -> bool:
        """
        Flip the marker row for ``key`` against the committed state.

        The delete is attempted first; only when nothing was deleted is a row
        inserted. Losing an insert race means another request just turned the
        marker on, so the next attempt turns it off again.
        """
        conditions = [getattr(model, name) == value for name, value in key.items()]
        for _ in range(TOGGLE_ATTEMPTS):
            with self.Session() as session:
                deleted = session.execute(delete(model).where(*conditions)).rowcount
                if deleted:
                    self._commit(session)
                    return False
                session.add(model(created_at=utcnow(), **key))
                try:
                    session.commit()
                except IntegrityError as exc:
                    session.rollback()
                    if not _is_unique_violation(exc):
                        raise DbError(str(exc.orig)) from exc
                    logger.info("Toggle race on %s %s; retrying", model.__tablename__, key)
                    continue
                return True
        raise DbError(f"could not toggle {model.__tablename__} for {key}")

    def install_spatial_functions(self) -> None:
        """
        Create or replace the PostGIS radius functions. Postgres only.
        """
        sql = resources.files("planit").joinpath("sql/spatial.sql").read_text()
        raw = self.engine.raw_connection()
        try:
            cursor = raw.cursor()
            cursor.execute(sql)
            cursor.close()
            raw.commit()
        except Exception:
            raw.rollback()
            raise
        finally:
            raw.close()
        logger.info("Installed spatial functions")

    def _call_spatial(self, sql: str, params: dict) -> list[str]:
        with self.Session() as session:
            try:
                result = session.execute(text(sql), params)
                return [row[0] for row in result]
            except SQLAlchemyError as exc:
                session.rollback()
                raise SpatialQueryError(str(exc)) from exc


Base = declarative_base()


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False)
    username = Column(String, nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False)


class EntityRow(Base):
    __tablename__ = "entities"

    id = Column(String, primary_key=True)
    type = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    address = Column(String, nullable=True)
    location = Column(String, nullable=True)
    banner_url = Column(String, nullable=True)
    admin_id = Column(String, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)


class EventRow(Base):
    __tablename__ = "events"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    address = Column(String, nullable=True)
    location = Column(String, nullable=True)
    starts_at = Column(DateTime(timezone=True), nullable=False, index=True)
    ends_at = Column(DateTime(timezone=True), nullable=True)
    banner_url = Column(String, nullable=True)
    created_by = Column(String, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    tag_rows = relationship(
        "EventTagRow", cascade="all, delete-orphan", lazy="selectin"
    )


class EventTagRow(Base):
    __tablename__ = "event_tags"

    event_id = Column(String, ForeignKey("events.id"), primary_key=True)
    tag = Column(String, primary_key=True, index=True)


class EventHostRow(Base):
    __tablename__ = "event_hosts"

    event_id = Column(String, ForeignKey("events.id"), primary_key=True)
    entity_id = Column(String, ForeignKey("entities.id"), primary_key=True)
    can_edit = Column(Boolean, nullable=False, default=False)


class RsvpRow(Base):
    __tablename__ = "rsvps"
    __table_args__ = (UniqueConstraint("user_id", "event_id"),)

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    event_id = Column(String, ForeignKey("events.id"), nullable=False, index=True)
    status = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)


class SaveRow(Base):
    __tablename__ = "saves"

    user_id = Column(String, primary_key=True)
    event_id = Column(String, ForeignKey("events.id"), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False)


class FollowRow(Base):
    __tablename__ = "follows"

    user_id = Column(String, primary_key=True)
    entity_id = Column(String, ForeignKey("entities.id"), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False)


class UpdateRow(Base):
    __tablename__ = "updates"

    id = Column(String, primary_key=True)
    event_id = Column(String, ForeignKey("events.id"), nullable=False, index=True)
    type = Column(String, nullable=False)
    field_changed = Column(String, nullable=True)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    message = Column(Text, nullable=True)
    author_id = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)


class MessageRow(Base):
    __tablename__ = "messages"

    id = Column(String, primary_key=True)
    entity_id = Column(String, ForeignKey("entities.id"), nullable=False, index=True)
    event_id = Column(String, ForeignKey("events.id"), nullable=True)
    from_user_id = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
