import unittest
from datetime import datetime, timedelta, timezone
from importlib import resources

from planit.db import (
    DbError,
    EntityQuery,
    EntityRecord,
    EventQuery,
    EventRecord,
    HostRecord,
    MessageRecord,
    SpatialQueryError,
    UniqueViolation,
    UpdateRecord,
    UserRecord,
    new_id,
)
from planit.db_postgres import PostgresDbClient
from planit.geo import GeoPoint

NOW = datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc)


class PostgresDbClientTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the Postgres client logic.
    """

    def setUp(self):
        self.db = PostgresDbClient("sqlite+pysqlite:///:memory:")
        self.venue = self.db.create_entity(
            EntityRecord(
                id=new_id(),
                type="venue",
                name="The Spot",
                slug="the-spot",
                admin_id="alice",
                address="1425 Elizabeth Ave",
                location="POINT(-80.829 35.2145)",
            )
        )

    def _event(self, title, days=1, tags=None, description=None):
        event = EventRecord(
            id=new_id(),
            title=title,
            slug=f"{title.lower().replace(' ', '-')}-{new_id()[:6]}",
            starts_at=NOW + timedelta(days=days),
            created_by="alice",
            description=description,
            tags=tags or [],
        )
        return self.db.create_event_with_hosts(
            event, [HostRecord(event_id=event.id, entity_id=self.venue.id, can_edit=True)]
        )

    def test_user_upsert(self):
        self.db.save_user(UserRecord(id="u1", email="old@example.com", username="one"))
        self.db.save_user(UserRecord(id="u1", email="new@example.com", username="one"))
        self.assertEqual(self.db.get_user("u1").email, "new@example.com")
        self.assertIsNone(self.db.get_user("missing"))

    def test_entity_slug_is_unique(self):
        duplicate = EntityRecord(
            id=new_id(), type="venue", name="The Spot", slug="the-spot", admin_id="bob", address="x"
        )
        with self.assertRaises(UniqueViolation):
            self.db.create_entity(duplicate)
        self.assertEqual(self.db.get_entity_by_slug("the-spot").admin_id, "alice")

    def test_entity_listing_and_update(self):
        self.db.create_entity(
            EntityRecord(id=new_id(), type="organization", name="NoDa Makers", slug="noda-makers", admin_id="bob")
        )
        names = [e.name for e in self.db.list_entities(EntityQuery())]
        self.assertEqual(names, ["NoDa Makers", "The Spot"])
        self.assertEqual(
            [e.name for e in self.db.list_entities(EntityQuery(type="venue", name_contains="SPOT"))],
            ["The Spot"],
        )
        self.assertEqual([e.name for e in self.db.list_entities_by_admin("bob")], ["NoDa Makers"])

        updated = self.db.update_entity(self.venue.id, {"description": "Live music", "admin_id": "bob"})
        self.assertEqual(updated.description, "Live music")
        self.assertEqual(updated.admin_id, "alice")

    def test_event_roundtrip(self):
        event = self._event("Friday Jazz", tags=["music", "jazz"])
        stored = self.db.get_event_by_slug(event.slug)
        self.assertEqual(stored.starts_at, event.starts_at)
        self.assertEqual(stored.starts_at.tzinfo, timezone.utc)
        self.assertEqual(stored.tags, ["jazz", "music"])
        hosts = self.db.list_hosts([event.id])
        self.assertEqual([(h.entity_id, h.can_edit) for h in hosts], [(self.venue.id, True)])

    def test_event_with_unknown_host_writes_nothing(self):
        event = EventRecord(
            id=new_id(), title="Orphan", slug="orphan-abc123", starts_at=NOW, created_by="alice"
        )
        with self.assertRaises(DbError):
            self.db.create_event_with_hosts(
                event,
                [
                    HostRecord(event_id=event.id, entity_id=self.venue.id, can_edit=True),
                    HostRecord(event_id=event.id, entity_id="missing", can_edit=False),
                ],
            )
        self.assertIsNone(self.db.get_event_by_slug("orphan-abc123"))
        self.assertEqual(self.db.list_hosts([event.id]), [])

    def test_list_events_filters(self):
        self._event("Jazz Night", days=1, tags=["music", "jazz"])
        self._event("Pottery", days=2, tags=["art"], description="no jazz here")
        self._event("Old Jazz", days=-5, tags=["music"])

        upcoming = self.db.list_events(EventQuery(starts_after=NOW))
        self.assertEqual([e.title for e in upcoming], ["Jazz Night", "Pottery"])

        tagged = self.db.list_events(EventQuery(tags=["art", "comedy"]))
        self.assertEqual([e.title for e in tagged], ["Pottery"])

        text = self.db.list_events(EventQuery(text="JAZZ", starts_after=NOW))
        self.assertEqual([e.title for e in text], ["Jazz Night", "Pottery"])

        past = self.db.list_entity_events(self.venue.id, upcoming=False, now=NOW, limit=10)
        self.assertEqual([e.title for e in past], ["Old Jazz"])

    def test_update_event_replaces_tags(self):
        event = self._event("Jazz Night", tags=["music"])
        updated = self.db.update_event(
            event.id, {"title": "Late Jazz", "tags": ["jazz", "late"], "starts_at": NOW}
        )
        self.assertEqual(updated.title, "Late Jazz")
        self.assertEqual(updated.tags, ["jazz", "late"])
        self.assertEqual(self.db.get_event_by_slug(event.slug).starts_at, NOW)

    def test_spatial_functions_missing(self):
        with self.assertRaises(SpatialQueryError):
            self.db.events_within_radius(EventQuery(), GeoPoint(lat=35.2, lng=-80.8), 1000)
        with self.assertRaises(SpatialQueryError):
            self.db.entities_within_radius(EntityQuery(), GeoPoint(lat=35.2, lng=-80.8), 1000)
        # The session is still usable afterwards.
        self.assertIsNotNone(self.db.get_entity(self.venue.id))

    def test_toggles(self):
        event = self._event("Jazz Night")
        self.assertTrue(self.db.toggle_save("bob", event.id))
        self.assertTrue(self.db.is_saved("bob", event.id))
        self.assertEqual(self.db.list_user_saves("bob"), [event.id])
        self.assertFalse(self.db.toggle_save("bob", event.id))
        self.assertFalse(self.db.is_saved("bob", event.id))

        self.assertTrue(self.db.toggle_follow("bob", self.venue.id))
        self.assertEqual(self.db.count_followers(self.venue.id), 1)
        self.assertFalse(self.db.toggle_follow("bob", self.venue.id))
        self.assertEqual(self.db.count_followers(self.venue.id), 0)

    def test_rsvp_upsert(self):
        event = self._event("Jazz Night")
        first = self.db.upsert_rsvp("bob", event.id, "yes")
        second = self.db.upsert_rsvp("bob", event.id, "maybe")
        self.assertEqual(first.id, second.id)
        self.assertEqual(self.db.count_rsvps(event.id), {"yes": 0, "no": 0, "maybe": 1})
        self.assertEqual([r.status for r in self.db.list_user_rsvps("bob")], ["maybe"])

        self.db.delete_rsvp("bob", event.id)
        self.assertIsNone(self.db.get_rsvp("bob", event.id))

    def test_messages_newest_first(self):
        event = self._event("Jazz Night")
        for i, text in enumerate(("first", "second")):
            self.db.create_message(
                MessageRecord(
                    id=f"m{i}",
                    entity_id=self.venue.id,
                    event_id=event.id,
                    from_user_id="bob",
                    message=text,
                    created_at=NOW + timedelta(minutes=i),
                )
            )
        self.assertEqual([m.message for m in self.db.list_messages([self.venue.id])], ["second", "first"])
        self.assertTrue(self.db.set_message_read("m0", True).read)
        self.assertTrue(self.db.get_message("m0").read)

    def test_delete_event_cascades(self):
        event = self._event("Jazz Night", tags=["music"])
        self.db.upsert_rsvp("bob", event.id, "yes")
        self.db.toggle_save("bob", event.id)
        self.db.add_updates(
            [UpdateRecord(id=new_id(), event_id=event.id, type="manual", author_id="alice", message="hi")]
        )
        self.db.create_message(
            MessageRecord(id=new_id(), entity_id=self.venue.id, event_id=event.id, from_user_id="bob", message="q")
        )

        self.db.delete_event(event.id)
        self.assertIsNone(self.db.get_event_by_slug(event.slug))
        self.assertEqual(self.db.list_hosts([event.id]), [])
        self.assertEqual(self.db.list_updates(event.id), [])
        self.assertIsNone(self.db.get_rsvp("bob", event.id))
        self.assertFalse(self.db.is_saved("bob", event.id))
        self.assertEqual(self.db.list_messages([self.venue.id]), [])


class SpatialFunctionSqlTests(unittest.TestCase):
    def setUp(self):
        self.sql = resources.files("planit").joinpath("sql/spatial.sql").read_text()

    def test_radius_events_ordered_by_start_time(self):
        events_body = self.sql.split("FUNCTION entities_within_radius")[0]
        self.assertIn("ORDER BY e.starts_at, distance_meters", events_body)

    def test_radius_entities_ordered_nearest_first(self):
        entities_body = self.sql.split("FUNCTION entities_within_radius")[1]
        self.assertIn("ORDER BY distance_meters, n.name", entities_body)


if __name__ == "__main__":
    unittest.main()
