import unittest
from datetime import timedelta
from unittest.mock import patch

from fastapi.testclient import TestClient

from planit.app import create_app
from planit.db import (
    DbError,
    EntityRecord,
    EventRecord,
    HostRecord,
    InMemoryDbClient,
    new_id,
    utcnow,
)
from planit.dependencies import get_db_client
from planit.geo import format_point

CHARLOTTE = (35.2271, -80.8431)
NEW_YORK = (40.7128, -74.0060)


class SearchApiTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        app = create_app()
        app.dependency_overrides[get_db_client] = lambda: self.db
        self.client = TestClient(app)

        self.spot = self._entity("The Spot", "venue", "Jazz and soul every weekend", CHARLOTTE)
        self._entity("Empire Jazz Club", "venue", None, NEW_YORK)
        self._entity("Queen City Runners", "organization", "Weekly group runs", None)

        self._event("Friday Night Jazz", ["music", "jazz"], 2, CHARLOTTE)
        self._event("Harlem Jazz Brunch", ["food", "jazz"], 4, NEW_YORK)
        self._event("Pottery Wheel Basics", ["art"], 5, CHARLOTTE, "No jazz, just clay")
        self._event("Jazz History Talk", ["talk"], -3, CHARLOTTE)

    def _entity(self, name, type_, description, point):
        return self.db.create_entity(
            EntityRecord(
                id=new_id(),
                type=type_,
                name=name,
                slug=name.lower().replace(" ", "-"),
                admin_id="alice",
                description=description,
                address="somewhere" if type_ == "venue" else None,
                location=format_point(*point) if point else None,
            )
        )

    def _event(self, title, tags, days, point, description=None):
        event = EventRecord(
            id=new_id(),
            title=title,
            slug=title.lower().replace(" ", "-"),
            starts_at=utcnow() + timedelta(days=days),
            created_by="alice",
            description=description,
            location=format_point(*point),
            tags=tags,
        )
        self.db.create_event_with_hosts(
            event, [HostRecord(event_id=event.id, entity_id=self.spot.id, can_edit=True)]
        )
        return event

    def test_query_length(self):
        response = self.client.get("/api/search", params={"q": "a"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json(), {"error": "Search query must be at least 2 characters"}
        )
        self.assertEqual(self.client.get("/api/search", params={"q": "  a  "}).status_code, 400)
        self.assertEqual(self.client.get("/api/search").status_code, 400)
        self.assertEqual(self.client.get("/api/search", params={"q": "ab"}).status_code, 200)

    def test_searches_both_kinds(self):
        payload = self.client.get("/api/search", params={"q": "  JAZZ "}).json()
        self.assertEqual(payload["query"], "JAZZ")
        self.assertEqual(
            [e["title"] for e in payload["results"]["events"]],
            ["Friday Night Jazz", "Harlem Jazz Brunch", "Pottery Wheel Basics"],
        )
        self.assertEqual(
            sorted(e["name"] for e in payload["results"]["entities"]),
            ["Empire Jazz Club", "The Spot"],
        )
        self.assertEqual(payload["counts"], {"events": 3, "entities": 2, "total": 5})

    def test_type_and_tag_filters(self):
        payload = self.client.get(
            "/api/search", params={"q": "jazz", "type": "events", "tags": "food,art"}
        ).json()
        self.assertEqual(
            [e["title"] for e in payload["results"]["events"]],
            ["Harlem Jazz Brunch", "Pottery Wheel Basics"],
        )
        self.assertEqual(payload["results"]["entities"], [])

        payload = self.client.get(
            "/api/search", params={"q": "run", "type": "entities", "entity_type": "organization"}
        ).json()
        self.assertEqual([e["name"] for e in payload["results"]["entities"]], ["Queen City Runners"])

        response = self.client.get("/api/search", params={"q": "jazz", "type": "people"})
        self.assertEqual(response.status_code, 400)

    def test_start_date_includes_past_events(self):
        start = (utcnow() - timedelta(days=10)).isoformat()
        payload = self.client.get(
            "/api/search", params={"q": "history", "type": "events", "start_date": start}
        ).json()
        self.assertEqual([e["title"] for e in payload["results"]["events"]], ["Jazz History Talk"])

    def test_radius_narrows_results(self):
        params = {"q": "jazz", "lat": CHARLOTTE[0], "lng": CHARLOTTE[1], "radius": 20000}
        payload = self.client.get("/api/search", params=params).json()
        self.assertEqual(
            [e["title"] for e in payload["results"]["events"]],
            ["Friday Night Jazz", "Pottery Wheel Basics"],
        )
        self.assertEqual([e["name"] for e in payload["results"]["entities"]], ["The Spot"])

    def test_radius_falls_back_when_spatial_missing(self):
        self.db.spatial_enabled = False
        params = {"q": "jazz", "lat": CHARLOTTE[0], "lng": CHARLOTTE[1], "radius": 20000}
        payload = self.client.get("/api/search", params=params).json()
        self.assertEqual(payload["counts"]["events"], 3)
        self.assertEqual(payload["counts"]["entities"], 2)

    def test_failing_sub_query_yields_empty_list(self):
        with patch.object(self.db, "list_events", side_effect=DbError("timeout")):
            response = self.client.get("/api/search", params={"q": "jazz"})
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["results"]["events"], [])
        self.assertEqual(payload["counts"]["entities"], 2)
        self.assertEqual(payload["counts"]["total"], 2)


if __name__ == "__main__":
    unittest.main()
