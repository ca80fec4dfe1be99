import unittest
from datetime import timedelta

from fastapi.testclient import TestClient

from planit.app import create_app
from planit.auth import AuthUser, InMemoryAuthClient
from planit.db import EntityRecord, EventRecord, HostRecord, InMemoryDbClient, new_id, utcnow
from planit.dependencies import get_auth_client, get_db_client

ALICE = {"Authorization": "Bearer alice-token"}
BOB = {"Authorization": "Bearer bob-token"}
CAROL = {"Authorization": "Bearer carol-token"}


class EngagementApiTests(unittest.TestCase):
    """RSVP, saves, organizer contact, manual updates, inbox and calendar."""

    def setUp(self):
        self.db = InMemoryDbClient()
        self.auth = InMemoryAuthClient()
        for name in ("alice", "bob", "carol"):
            self.auth.register(
                f"{name}-token", AuthUser(id=name, email=f"{name}@example.com", username=name)
            )
        app = create_app()
        app.dependency_overrides[get_db_client] = lambda: self.db
        app.dependency_overrides[get_auth_client] = lambda: self.auth
        self.client = TestClient(app)

        self.venue = self._entity("The Spot", "alice")
        self.org = self._entity("NoDa Makers", "carol")
        self.event = EventRecord(
            id=new_id(),
            title="Screen Printing 101",
            slug="screen-printing-101-abc123",
            starts_at=utcnow() + timedelta(days=2),
            created_by="alice",
        )
        self.db.create_event_with_hosts(
            self.event,
            [
                HostRecord(event_id=self.event.id, entity_id=self.venue.id, can_edit=True),
                HostRecord(event_id=self.event.id, entity_id=self.org.id, can_edit=True),
            ],
        )
        self.base = f"/api/events/{self.event.slug}"

    def _entity(self, name, admin_id):
        return self.db.create_entity(
            EntityRecord(
                id=new_id(),
                type="organization",
                name=name,
                slug=name.lower().replace(" ", "-"),
                admin_id=admin_id,
            )
        )

    def test_rsvp_upserts_one_row(self):
        first = self.client.post(f"{self.base}/rsvp", json={"status": "yes"}, headers=BOB)
        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.json()["status"], "yes")

        second = self.client.post(f"{self.base}/rsvp", json={"status": "maybe"}, headers=BOB)
        self.assertEqual(second.json()["status"], "maybe")
        self.assertEqual(second.json()["id"], first.json()["id"])
        self.assertEqual(len(self.db.rsvps), 1)
        self.assertEqual(self.db.count_rsvps(self.event.id)["maybe"], 1)

    def test_rsvp_null_clears(self):
        self.client.post(f"{self.base}/rsvp", json={"status": "no"}, headers=BOB)
        response = self.client.post(f"{self.base}/rsvp", json={"status": None}, headers=BOB)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": None})
        self.assertIsNone(self.db.get_rsvp("bob", self.event.id))

    def test_rsvp_rejects_unknown_status(self):
        response = self.client.post(f"{self.base}/rsvp", json={"status": "sure"}, headers=BOB)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["error"], "Invalid status. Must be 'yes', 'no', 'maybe', or null"
        )
        self.assertEqual(self.client.post(f"{self.base}/rsvp", json={}, headers=BOB).status_code, 400)

    def test_rsvp_requires_auth_and_event(self):
        self.assertEqual(self.client.post(f"{self.base}/rsvp", json={"status": "yes"}).status_code, 401)
        response = self.client.post("/api/events/nope/rsvp", json={"status": "yes"}, headers=BOB)
        self.assertEqual(response.status_code, 404)

    def test_save_toggles(self):
        self.assertEqual(self.client.post(f"{self.base}/save", headers=BOB).json(), {"saved": True})
        self.assertTrue(self.db.is_saved("bob", self.event.id))
        self.assertEqual(self.client.post(f"{self.base}/save", headers=BOB).json(), {"saved": False})
        self.assertFalse(self.db.is_saved("bob", self.event.id))

    def test_contact_defaults_to_first_host(self):
        response = self.client.post(
            f"{self.base}/contact", json={"message": "  Is it wheelchair accessible?  "}, headers=BOB
        )
        self.assertEqual(response.status_code, 201)
        payload = response.json()
        self.assertEqual(payload["entity_id"], self.venue.id)
        self.assertEqual(payload["message"], "Is it wheelchair accessible?")
        self.assertFalse(payload["read"])

    def test_contact_specific_host(self):
        response = self.client.post(
            f"{self.base}/contact",
            json={"message": "Bringing a group", "entity_id": self.org.id},
            headers=BOB,
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["entity_id"], self.org.id)

    def test_contact_validation(self):
        response = self.client.post(f"{self.base}/contact", json={"message": "   "}, headers=BOB)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Message is required")

        response = self.client.post(
            f"{self.base}/contact", json={"message": "hi", "entity_id": "someone-else"}, headers=BOB
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["error"], "The specified entity is not a host of this event"
        )

        self.db.hosts = []
        response = self.client.post(f"{self.base}/contact", json={"message": "hi"}, headers=BOB)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "No host entities found for this event")

    def test_inbox_lists_and_marks_messages(self):
        self.client.post(f"{self.base}/contact", json={"message": "first"}, headers=BOB)
        self.client.post(
            f"{self.base}/contact", json={"message": "for carol", "entity_id": self.org.id}, headers=BOB
        )

        inbox = self.client.get("/api/inbox", headers=ALICE).json()
        self.assertEqual([m["message"] for m in inbox], ["first"])
        self.assertEqual(self.client.get("/api/inbox", headers=BOB).json(), [])

        message_id = inbox[0]["id"]
        response = self.client.patch(f"/api/inbox/{message_id}", json={"read": True}, headers=CAROL)
        self.assertEqual(response.status_code, 404)

        response = self.client.patch(f"/api/inbox/{message_id}", json={"read": True}, headers=ALICE)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["read"])
        self.assertTrue(self.db.get_message(message_id).read)

    def test_manual_updates(self):
        response = self.client.post(f"{self.base}/updates", json={"message": "Doors at 6"}, headers=BOB)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(
            response.json()["error"], "You don't have permission to post updates for this event"
        )

        response = self.client.post(f"{self.base}/updates", json={"message": ""}, headers=ALICE)
        self.assertEqual(response.status_code, 400)

        # Carol admins a host with edit rights.
        response = self.client.post(f"{self.base}/updates", json={"message": "Doors at 6"}, headers=CAROL)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["type"], "manual")
        self.assertEqual(response.json()["author_id"], "carol")

        updates = self.client.get(f"{self.base}/updates").json()
        self.assertEqual([u["message"] for u in updates], ["Doors at 6"])

    def test_calendar_lists_rsvps_and_saves(self):
        later = EventRecord(
            id=new_id(),
            title="Open Studio Night",
            slug="open-studio-night-xyz789",
            starts_at=utcnow() + timedelta(days=9),
            created_by="carol",
        )
        self.db.create_event_with_hosts(
            later, [HostRecord(event_id=later.id, entity_id=self.org.id, can_edit=True)]
        )
        self.client.post(f"{self.base}/rsvp", json={"status": "yes"}, headers=BOB)
        self.client.post(f"/api/events/{later.slug}/save", headers=BOB)

        calendar = self.client.get("/api/me/calendar", headers=BOB).json()
        self.assertEqual(len(calendar["rsvps"]), 1)
        self.assertEqual(calendar["rsvps"][0]["status"], "yes")
        self.assertEqual(calendar["rsvps"][0]["event"]["slug"], self.event.slug)
        self.assertEqual([e["slug"] for e in calendar["saved"]], [later.slug])

        self.assertEqual(self.client.get("/api/me/calendar").status_code, 401)


if __name__ == "__main__":
    unittest.main()
