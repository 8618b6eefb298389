import datetime as dt
import unittest

from caucus_api.db import DuplicateNameError, SqlDbClient


class SqlDbClientTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL client logic.
    """

    def setUp(self):
        self.db = SqlDbClient("sqlite+pysqlite:///:memory:")

    def create_event(self, day: str, **overrides):
        values = {
            "date": dt.date.fromisoformat(day),
            "time": "6:00 PM",
            "topic": f"Meeting {day}",
            "location": "Concord",
        }
        values.update(overrides)
        return self.db.create_event(values)

    def test_event_crud(self):
        event = self.create_event("2025-03-12", presenter="Jane")
        fetched = self.db.get_event(event.id)

        self.assertIsNotNone(fetched)
        self.assertEqual(fetched.date, dt.date(2025, 3, 12))
        self.assertEqual(fetched.presenter, "Jane")
        self.assertTrue(fetched.is_visible)

        updated = self.db.update_event(event.id, {"topic": "Renamed", "id": "ignored"})
        self.assertEqual(updated.id, event.id)
        self.assertEqual(updated.topic, "Renamed")
        self.assertGreaterEqual(updated.updated_at, event.updated_at)

        deleted = self.db.delete_event(event.id)
        self.assertEqual(deleted.id, event.id)
        self.assertIsNone(self.db.get_event(event.id))
        self.assertIsNone(self.db.delete_event(event.id))
        self.assertIsNone(self.db.update_event(event.id, {"topic": "x"}))

    def test_event_listing(self):
        self.create_event("2025-01-01")
        self.create_event("2025-05-01")
        self.create_event("2025-03-01", is_visible=False)

        events, total = self.db.list_events()
        self.assertEqual([e.date.month for e in events], [5, 1])
        self.assertEqual(total, 2)

        events, total = self.db.list_events(include_hidden=True, limit=1)
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].date, dt.date(2025, 5, 1))
        self.assertEqual(total, 3)

    def test_resources_filtering(self):
        self.db.create_resource({"title": "B", "url": "https://b", "order": 2})
        self.db.create_resource(
            {"title": "A", "url": "https://a", "order": 1, "featured": True}
        )
        self.db.create_resource({"title": "C", "url": "https://c", "is_visible": False})

        resources, total = self.db.list_resources()
        self.assertEqual([r.title for r in resources], ["A", "B"])
        self.assertEqual(total, 2)

        featured, total = self.db.list_resources(featured_only=True)
        self.assertEqual([r.title for r in featured], ["A"])
        self.assertEqual(total, 1)

    def test_tech_item_names_are_unique(self):
        first = self.db.create_tech_item({"name": "OpenAI", "url": "https://openai.com"})
        other = self.db.create_tech_item({"name": "Anthropic", "url": "https://anthropic.com"})

        with self.assertRaises(DuplicateNameError):
            self.db.create_tech_item({"name": "OpenAI", "url": "https://other"})
        with self.assertRaises(DuplicateNameError):
            self.db.update_tech_item(other.id, {"name": "OpenAI"})

        self.assertEqual(self.db.get_tech_item(first.id).name, "OpenAI")
        self.assertEqual(len(self.db.list_tech_items()), 2)

    def test_tech_items_order_then_name(self):
        self.db.create_tech_item({"name": "Zeta", "url": "https://z", "order": 1})
        self.db.create_tech_item({"name": "Alpha", "url": "https://a", "order": 1})
        self.db.create_tech_item({"name": "Hidden", "url": "https://h", "is_visible": False})

        self.assertEqual([i.name for i in self.db.list_tech_items()], ["Alpha", "Zeta"])
        self.assertEqual(len(self.db.list_tech_items(include_hidden=True)), 3)

    def test_contacts(self):
        first = self.db.create_contact("Pat", "pat@example.org", "Hello there, caucus!")
        second = self.db.create_contact("Sam", "sam@example.org", "Another message here")

        self.assertEqual(self.db.count_unread_contacts(), 2)
        self.db.set_contact_read(first.id, True)
        self.assertEqual(self.db.count_unread_contacts(), 1)

        unread, total = self.db.list_contacts(unread_only=True)
        self.assertEqual([c.id for c in unread], [second.id])
        self.assertEqual(total, 1)

        page, total = self.db.list_contacts(limit=1, skip=1)
        self.assertEqual(len(page), 1)
        self.assertEqual(total, 2)

        self.assertEqual(self.db.delete_contact(first.id).id, first.id)
        self.assertIsNone(self.db.set_contact_read(first.id, False))

    def test_clear_content_keeps_contacts(self):
        self.create_event("2025-01-01")
        self.db.create_resource({"title": "A", "url": "https://a"})
        self.db.create_tech_item({"name": "A", "url": "https://a"})
        self.db.create_contact("Pat", "pat@example.org", "Hello there, caucus!")

        self.db.clear_content()

        self.assertEqual(self.db.list_events(include_hidden=True)[1], 0)
        self.assertEqual(self.db.list_resources(include_hidden=True)[1], 0)
        self.assertEqual(self.db.list_tech_items(include_hidden=True), [])
        self.assertEqual(self.db.list_contacts()[1], 1)


if __name__ == "__main__":
    unittest.main()
