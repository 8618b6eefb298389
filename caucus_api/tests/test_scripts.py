import importlib.util
import unittest
from pathlib import Path

from caucus_api.db import InMemoryDbClient

ROOT = Path(__file__).resolve().parents[2]


def load_script(name: str):
    spec = importlib.util.spec_from_file_location(name, ROOT / "scripts" / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class SeedDatabaseTests(unittest.TestCase):
    def test_seed_replaces_content_and_keeps_contacts(self):
        seed_database = load_script("seed_database")
        db = InMemoryDbClient()
        db.create_event(
            {"date": "2020-01-01", "time": "1:00 PM", "topic": "Old", "location": "X"}
        )
        db.create_contact("Pat", "pat@example.org", "Hello there, caucus!")

        counts = seed_database.seed(
            db, ROOT / "data" / "seed.json", ROOT / "data" / "tech_list.txt"
        )

        self.assertEqual(counts["events"], len(db.events))
        self.assertEqual(counts["resources"], len(db.resources))
        self.assertEqual(counts["tech_items"], len(db.tech_items))
        self.assertNotIn("Old", [e.topic for e in db.events.values()])
        self.assertEqual(len(db.contacts), 1)

        items = db.list_tech_items()
        self.assertEqual([i.order for i in items], list(range(len(items))))
        self.assertTrue(all(i.url.startswith("https://") for i in items))


class CopyDatabaseTests(unittest.TestCase):
    def test_copies_hidden_content(self):
        copy_database = load_script("copy_database")
        source = InMemoryDbClient()
        target = InMemoryDbClient()
        source.create_resource({"title": "Hidden", "url": "https://h", "is_visible": False})
        source.create_tech_item({"name": "AI", "url": "https://ai"})
        target.create_tech_item({"name": "Stale", "url": "https://stale"})

        counts = copy_database.copy_content(source, target)

        self.assertEqual(counts, {"events": 0, "resources": 1, "tech_items": 1})
        self.assertEqual([i.name for i in target.list_tech_items()], ["AI"])
        resources, total = target.list_resources(include_hidden=True)
        self.assertEqual(total, 1)
        self.assertFalse(resources[0].is_visible)


if __name__ == "__main__":
    unittest.main()
