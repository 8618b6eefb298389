"""
Reset events, resources and the tech list to the bundled seed data.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from caucus_api.config import get_settings
from caucus_api.db import DbClient, SqlDbClient
from caucus_api.dependencies import build_db_client
from caucus_api.schemas import EventCreate, ResourceCreate, TechItemCreate

logger = logging.getLogger(__name__)


def read_tech_list(path: Path) -> list[TechItemCreate]:
    """Parse ``name|url`` lines; list position becomes the display order."""
    items = []
    for line in path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        name, _, url = line.partition("|")
        items.append(
            TechItemCreate(name=name.strip(), url=url.strip(), order=len(items))
        )
    return items


def seed(db: DbClient, seed_file: Path, tech_list: Path) -> dict[str, int]:
    data = json.loads(seed_file.read_text(encoding="utf-8"))
    events = [EventCreate.model_validate(item) for item in data.get("events", [])]
    resources = [ResourceCreate.model_validate(item) for item in data.get("resources", [])]
    tech_items = read_tech_list(tech_list)

    db.clear_content()
    logger.info("Cleared existing events, resources and tech items")

    for item in tech_items:
        db.create_tech_item(item.model_dump())
    for event in events:
        db.create_event(event.model_dump())
    for resource in resources:
        db.create_resource(resource.model_dump())

    return {
        "tech_items": len(tech_items),
        "events": len(events),
        "resources": len(resources),
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the caucus database")
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="SQLAlchemy URL (defaults to DATABASE_URL)",
    )
    parser.add_argument(
        "--seed-file",
        type=Path,
        default=ROOT / "data" / "seed.json",
        help="JSON file with events and resources",
    )
    parser.add_argument(
        "--tech-list",
        type=Path,
        default=ROOT / "data" / "tech_list.txt",
        help="Text file with one name|url per line",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    if args.database_url:
        db = SqlDbClient(args.database_url)
    else:
        settings = get_settings()
        if not settings.database_url:
            logger.error("DATABASE_URL is not set; pass --database-url")
            return 1
        db = build_db_client(settings)

    counts = seed(db, args.seed_file, args.tech_list)
    for name, count in counts.items():
        logger.info("Seeded %d %s", count, name.replace("_", " "))
    logger.info("Database seeding completed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
