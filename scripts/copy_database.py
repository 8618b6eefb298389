"""
Copy events, resources and the tech list from one database to another.

The target's existing content is replaced; contact submissions are not copied.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from caucus_api.db import DbClient, SqlDbClient

logger = logging.getLogger(__name__)


def _values(record) -> dict:
    values = dataclasses.asdict(record)
    values.pop("id", None)
    return values


def copy_content(source: DbClient, target: DbClient) -> dict[str, int]:
    events, _ = source.list_events(include_hidden=True)
    resources, _ = source.list_resources(include_hidden=True)
    tech_items = source.list_tech_items(include_hidden=True)
    logger.info(
        "Source has %d events, %d resources, %d tech items",
        len(events),
        len(resources),
        len(tech_items),
    )

    target.clear_content()
    for event in events:
        target.create_event(_values(event))
    for resource in resources:
        target.create_resource(_values(resource))
    for item in tech_items:
        target.create_tech_item(_values(item))

    return {
        "events": len(events),
        "resources": len(resources),
        "tech_items": len(tech_items),
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="Copy site content between databases")
    parser.add_argument("--source", required=True, help="Source SQLAlchemy URL")
    parser.add_argument("--target", required=True, help="Target SQLAlchemy URL")
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Do not ask before replacing the target's content",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    if args.source == args.target:
        logger.error("Source and target must be different databases")
        return 1
    if not args.yes:
        answer = input("This replaces all events, resources and tech items in the target. Continue? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            logger.info("Aborted")
            return 1

    counts = copy_content(SqlDbClient(args.source), SqlDbClient(args.target))
    print(
        f"Copied {counts['events']} events, {counts['resources']} resources, "
        f"{counts['tech_items']} tech items"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
