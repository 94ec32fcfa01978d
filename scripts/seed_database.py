#!/usr/bin/env python3
"""
seed_database.py - Create the default learner and sample progress.

Validates the catalog, then seeds the SQLite progress database with one
learner who has completed Reconnaissance and is partway through the web unit.
Safe to run repeatedly: the learner is reused and existing progress is kept.

Usage:
  python scripts/seed_database.py
  python scripts/seed_database.py --db data/progress.db --catalog cyberpath/data/catalog.yaml
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from cyberpath import CyberPathError, Tracker, configure_logging, get_settings
from cyberpath.storage import SQLiteStore
from cyberpath.utils import load_catalog

logger = logging.getLogger(__name__)

DEFAULT_EMAIL = "user@cyberpath.com"

# (unit_id, completed, percent)
SAMPLE_PROGRESS = [
    ("recon", True, 100),
    ("web", False, 75),
]


def seed(db_path: Path, catalog_path: Path, username: str, email: str) -> int:
    """Seed the database and return the learner ID."""
    catalog = load_catalog(catalog_path)
    store = SQLiteStore(db_path)
    tracker = Tracker(store, catalog)
    logger.info(f"Catalog OK: {len(catalog.units)} units, {len(catalog.achievements)} achievements")

    learner = store.find_learner(username)
    if learner:
        logger.info(f"Reusing learner {learner.id} ({username})")
    else:
        learner = store.create_learner(username, email)
        logger.info(f"Created learner {learner.id} ({username})")

    for unit_id, completed, percent in SAMPLE_PROGRESS:
        if unit_id not in tracker.graph:
            logger.warning(f"Skipping sample progress for unknown unit {unit_id}")
            continue
        if store.get_unit_progress(learner.id, unit_id) is not None:
            logger.info(f"  Progress {unit_id}: already recorded, kept")
            continue
        if completed:
            unlocked = tracker.complete_unit(learner.id, unit_id, percent=percent)
            for achievement in unlocked:
                logger.info(f"  Unlocked: {achievement.title}")
        else:
            tracker.update_progress(learner.id, unit_id, percent=percent)
        logger.info(f"  Progress {unit_id}: {percent}%{' (completed)' if completed else ''}")

    return learner.id


def main():
    settings = get_settings()

    parser = argparse.ArgumentParser(
        description="Seed the CyberPath progress database.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=settings.db_path,
        help=f"Progress database (default: {settings.db_path})",
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        default=settings.catalog_path,
        help=f"Catalog YAML (default: {settings.catalog_path})",
    )
    parser.add_argument(
        "--username",
        default=settings.username,
        help=f"Learner username (default: {settings.username})",
    )
    parser.add_argument("--email", default=DEFAULT_EMAIL)

    args = parser.parse_args()
    configure_logging(settings.log_level)

    try:
        learner_id = seed(args.db, args.catalog, args.username, args.email)
    except (FileNotFoundError, CyberPathError) as e:
        logger.error(f"Seeding failed: {e}")
        sys.exit(1)

    print(f"\nSeeded {args.db}")
    print(f"  - Learner ID: {learner_id}")


if __name__ == "__main__":
    main()
