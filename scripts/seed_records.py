#!/usr/bin/env python3
"""Seed a database with sample catalog records.

Usage:
    python scripts/seed_records.py [--db-url URL]

This script:
1. Initializes the database schema
2. Inserts sample records through the record store
3. Prints the stored ids and versions
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Add src to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from reelshelf.db.session import get_engine, get_session_factory, init_db  # noqa: E402
from reelshelf.models.domain import RecordEntity  # noqa: E402
from reelshelf.store import SqlRecordStore  # noqa: E402

DEFAULT_DB_URL = f"sqlite:///{PROJECT_ROOT / 'demo.db'}"

SAMPLE_RECORDS = [
    RecordEntity(title="Spirited Away", release_year=2001, duration_minutes=125, tags=["fantasy", "adventure"]),
    RecordEntity(title="Akira", release_year=1988, duration_minutes=124, tags=["sci-fi", "action"]),
    RecordEntity(title="Perfect Blue", release_year=1997, duration_minutes=81, tags=["thriller", "drama"]),
    RecordEntity(title="Your Name", release_year=2016, duration_minutes=106, tags=["romance", "fantasy", "drama"]),
    RecordEntity(title="Ghost in the Shell", release_year=1995, duration_minutes=83, tags=["sci-fi", "action"]),
    RecordEntity(title="Grave of the Fireflies", release_year=1988, duration_minutes=89, tags=["drama", "war"]),
]


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed sample catalog records")
    parser.add_argument("--db-url", default=DEFAULT_DB_URL, help="Database URL")
    args = parser.parse_args()

    engine = get_engine(args.db_url)
    init_db(engine)
    store = SqlRecordStore(get_session_factory(engine))

    for sample in SAMPLE_RECORDS:
        record = store.insert(sample)
        print(f"  #{record.id} {record.title} (version {record.version})")

    print(f"Seeded {len(SAMPLE_RECORDS)} records into {args.db_url}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
