"""
Load clinic documents into the report database.

Usage:
    lab-report-seed clinic_export.json

The file holds one list per collection:
    {"patients": [...], "visits": [...], "orders": [...],
     "labtests": [...], "labgroups": [...]}
Visit and order dates may be ISO timestamps or plain YYYY-MM-DD strings;
plain dates are kept as legacy string dates.
"""

import argparse
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import config
from lab_report.adapters import orm
from lab_report.service_layer.unit_of_work import AbstractUnitOfWork, SqlAlchemyUnitOfWork

logger = logging.getLogger(__name__)

TIMESTAMP_FIELDS = ("visitDate", "orderDate", "createdAt", "updatedAt")


def _restore_timestamps(document: Dict[str, Any]) -> Dict[str, Any]:
    # JSON has no timestamp type; full ISO timestamps become naive local datetimes
    restored = dict(document)
    for key in TIMESTAMP_FIELDS:
        value = restored.get(key)
        if isinstance(value, str) and "T" in value:
            try:
                parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                logger.warning(f"Keeping unparseable {key} {value!r} as text")
                continue
            if parsed.tzinfo is not None:
                parsed = parsed.astimezone().replace(tzinfo=None)
            restored[key] = parsed
    return restored


def seed(uow: AbstractUnitOfWork, collections: Dict[str, list]) -> Dict[str, int]:
    """Insert every document of every known collection; returns counts."""
    counts = {}
    with uow:
        loaders = {
            "labtests": uow.catalog.add_test,
            "labgroups": uow.catalog.add_package,
            "patients": uow.patients.add,
            "visits": uow.visits.add,
            "orders": uow.orders.add,
        }
        for collection, add in loaders.items():
            documents = collections.get(collection) or []
            for document in documents:
                add(_restore_timestamps(document))
            counts[collection] = len(documents)
            logger.info(f"Loaded {len(documents)} {collection}")
        uow.commit()
    return counts


def main():
    parser = argparse.ArgumentParser(description="Load clinic documents for the lab report")
    parser.add_argument("path", type=Path, help="JSON file with one list per collection")
    parser.add_argument("--create-tables", action="store_true", help="Create report tables first")
    args = parser.parse_args()

    logging.basicConfig(level=config.get_log_level())

    engine = create_engine(config.get_postgres_uri())
    if args.create_tables:
        orm.create_tables(engine)

    with open(args.path, encoding="utf-8") as f:
        collections = json.load(f)

    counts = seed(SqlAlchemyUnitOfWork(session_factory=sessionmaker(bind=engine)), collections)
    logger.info(f"Seeding finished: {counts}")


if __name__ == "__main__":
    main()
