import logging
from sqlalchemy import (
    Table,
    MetaData,
    Column,
    Float,
    String,
    DateTime,
    JSON,
    Index,
)

logger = logging.getLogger(__name__)

metadata = MetaData()

# Each collection keeps the raw clinic document in `document`; columns next
# to it are copies of the fields the report queries on.

patients = Table(
    "patients",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("document", JSON, nullable=False),
)

visits = Table(
    "visits",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("visit_number", String(64)),
    Column("patient_id", String(64)),
    Column("department", String(255)),
    Column("visit_date", DateTime, nullable=True),
    # Legacy records stored the date as a plain YYYY-MM-DD string
    Column("visit_date_text", String(64), nullable=True),
    Column("document", JSON, nullable=False),
    Index("ix_visits_visit_date", "visit_date"),
    Index("ix_visits_visit_date_text", "visit_date_text"),
)

orders = Table(
    "orders",
    metadata,
    Column("id", String(64), primary_key=True),
    # Old orders link by visit number, newer ones by visit id
    Column("visit_id", String(64), nullable=True),
    Column("visit_number", String(64), nullable=True),
    Column("status", String(32)),
    Column("total_amount", Float),
    Column("order_date", DateTime, nullable=True),
    Column("document", JSON, nullable=False),
    Index("ix_orders_visit_id", "visit_id"),
    Index("ix_orders_visit_number", "visit_number"),
)

lab_tests = Table(
    "lab_tests",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("document", JSON, nullable=False),
)

lab_groups = Table(
    "lab_groups",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("document", JSON, nullable=False),
)


def create_tables(engine):
    logger.info("Creating report tables")
    metadata.create_all(engine)
