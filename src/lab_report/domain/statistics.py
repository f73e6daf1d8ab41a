"""Statistics aggregator - today's patients, tests and revenue."""

import logging
from datetime import datetime, time
from typing import Iterable, Optional

from lab_report.domain.model import (
    END_OF_DAY,
    AggregateStats,
    EmbeddedPackageItem,
    LineItem,
    ReferenceData,
    ReferencedPackageItem,
    VisitRecord,
)

logger = logging.getLogger(__name__)


def line_item_test_count(item: LineItem, reference: ReferenceData) -> int:
    """
    Number of tests a line item counts for.

    Packages count one per member: embedded members first, then the
    members of the referenced definition, else 1. Anything else counts 1
    whether or not it resolved to a report column.
    """
    if isinstance(item, EmbeddedPackageItem):
        return len(item.members) or 1
    if isinstance(item, ReferencedPackageItem):
        package = reference.find_package(item.reference)
        if package is not None and package.member_count:
            return package.member_count
    return 1


def is_today(moment: Optional[datetime], now: datetime) -> bool:
    if moment is None:
        return False
    start = datetime.combine(now.date(), time.min)
    end = datetime.combine(now.date(), END_OF_DAY)
    return start <= moment <= end


def aggregate_stats(
    records: Iterable[VisitRecord],
    reference: ReferenceData,
    now: Optional[datetime] = None,
) -> AggregateStats:
    """
    Today's figures from the joined report data.

    Only visits dated today (the calendar day of `now`) count, whatever
    range the report itself covers. Revenue is each order's stored total as
    is; cancelled orders and orders reached through both linkage schemes
    are not filtered out.
    """
    now = now or datetime.now()
    patients = 0
    tests = 0
    revenue = 0.0

    for record in records:
        if not is_today(record.visit.occurred_at, now):
            continue
        patients += 1
        for order in record.orders:
            revenue += order.total_amount
            tests += sum(line_item_test_count(item, reference) for item in order.line_items)

    return AggregateStats(today_patients=patients, today_tests=tests, today_revenue=revenue, growth=0.0)
