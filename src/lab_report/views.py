"""
Views for read operations - the lab test matrix report.

The report is a read-only transform: join visits in range with patients
and orders, snapshot the catalogs, resolve every line item to report
columns, and add today's statistics. Nothing is written back.
"""
import logging
from datetime import date, datetime
from typing import Any, Dict, Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from lab_report.domain.catalog import DEFAULT_CATALOG, TestCatalog
from lab_report.domain.matrix import MatrixBuilder
from lab_report.domain.resolver import LineItemResolver
from lab_report.domain.statistics import aggregate_stats
from lab_report.service_layer.filters import department_filter, report_window
from lab_report.service_layer.join import load_visit_records
from lab_report.service_layer.reference_data import load_reference_data
from lab_report.service_layer.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)

UNRESOLVED_SAMPLE_SIZE = 20


class ReportGenerationError(Exception):
    """Raised when the report's data sources cannot be read."""
    pass


def get_lab_report(
    uow: AbstractUnitOfWork,
    date_from: Union[str, date, None] = None,
    date_to: Union[str, date, None] = None,
    department: Optional[str] = None,
    now: Optional[datetime] = None,
    catalog: TestCatalog = DEFAULT_CATALOG,
) -> Dict[str, Any]:
    """
    Build the lab test matrix for visits in a date range.

    Args:
        uow: Unit of work giving read access to the clinic stores
        date_from: First day of the range (date or ISO string)
        date_to: Last day of the range (date or ISO string)
        department: Department name; empty, "all" or "ทุกหน่วยงาน" means every department
        now: Invocation time, used for the default window and today's stats
        catalog: Report column catalog

    Returns:
        {"stats": {...}, "data": [row, ...]} with one row per visit

    Raises:
        ReportGenerationError: If a store cannot be read
    """
    now = now or datetime.now()
    logger.info(f"Generating lab report with params: dateFrom={date_from!r} dateTo={date_to!r} department={department!r}")

    window = report_window(date_from, date_to, now=now)
    department_name = department_filter(department)
    if department_name is not None:
        logger.info(f"Lab report department filter: {department!r} -> {department_name!r}")

    try:
        with uow:
            records = load_visit_records(uow, window, department_name)
            reference = load_reference_data(uow)
    except SQLAlchemyError as e:
        logger.exception("Failed to read report data")
        raise ReportGenerationError(f"Failed to generate lab report: {e}") from e

    builder = MatrixBuilder(LineItemResolver(reference, catalog))
    rows = [builder.build(record) for record in records]

    if builder.unresolved:
        sample = ", ".join(
            f"{descriptor!r} x{count}" for descriptor, count in builder.unresolved.most_common(UNRESOLVED_SAMPLE_SIZE)
        )
        logger.info(f"{sum(builder.unresolved.values())} line items matched no report column: {sample}")

    stats = aggregate_stats(records, reference, now=now)
    logger.info(
        f"Lab report stats - Patients: {stats.today_patients}, "
        f"Tests: {stats.today_tests}, Revenue: {stats.today_revenue}"
    )
    logger.info(f"Lab report data count: {len(rows)}")

    return {
        "stats": stats.to_dict(),
        "data": [row.to_dict() for row in rows],
    }


def get_report_columns(catalog: TestCatalog = DEFAULT_CATALOG) -> Dict[str, Any]:
    """Ordered report columns, for table headers and exports."""
    return {
        "version": catalog.version,
        "columns": list(catalog.columns),
    }
