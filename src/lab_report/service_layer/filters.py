"""Date range and department filters for the report join stage."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

import config
from lab_report.domain.model import END_OF_DAY

logger = logging.getLogger(__name__)

ALL_DEPARTMENTS_SENTINELS = frozenset({"all", "ทุกหน่วยงาน"})

DateInput = Union[date, datetime, str, None]


@dataclass(frozen=True)
class ReportWindow:
    """
    Inclusive visit date range.

    Visits store their date either as a timestamp or as a legacy
    `YYYY-MM-DD` string, so the window carries both forms and a visit is
    in range when either comparison holds.
    """
    start: datetime
    end: datetime
    start_text: str
    end_text: str

    @classmethod
    def for_days(cls, first_day: date, last_day: date) -> "ReportWindow":
        return cls(
            start=datetime.combine(first_day, time.min),
            end=datetime.combine(last_day, END_OF_DAY),
            start_text=first_day.isoformat(),
            end_text=last_day.isoformat(),
        )

    @classmethod
    def trailing(cls, now: datetime, days: int) -> "ReportWindow":
        start = now - timedelta(days=days)
        return cls(
            start=start,
            end=now,
            start_text=start.date().isoformat(),
            end_text=now.date().isoformat(),
        )


def _as_day(value: DateInput) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
    raise ValueError(f"Unsupported date value {value!r}")


def report_window(date_from: DateInput, date_to: DateInput, now: Optional[datetime] = None) -> ReportWindow:
    """
    Build the visit window for a report request.

    Both endpoints given: whole days from the start of `date_from` to the
    last millisecond of `date_to`. Otherwise, or when either endpoint cannot
    be parsed, the trailing default window ending now.
    """
    now = now or datetime.now()
    if date_from and date_to:
        try:
            return ReportWindow.for_days(_as_day(date_from), _as_day(date_to))
        except ValueError as e:
            logger.warning(f"Invalid report dates {date_from!r}..{date_to!r}, using default window: {e}")
    return ReportWindow.trailing(now, config.get_default_window_days())


def department_filter(department: Optional[str]) -> Optional[str]:
    """Department to match exactly, or None when the report spans all departments."""
    if not department or department in ALL_DEPARTMENTS_SENTINELS:
        return None
    return department.replace("_", " ")
