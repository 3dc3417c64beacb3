"""
Date resolution: Jakarta timestamps and report ranges
"""

import re
from datetime import datetime, timezone
from typing import List, Optional

from models.exceptions import (
    InvalidDateError,
    InvalidRangeError,
    OUTCOME_RANGE_USAGE,
    SUMMARY_RANGE_USAGE
)
from models.schemas import ReportQuerySpec
from utils.helpers import JAKARTA_OFFSET, parse_month_name, to_jakarta, utc_now


MIN_YEAR = 2000
MAX_YEAR = 2100
MAX_RANGE_MONTHS = 24

_LOCAL_TIMESTAMP = re.compile(r'^(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2}) (?P<hour>\d{1,2}):(?P<minute>\d{2})$')
_YEAR_MONTH = re.compile(r'^(?P<year>\d{4})-(?P<month>\d{1,2})$')
_YEAR = re.compile(r'^(?P<year>\d{4})$')
_MONTH_YEAR = re.compile(r'^(?P<month>[^\W\d_]+)\s+(?P<year>\d{4})$')
_MONTH_RANGE = re.compile(
    r'^(?P<start_month>[^\W\d_]+)\s+(?P<start_year>\d{4})\s*[-–]\s*'
    r'(?P<end_month>[^\W\d_]+)\s+(?P<end_year>\d{4})$'
)


def parse_jakarta_local(text: str) -> datetime:
    """Convert "YYYY-MM-DD HH:MM" in Jakarta time (UTC+7) to a UTC instant"""
    match = _LOCAL_TIMESTAMP.match(text.strip())
    if not match:
        raise InvalidDateError(f"Invalid date '{text}', expected YYYY-MM-DD HH:MM")

    try:
        naive = datetime(
            int(match['year']), int(match['month']), int(match['day']),
            int(match['hour']), int(match['minute'])
        )
    except ValueError as e:
        raise InvalidDateError(f"Invalid date '{text}': {e}") from e

    return (naive - JAKARTA_OFFSET).replace(tzinfo=timezone.utc)


def current_jakarta_month(now: Optional[datetime] = None) -> ReportQuerySpec:
    """Month containing `now` in Jakarta time"""
    local = to_jakarta(now or utc_now())
    return ReportQuerySpec(year=local.year, month=local.month)


def _valid_year(year: int) -> bool:
    return MIN_YEAR <= year <= MAX_YEAR


def _month_of(name: str, year: str) -> Optional[ReportQuerySpec]:
    month = parse_month_name(name)
    if month and _valid_year(int(year)):
        return ReportQuerySpec(year=int(year), month=month)
    return None


def _year_month(text: str) -> Optional[ReportQuerySpec]:
    match = _YEAR_MONTH.match(text)
    if not match:
        return None
    year, month = int(match['year']), int(match['month'])
    if _valid_year(year) and 1 <= month <= 12:
        return ReportQuerySpec(year=year, month=month)
    return None


def _full_year(text: str) -> Optional[ReportQuerySpec]:
    match = _YEAR.match(text)
    if match and _valid_year(int(match['year'])):
        return ReportQuerySpec(year=int(match['year']))
    return None


def month_sequence(start: ReportQuerySpec, end: ReportQuerySpec) -> List[ReportQuerySpec]:
    """Consecutive months from start to end inclusive, at most MAX_RANGE_MONTHS"""
    months = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month) and len(months) < MAX_RANGE_MONTHS:
        months.append(ReportQuerySpec(year=year, month=month))
        month += 1
        if month > 12:
            month = 1
            year += 1
    return months


def parse_outcome_range(text: Optional[str], now: Optional[datetime] = None) -> ReportQuerySpec:
    """Parse the /outcome argument into a single month or a full year"""
    text = (text or "").strip()
    if not text or text.lower() == "today":
        return current_jakarta_month(now)

    spec = _year_month(text) or _full_year(text)
    if spec:
        return spec

    match = _MONTH_YEAR.match(text)
    if match:
        spec = _month_of(match['month'], match['year'])
        if spec:
            return spec

    raise InvalidRangeError(
        f"Invalid date format. Use: {OUTCOME_RANGE_USAGE}",
        usage=OUTCOME_RANGE_USAGE
    )


def parse_summary_range(text: Optional[str], now: Optional[datetime] = None) -> List[ReportQuerySpec]:
    """Parse the /summary argument into the list of months to summarize"""
    text = (text or "").strip()
    if not text or text.lower() == "today":
        return [current_jakarta_month(now)]

    match = _MONTH_RANGE.match(text)
    if match:
        start = _month_of(match['start_month'], match['start_year'])
        end = _month_of(match['end_month'], match['end_year'])
        if start and end:
            if (start.year, start.month) > (end.year, end.month):
                raise InvalidRangeError(f"Range start {start.label} is after range end {end.label}")
            return month_sequence(start, end)

    match = _MONTH_YEAR.match(text)
    if match:
        spec = _month_of(match['month'], match['year'])
        if spec:
            return [spec]

    spec = _year_month(text)
    if spec:
        return [spec]

    spec = _full_year(text)
    if spec:
        return [ReportQuerySpec(year=spec.year, month=month) for month in range(1, 13)]

    raise InvalidRangeError(f"Invalid format. Use: {SUMMARY_RANGE_USAGE}")
