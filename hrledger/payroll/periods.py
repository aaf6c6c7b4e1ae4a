"""
Pay-period helpers: parsing, inclusive day counts and display labels.
"""
import calendar
from datetime import date, datetime
from typing import Optional, Union

from hrledger.core.errors import InvalidPeriodError

DateLike = Union[date, datetime, str]

def parse_date(value: Optional[DateLike]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value)).date()
    except ValueError:
        raise InvalidPeriodError("Invalid date format") from None

def parse_period(period_start: Optional[DateLike], period_end: Optional[DateLike]):
    if not period_start or not period_end:
        raise InvalidPeriodError("period_start and period_end are required")
    start = parse_date(period_start)
    end = parse_date(period_end)
    if start > end:
        raise InvalidPeriodError("period_start must be before period_end")
    return start, end

def days_in_period(start: date, end: date) -> int:
    """Inclusive of both ends."""
    return abs((end - start).days) + 1

def days_in_month(d: date) -> int:
    return calendar.monthrange(d.year, d.month)[1]

def proration_factor(start: date, end: date) -> float:
    """Share of a monthly salary earned over the period, using the end month's length."""
    return days_in_period(start, end) / days_in_month(end)

def _short(d: date) -> str:
    return f"{calendar.month_abbr[d.month]} {d.day}"

def format_period_label(start: DateLike, end: DateLike) -> str:
    """'Jan 1 – 31, 2025' within one month, 'Jan 1 – Feb 28, 2025' across months."""
    start, end = parse_date(start), parse_date(end)
    if (start.year, start.month) == (end.year, end.month):
        return f"{_short(start)} – {end.day}, {end.year}"
    return f"{_short(start)} – {_short(end)}, {end.year}"
