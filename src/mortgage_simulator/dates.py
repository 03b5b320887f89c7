# Requires Python 3.10+
# Uses native type hints: list[x], tuple[x, y], X | None (PEP 585, PEP 604)
"""
Calendar helpers for mortgage-month arithmetic.

Mortgage month 1 falls on the start date; month m falls (m - 1) calendar
months later, with the day clamped to the last valid day of that month.
"""

from __future__ import annotations

import calendar
from datetime import date

__version__ = "0.1.0"


def parse_start_date(value: str) -> date:
    """Parse "YYYY-MM-DD" or "YYYY-MM" (day defaults to 1).

    Raises:
        ValueError: If the string is not a valid year-month(-day).
    """
    parts = value.split("-")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid start date: {value!r}")
    try:
        year, month = int(parts[0]), int(parts[1])
        day = int(parts[2]) if len(parts) == 3 else 1
        return date(year, month, day)
    except ValueError as exc:
        raise ValueError(f"Invalid start date: {value!r}") from exc


def add_months(dt: date, months: int) -> date:
    """Return a date a number of months after dt, clamping the day (Jan 31 + 1 -> Feb 28/29)."""
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def calendar_date_for_month(start_date: str, month: int) -> date:
    """Calendar date of mortgage month `month` (1-indexed)."""
    return add_months(parse_start_date(start_date), month - 1)


def date_string_for_month(start_date: str | None, month: int) -> str:
    """ISO date of mortgage month `month`, or "" without a start date."""
    if not start_date:
        return ""
    return calendar_date_for_month(start_date, month).isoformat()


def calendar_year_for_month(start_date: str | None, month: int) -> int | None:
    if not start_date:
        return None
    return calendar_date_for_month(start_date, month).year


def is_first_month_of_calendar_year(start_date: str | None, month: int) -> bool:
    if not start_date:
        return False
    return calendar_date_for_month(start_date, month).month == 1
