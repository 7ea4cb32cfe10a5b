"""Local calendar-day keys and date-window helpers."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, datetime, timedelta

# Upper bound for backwards walks over malformed data (five years incl. leap day).
MAX_LOOKBACK_DAYS = 5 * 365 + 2


def date_key(d: date | datetime) -> str:
    """Format a date as YYYY-MM-DD from its own calendar fields.

    Aware datetimes are never converted to UTC first; the key is the day the
    caller sees on their wall clock.
    """
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_date_key(key: str) -> date:
    """Parse a date key, tolerating a trailing time component."""
    return date.fromisoformat(key.split("T")[0][:10])


def in_range(key: str, start: str, end: str | None = None) -> bool:
    """Return True when key falls within [start, end].

    Fixed-width keys compare correctly as strings.
    """
    day = key.split("T")[0]
    if day < start.split("T")[0]:
        return False
    return not (end and day > end.split("T")[0])


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from start to end inclusive (empty if start > end)."""
    cursor = start
    while cursor <= end:
        yield cursor
        cursor += timedelta(days=1)


def day_count(start: date, end: date) -> int:
    """Number of days in [start, end], 0 for an empty window."""
    return max(0, (end - start).days + 1)


def week_start(d: date) -> date:
    """Return the Monday of the week containing d."""
    return d - timedelta(days=d.weekday())


def month_start(d: date) -> date:
    return d.replace(day=1)


def year_start(d: date) -> date:
    return d.replace(month=1, day=1)


def iso_week(d: date) -> tuple[int, int]:
    """Return (iso_year, iso_week_number) for d."""
    iso = d.isocalendar()
    return iso.year, iso.week
