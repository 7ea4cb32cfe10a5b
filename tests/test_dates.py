"""Tests for cadence.core.dates."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from cadence.core.dates import (
    MAX_LOOKBACK_DAYS,
    date_key,
    day_count,
    in_range,
    iso_week,
    iter_days,
    month_start,
    parse_date_key,
    week_start,
    year_start,
)

# ---------------------------------------------------------------------------
# date_key / parse_date_key
# ---------------------------------------------------------------------------


def test_date_key_zero_pads() -> None:
    assert date_key(date(2024, 3, 5)) == "2024-03-05"


def test_date_key_uses_wall_clock_fields_of_aware_datetime() -> None:
    # 23:30 at UTC+2 is still the 1st locally, although it is the 1st 21:30 UTC.
    late = datetime(2024, 6, 1, 23, 30, tzinfo=timezone(timedelta(hours=2)))
    assert date_key(late) == "2024-06-01"
    early = datetime(2024, 6, 1, 0, 30, tzinfo=timezone(timedelta(hours=5)))
    assert date_key(early) == "2024-06-01"
    assert date_key(early.astimezone(UTC)) == "2024-05-31"


def test_parse_date_key_strips_time_suffix() -> None:
    assert parse_date_key("2024-02-29T10:00:00Z") == date(2024, 2, 29)


def test_parse_date_key_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        parse_date_key("yesterday")


# ---------------------------------------------------------------------------
# in_range
# ---------------------------------------------------------------------------


class TestInRange:
    def test_inclusive_bounds(self) -> None:
        assert in_range("2024-01-01", "2024-01-01", "2024-01-31")
        assert in_range("2024-01-31", "2024-01-01", "2024-01-31")

    def test_before_start(self) -> None:
        assert not in_range("2023-12-31", "2024-01-01")

    def test_after_end(self) -> None:
        assert not in_range("2024-02-01", "2024-01-01", "2024-01-31")

    def test_open_ended(self) -> None:
        assert in_range("2099-12-31", "2024-01-01", None)

    def test_time_suffixes_are_truncated(self) -> None:
        assert in_range("2024-01-31T23:59:59", "2024-01-01T08:00:00", "2024-01-31T00:00:00")


# ---------------------------------------------------------------------------
# Iteration and period starts
# ---------------------------------------------------------------------------


def test_iter_days_inclusive() -> None:
    days = list(iter_days(date(2024, 2, 27), date(2024, 3, 1)))
    assert days == [date(2024, 2, 27), date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]


def test_iter_days_empty_when_reversed() -> None:
    assert list(iter_days(date(2024, 3, 2), date(2024, 3, 1))) == []


def test_day_count() -> None:
    assert day_count(date(2024, 3, 1), date(2024, 3, 1)) == 1
    assert day_count(date(2024, 3, 2), date(2024, 3, 1)) == 0


def test_week_start_is_monday() -> None:
    # 2024-03-10 is a Sunday.
    assert week_start(date(2024, 3, 10)) == date(2024, 3, 4)
    assert week_start(date(2024, 3, 4)) == date(2024, 3, 4)


def test_month_and_year_start() -> None:
    assert month_start(date(2024, 3, 10)) == date(2024, 3, 1)
    assert year_start(date(2024, 3, 10)) == date(2024, 1, 1)


def test_iso_week_crosses_year() -> None:
    assert iso_week(date(2024, 12, 30)) == (2025, 1)


def test_lookback_covers_five_years() -> None:
    assert MAX_LOOKBACK_DAYS >= 5 * 365
