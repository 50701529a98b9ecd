"""Consecutive-week streak detection over check-in timestamps."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Iterable

# Monday of ISO week 1 in year 1; weeks are counted from here so runs
# continue across year boundaries.
_EPOCH_MONDAY = date.fromisocalendar(1, 1, 1)


def week_index(moment: datetime | date) -> int:
    """Continuous Monday-based ISO week ordinal for a timestamp.

    Naive datetimes are interpreted as UTC; aware ones are converted to UTC
    before the calendar day is taken.
    """

    if isinstance(moment, datetime):
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        day = moment.astimezone(timezone.utc).date()
    else:
        day = moment
    iso_year, iso_week, _ = day.isocalendar()
    monday = date.fromisocalendar(iso_year, iso_week, 1)
    return (monday - _EPOCH_MONDAY).days // 7


def longest_consecutive_run(weeks: Iterable[int]) -> int:
    """Length of the longest run of strictly consecutive integers."""

    ordered = sorted(set(weeks))
    if not ordered:
        return 0

    longest = current = 1
    for previous, following in zip(ordered, ordered[1:]):
        if following == previous + 1:
            current += 1
            longest = max(longest, current)
        else:
            current = 1
    return longest


def longest_weekly_streak(timestamps: Iterable[datetime | date]) -> int:
    return longest_consecutive_run(week_index(moment) for moment in timestamps)


def has_streak(timestamps: Iterable[datetime | date], weeks: int) -> bool:
    """True when the timestamps cover at least ``weeks`` consecutive ISO weeks."""

    if weeks <= 0:
        return True
    return longest_weekly_streak(timestamps) >= weeks


__all__ = ["has_streak", "longest_consecutive_run", "longest_weekly_streak", "week_index"]
