"""Calendar-day helpers shared by the habit analytics."""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Iterable

_ISO_DAY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def normalize_to_day(instant: date | datetime) -> date:
    """Drop the time-of-day component, keeping the instant's own calendar fields."""

    if isinstance(instant, datetime):
        return instant.date()
    return instant


def to_iso(day: date | datetime) -> str:
    """Format as ``YYYY-MM-DD`` without any UTC conversion."""

    day = normalize_to_day(day)
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def add_days(day: date, n: int) -> date:
    return normalize_to_day(day) + timedelta(days=n)


def days_between(a: date, b: date) -> int:
    """Return the signed number of whole days from ``a`` to ``b``."""

    return (normalize_to_day(b) - normalize_to_day(a)).days


def parse_iso_day(value: object) -> date | None:
    """Parse a strict ``YYYY-MM-DD`` string, returning None when malformed."""

    if not isinstance(value, str) or not _ISO_DAY.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def parse_history(history: Iterable[object]) -> set[date]:
    """Parse completion strings into calendar days, skipping malformed entries."""

    days: set[date] = set()
    for raw in history or ():
        parsed = parse_iso_day(raw)
        if parsed is not None:
            days.add(parsed)
    return days


__all__ = [
    "add_days",
    "days_between",
    "normalize_to_day",
    "parse_history",
    "parse_iso_day",
    "to_iso",
]
