"""UTC datetime and loose date utilities."""

from __future__ import annotations

from datetime import date, datetime, timezone
from math import ceil

from dateutil import parser as date_parser

from hrzn_bookings.errors import ValidationError

# Two leap years, so "Feb 29" parses without an explicit year
_PROBE_DEFAULTS = (datetime(2000, 1, 1), datetime(2004, 1, 1))


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    This function should be used instead of datetime.now() or datetime.utcnow()
    to ensure all timestamps are timezone-aware and stored in UTC.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)


def resolve_loose_date(text: str, today: date | None = None) -> date:
    """
    Resolve a date string that may be missing its year.

    Text carrying a year ("2025-12-10", "Dec 10 2025") is returned as that date.
    Text without one ("Dec 10") resolves to the next occurrence of that month
    and day: the current year, unless that date is already past or does not
    exist, in which case the following year.

    Args:
        text: Date text from payment metadata
        today: Reference date (defaults to the current UTC date)

    Returns:
        The resolved calendar date, never before ``today`` for year-less text

    Raises:
        ValidationError: If the text cannot be parsed or resolved

    Example:
        >>> resolve_loose_date("Dec 10", today=date(2025, 12, 11))
        datetime.date(2026, 12, 10)
    """
    if not text or not text.strip():
        raise ValidationError("Missing date")

    today = today or utc_now().date()

    try:
        first, second = (
            date_parser.parse(text, default=default) for default in _PROBE_DEFAULTS
        )
    except (ValueError, OverflowError) as e:
        raise ValidationError(f"Unparseable date: {text!r}") from e

    # Same year under both defaults means the text named the year itself
    if first.year == second.year:
        return first.date()

    for year in (today.year, today.year + 1):
        try:
            candidate = date(year, first.month, first.day)
        except ValueError:
            continue
        if candidate >= today:
            return candidate

    raise ValidationError(f"Cannot resolve date: {text!r}")


def nights_between(check_in: date | datetime, check_out: date | datetime) -> int:
    """Whole nights between two dates, rounding partial days up."""
    return ceil((check_out - check_in).total_seconds() / 86400)


def start_of_day_utc(day: date) -> datetime:
    """Midnight UTC on ``day``."""
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
