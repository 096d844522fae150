"""
Time helpers for elapsed-day arithmetic.

All instants handled by the scheduler are timezone-aware UTC datetimes.
Naive datetimes are interpreted as UTC.
"""

from __future__ import annotations
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Optional


SECONDS_PER_DAY = 86400.0


def ensure_utc(instant: datetime) -> datetime:
    """Attach UTC to a naive datetime, convert an aware one to UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def calc_elapsed_days(last_review: Optional[datetime], now: datetime) -> int:
    """
    Whole days between the last review and now.

    The result is floored and never negative: a last review slightly in the
    future (stale clock) counts as 0 days.

    Args:
        last_review: Previous review instant, or None for never-reviewed cards
        now: Reference instant

    Returns:
        Non-negative whole number of days
    """
    if last_review is None:
        return 0

    delta = ensure_utc(now) - ensure_utc(last_review)
    return max(0, math.floor(delta.total_seconds() / SECONDS_PER_DAY))


def add_days(instant: datetime, days: int) -> datetime:
    return instant + timedelta(days=days)


def parse_instant(value: Any) -> datetime:
    """
    Turn a datetime or an ISO-8601 string into an aware UTC datetime.

    Raises:
        TypeError: value is neither a datetime nor a string
        ValueError: string is not a valid ISO-8601 instant
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str):
        raise TypeError(f"must be a datetime or string, got {type(value).__name__}")

    text = value.strip()
    # Zulu suffix, either case
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def is_valid_date(value: Any) -> bool:
    """True when value is a datetime or a parseable ISO-8601 string."""
    try:
        parse_instant(value)
    except (TypeError, ValueError):
        return False
    return True
