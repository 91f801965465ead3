"""Timezone-aware datetime utilities.

This module provides consistent timezone handling across the engine.
All datetime values use UTC for storage and comparison; streaks are
counted in UTC calendar days.
"""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Aware current time in UTC; default event and unlock timestamp."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Normalise to UTC. Naive values from event payloads are taken as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def activity_day(dt: datetime) -> date:
    """Calendar day (UTC) an event timestamp belongs to."""
    return ensure_utc(dt).date()


def days_between(earlier: date, later: date) -> int:
    """Number of calendar days from earlier to later (negative if reversed)."""
    return (later - earlier).days
