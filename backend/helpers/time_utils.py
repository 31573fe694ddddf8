"""
Time helpers shared by the moderation and library services.

All timestamps are handled in UTC. SQLite returns naive datetimes, so values
read back from the database go through ``ensure_utc`` before comparison.
"""

from datetime import date, datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def utc_today(now: Optional[datetime] = None) -> date:
    """Return today's date in UTC."""
    return (now or utc_now()).astimezone(timezone.utc).date()


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to a naive datetime.

    Args:
        dt: Datetime read from the database, or None

    Returns:
        Timezone-aware datetime, or None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count != 1 else ''}"


def format_time_remaining(
    until: Optional[datetime], now: Optional[datetime] = None
) -> Optional[str]:
    """
    Format the time left before a deadline for display.

    Shows the two most significant units, e.g. "2 days, 3 hours",
    "5 hours, 12 minutes", "45 minutes" or "less than a minute".

    Args:
        until: Deadline (naive values are treated as UTC), or None
        now: Reference time, defaults to the current time

    Returns:
        Display string, or None when there is no deadline or it has passed
    """
    until = ensure_utc(until)
    if until is None:
        return None

    seconds = int((until - (now or utc_now())).total_seconds())
    if seconds <= 0:
        return None
    if seconds < 60:
        return "less than a minute"

    days, remainder = divmod(seconds, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes = remainder // 60

    parts = []
    if days:
        parts.append(_plural(days, "day"))
    if hours:
        parts.append(_plural(hours, "hour"))
    if minutes and not days:
        parts.append(_plural(minutes, "minute"))

    return ", ".join(parts[:2])

