"""
Time and date utilities shared by the engine and the storage layer.

All engine calculations work on timezone-aware UTC datetimes. Naive values
coming from CSV files or SQLite text columns are interpreted as UTC.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

_SECONDS_PER_HOUR = 3600.0
_SECONDS_PER_DAY = 86400.0


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive → assumed UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO 8601 string (``Z`` suffix allowed) into an aware UTC datetime.

    Raises:
        ValueError: If the string is not a valid ISO 8601 datetime.
    """
    return ensure_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialise a datetime for SQLite text columns.

    Fixed-width UTC ISO 8601 (always with microseconds) so that text
    comparison in SQL matches chronological order.
    """
    return ensure_utc(value).isoformat(timespec="microseconds") if value is not None else None


def hours_until(target: datetime, now: datetime) -> float:
    """Signed hours from ``now`` to ``target`` (negative when overdue)."""
    return (ensure_utc(target) - ensure_utc(now)).total_seconds() / _SECONDS_PER_HOUR


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from ``start`` to ``end``."""
    return (ensure_utc(end) - ensure_utc(start)).total_seconds() / _SECONDS_PER_DAY


def trailing_window(now: datetime, days: int) -> tuple[datetime, datetime]:
    """Return ``(now - days, now)`` as aware UTC datetimes."""
    end = ensure_utc(now)
    return end - timedelta(days=days), end


def period_key(moment: datetime, group_by: str) -> str:
    """Bucket key for an instant.

    Args:
        moment:   Instant to bucket (UTC).
        group_by: ``"day"`` → ``YYYY-MM-DD``; ``"week"`` → ISO date of the
                  Sunday that starts the week; ``"month"`` → ``YYYY-MM``.

    Raises:
        ValueError: On an unknown ``group_by``.
    """
    moment = ensure_utc(moment)
    if group_by == "day":
        return moment.date().isoformat()
    if group_by == "week":
        days_since_sunday = (moment.weekday() + 1) % 7
        return (moment.date() - timedelta(days=days_since_sunday)).isoformat()
    if group_by == "month":
        return f"{moment.year:04d}-{moment.month:02d}"
    raise ValueError(f"Unknown group_by '{group_by}'. Use day, week, or month.")
