"""Timestamp utilities for UTC handling and datetime parsing.

Every timestamp that crosses a module boundary in this package is a
timezone-aware UTC datetime. Providers hand us a zoo of formats (ISO strings,
unix epochs, date-only strings), so the parsing helpers here are lenient and
return None rather than raising.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC time with timezone info
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Get the current UTC calendar date (the spend ledger day key)."""
    return utc_now().date()


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    Naive datetimes are treated as UTC; aware datetimes are converted.

    Args:
        dt: Datetime to convert (can be None)

    Returns:
        Timezone-aware datetime in UTC, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 datetime string to UTC datetime.

    Supports:
    - 2025-11-04T12:00:00Z
    - 2025-11-04T12:00:00.123+00:00
    - 2025-11-04T12:00:00
    - 2025-11-04

    Args:
        value: ISO 8601 formatted datetime string

    Returns:
        Timezone-aware datetime in UTC, or None if parsing fails
    """
    if not value or not value.strip():
        return None

    cleaned = value.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(cleaned))
    except ValueError:
        pass

    try:
        return ensure_utc(datetime.strptime(cleaned, "%Y-%m-%d"))
    except ValueError:
        return None


def from_unix(value: Union[int, float, str, None]) -> Optional[datetime]:
    """Convert a unix timestamp (seconds) to a UTC datetime.

    Args:
        value: Seconds since epoch, as number or numeric string

    Returns:
        Timezone-aware datetime, or None when value is missing or not numeric
    """
    if value is None or value == "":
        return None
    try:
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def hours_since(then: datetime, now: datetime) -> float:
    """Return the number of hours elapsed from ``then`` to ``now``."""
    return (ensure_utc(now) - ensure_utc(then)).total_seconds() / 3600.0


def days_ago(now: datetime, days: Union[int, float]) -> datetime:
    """Return the instant ``days`` days before ``now``."""
    return ensure_utc(now) - timedelta(days=days)


def format_timestamp(dt: datetime) -> str:
    """Format a datetime as ISO 8601 string in UTC with 'Z' suffix.

    Args:
        dt: Datetime to format

    Returns:
        String like '2025-11-04T12:00:00Z'
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return ""
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%SZ")
