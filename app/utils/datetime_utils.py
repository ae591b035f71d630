"""
Centralized datetime utilities.

Every timestamp is handled as timezone-aware UTC and serialized with a 'Z'
suffix. SQLite hands datetimes back naive, so readers go through
``ensure_utc`` before comparing or formatting.
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """
    Current time as a timezone-aware UTC datetime.

    Use this instead of datetime.utcnow(), which returns a naive value.
    """
    return datetime.now(timezone.utc)


def window_start(hours: int, now: datetime | None = None) -> datetime:
    """
    Start of a rolling window of ``hours`` ending at ``now``.

    Example:
        >>> window_start(24, now=datetime(2025, 12, 16, tzinfo=timezone.utc))
        datetime.datetime(2025, 12, 15, 0, 0, tzinfo=datetime.timezone.utc)
    """
    return (ensure_utc(now) if now else utc_now()) - timedelta(hours=hours)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Make a datetime UTC-aware.

    Naive values are assumed to already be UTC; aware values in another
    zone are converted.

    Example:
        >>> ensure_utc(datetime(2025, 12, 16, 11, 30)).tzinfo
        datetime.timezone.utc
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def to_iso_utc(dt: datetime | None) -> str | None:
    """
    ISO 8601 string with a 'Z' suffix, e.g. "2025-12-16T11:30:00.123456Z".

    Clients parse the 'Z' form as UTC everywhere; '+00:00' trips some of them.
    """
    if dt is None:
        return None

    return ensure_utc(dt).isoformat().replace('+00:00', 'Z')
