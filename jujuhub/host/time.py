"""Time and timestamp utilities.

Timestamps are stored in the same shape browsers produce with
``Date.toISOString()`` (``2025-12-23T10:30:00.000Z``) so blobs written by
either side read back unchanged.
"""

from datetime import date, datetime, timezone


def now_utc() -> datetime:
    """Get current UTC time.

    Returns:
        datetime object with UTC timezone
    """
    return datetime.now(timezone.utc)


def to_timestamp(dt: datetime) -> str:
    """Format a datetime as an ISO 8601 UTC string with millisecond precision.

    Args:
        dt: datetime object (naive datetimes treated as UTC)

    Returns:
        Timestamp string with 'Z' suffix
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_iso() -> str:
    """Get current UTC time as ISO 8601 string.

    Returns:
        ISO 8601 formatted timestamp string
    """
    return to_timestamp(now_utc())


def to_datetime(value: str | date | datetime) -> datetime:
    """Parse an ISO 8601 date or timestamp into an aware datetime.

    Date-only values ('2025-12-23') resolve to midnight UTC, matching how
    browsers parse them.

    Args:
        value: ISO 8601 string, date or datetime

    Returns:
        datetime with timezone info (UTC when none was given)

    Raises:
        ValueError: If the string is not ISO 8601
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
