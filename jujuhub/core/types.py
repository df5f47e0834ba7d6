"""Domain types for JujuHub.

Records only hold JSON primitives, so instants and calendar dates are kept
as strings. These string subtypes mark which is which and convert back.
"""

from datetime import date, datetime

from jujuhub.host import time as host_time


class Timestamp(str):
    """ISO 8601 UTC instant, e.g. '2025-12-23T10:30:00.000Z'."""

    @classmethod
    def from_datetime(cls, dt: datetime) -> "Timestamp":
        """Naive datetimes are treated as UTC."""
        return cls(host_time.to_timestamp(dt))

    def to_datetime(self) -> datetime:
        return host_time.to_datetime(self)


class Date(str):
    """Calendar date as written by date pickers, e.g. '2025-12-23'.

    Used for bucket-list due dates and memory dates.
    """

    @classmethod
    def from_date(cls, d: date) -> "Date":
        return cls(d.isoformat())

    def to_date(self) -> date:
        return date.fromisoformat(self)


def to_primitive(value):
    """Normalise a caller-supplied value for storage.

    datetimes become Timestamps and dates become Dates; every other value
    is returned unchanged.
    """
    if isinstance(value, datetime):
        return Timestamp.from_datetime(value)
    if isinstance(value, date):
        return Date.from_date(value)
    return value
