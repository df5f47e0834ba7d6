"""Read-only projections over records.

QUERY SCOPE:
Filters and orderings are computed on demand for display and never persisted.
Every function takes a sequence of records and returns a new list; the input
is left untouched. All orderings are stable: records with equal keys keep
their stored relative order.
"""

from __future__ import annotations

from datetime import date, datetime, timezone, tzinfo
from typing import Any, Callable, Iterable, Sequence

from ..exceptions import ValidationError
from ..host.time import to_datetime

Record = dict[str, Any]

PRIORITY_WEIGHTS = {"high": 3, "medium": 2, "low": 1}

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _parse_instant(value: Any) -> datetime | None:
    """Parse a stored timestamp/date, returning None if absent or unparseable."""
    if not value or not isinstance(value, (str, date)):
        return None
    try:
        return to_datetime(value)
    except (TypeError, ValueError):
        return None


# ============================================================================
# FILTERS
# ============================================================================

def filter_by(records: Sequence[Record], field: str, value: Any) -> list[Record]:
    """Keep records whose ``field`` equals ``value`` exactly.

    An empty filter (None or "") keeps everything. ``False`` and ``0`` are
    real filter values.

    Examples:
        >>> filter_by(books, "status", "reading")
        >>> filter_by(tracks, "vibe", "")  # identity
    """
    if value is None or value == "":
        return list(records)
    return [r for r in records if r.get(field) == value]


def search(records: Sequence[Record], term: str | None, fields: Iterable[str]) -> list[Record]:
    """Case-insensitive substring search across several text fields.

    A record matches when ANY of the fields contains the term. Fields that
    are missing or not strings never match. An empty term keeps everything.
    """
    if not term:
        return list(records)
    needle = term.casefold()
    fields = tuple(fields)

    def matches(record: Record) -> bool:
        for name in fields:
            value = record.get(name)
            if isinstance(value, str) and needle in value.casefold():
                return True
        return False

    return [r for r in records if matches(r)]


def filter_watched(records: Sequence[Record], state: str | None, field: str = "watched") -> list[Record]:
    """Filter a watchlist by watched state.

    Args:
        records: Watchlist records
        state: 'watched', 'unwatched', or empty for no filtering
        field: Boolean status field

    Raises:
        ValidationError: If state is anything else
    """
    if not state:
        return list(records)
    if state == "watched":
        return [r for r in records if r.get(field) is True]
    if state == "unwatched":
        return [r for r in records if r.get(field) is not True]
    raise ValidationError(
        f"Unknown watched state: {state}. Must be 'watched' or 'unwatched'",
        {"state": state},
    )


def exclude_completed(records: Sequence[Record], field: str = "completed") -> list[Record]:
    """Drop records whose completion flag is set."""
    return [r for r in records if r.get(field) is not True]


def in_date_range(
    records: Sequence[Record],
    field: str,
    start: str | date | datetime | None = None,
    end: str | date | datetime | None = None,
) -> list[Record]:
    """Keep records whose timestamp lies within [start, end].

    Either bound may be omitted. Date-only bounds resolve to midnight UTC.
    Records whose field cannot be parsed are excluded once a bound is given.
    """
    if not start and not end:
        return list(records)
    lower = to_datetime(start) if start else None
    upper = to_datetime(end) if end else None

    result = []
    for record in records:
        instant = _parse_instant(record.get(field))
        if instant is None:
            continue
        if lower is not None and instant < lower:
            continue
        if upper is not None and instant > upper:
            continue
        result.append(record)
    return result


def on_day(
    records: Sequence[Record],
    field: str,
    day: str | date | None,
    tz: tzinfo | None = None,
) -> list[Record]:
    """Keep records whose timestamp falls on a calendar day.

    Args:
        records: Records to filter
        field: Timestamp field
        day: The day (date or 'YYYY-MM-DD'); empty keeps everything
        tz: Timezone in which days are counted (local time when None)
    """
    if not day:
        return list(records)
    if isinstance(day, str):
        day = date.fromisoformat(day[:10])
    elif isinstance(day, datetime):
        day = day.date()

    result = []
    for record in records:
        instant = _parse_instant(record.get(field))
        if instant is not None and instant.astimezone(tz).date() == day:
            result.append(record)
    return result


# ============================================================================
# ORDERINGS
# ============================================================================

def newest_first(records: Sequence[Record], field: str) -> list[Record]:
    """Order by a timestamp field, most recent first.

    Unparseable or missing timestamps sort last.
    """
    return sorted(records, key=lambda r: _parse_instant(r.get(field)) or _EPOCH, reverse=True)


def _by_priority(records: Sequence[Record]) -> list[Record]:
    return sorted(records, key=lambda r: -PRIORITY_WEIGHTS.get(r.get("priority"), 0))


def _by_due_date(records: Sequence[Record]) -> list[Record]:
    def key(record: Record) -> tuple[bool, datetime]:
        due = _parse_instant(record.get("dueDate"))
        # (False, due) sorts before (True, epoch): undated records last
        return (due is None, due or _EPOCH)

    return sorted(records, key=key)


def _by_completion(records: Sequence[Record]) -> list[Record]:
    return sorted(records, key=lambda r: r.get("completed") is True)


def _by_created(records: Sequence[Record]) -> list[Record]:
    return newest_first(records, "createdAt")


SORT_ORDERS: dict[str, Callable[[Sequence[Record]], list[Record]]] = {
    "priority": _by_priority,
    "dueDate": _by_due_date,
    "completion": _by_completion,
    "createdAt": _by_created,
}


def sort_records(records: Sequence[Record], order: str | None = "createdAt") -> list[Record]:
    """Apply a named bucket-list ordering.

    Orders:
        priority: high, medium, low (unknown priorities last)
        dueDate: earliest first, undated records last
        completion: incomplete before completed
        createdAt: newest first (default)

    Raises:
        ValidationError: If order is not one of the above
    """
    if not order:
        order = "createdAt"
    try:
        sorter = SORT_ORDERS[order]
    except KeyError:
        raise ValidationError(
            f"Unknown sort order: {order}. Available: {list(SORT_ORDERS)}",
            {"order": order},
        ) from None
    return sorter(records)


def recent(records: Sequence[Record], limit: int) -> list[Record]:
    """First ``limit`` records in stored order."""
    return list(records[:max(limit, 0)])
