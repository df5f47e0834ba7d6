"""Collection core for JujuHub.

This package provides the generic persisted collection and everything it is
parameterized or projected by: kind descriptors, the blob codec, queries and
reordering.
"""

from .collection import PersistedCollection, generate_id
from .kinds import (
    ALL_KINDS,
    BOOKS,
    BUCKET_LIST,
    DIARY,
    MEMORIES,
    MUSIC,
    NOTES,
    WATCHLIST,
    CollectionKind,
    Field,
    StatusPair,
    get_kind,
)
from .types import Date, Timestamp

__all__ = [
    "PersistedCollection",
    "generate_id",
    "CollectionKind",
    "Field",
    "StatusPair",
    "get_kind",
    "ALL_KINDS",
    "NOTES",
    "DIARY",
    "BOOKS",
    "MUSIC",
    "WATCHLIST",
    "BUCKET_LIST",
    "MEMORIES",
    "Timestamp",
    "Date",
]
