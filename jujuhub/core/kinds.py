"""Collection kind descriptors.

A kind is everything that distinguishes one entity collection from another:
where it persists, which fields a new record carries, which field records the
creation instant, and which status fields drive derived timestamps. The
collection logic itself is shared; see ``jujuhub.core.collection``.

The keys and field names match the blobs the browser application
wrote, so existing data loads unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Sentinel for fields whose default is "now" at creation time
NOW = object()


@dataclass(frozen=True)
class Field:
    """One caller-supplied attribute of a record.

    Attributes:
        name: Field name as stored
        default: Value used when the caller omits the field; ``NOW`` stamps
            the creation instant
        now_if_empty: When True, a falsy supplied value is also replaced by
            the creation instant (memory dates)
    """
    name: str
    default: Any = ""
    now_if_empty: bool = False


@dataclass(frozen=True)
class StatusPair:
    """A status field and the timestamp the store derives from it.

    The status is "active" when it equals ``active_value``. Becoming active
    stamps ``stamp_field``; leaving the active value clears it.
    """
    field: str
    stamp_field: str
    active_value: Any = True

    def is_active(self, value: Any) -> bool:
        return isinstance(value, type(self.active_value)) and value == self.active_value


@dataclass(frozen=True)
class CollectionKind:
    """Descriptor parameterizing a PersistedCollection.

    Attributes:
        name: Short kind name ('books', 'notes', ...)
        key: Persistence key of the durable blob
        fields: Caller-supplied fields in positional order
        created_field: Field stamped once at creation
        status_pairs: Status/derived-timestamp pairs
        tracks_updated_at: Whether ``updatedAt`` is refreshed on update
        manual_order: Whether the collection accepts ``reorder``
        search_fields: Fields matched by free-text search
        filter_field: Field used by ``by_status`` filtering
    """
    name: str
    key: str
    fields: tuple[Field, ...]
    created_field: str = "createdAt"
    status_pairs: tuple[StatusPair, ...] = ()
    tracks_updated_at: bool = False
    manual_order: bool = False
    search_fields: tuple[str, ...] = ("title",)
    filter_field: str | None = None
    id_field: str = "id"

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    @property
    def protected_fields(self) -> frozenset[str]:
        """Fields only the store may write."""
        names = {self.id_field, self.created_field}
        if self.tracks_updated_at:
            names.add("updatedAt")
        names.update(pair.stamp_field for pair in self.status_pairs)
        return frozenset(names)


# ============================================================================
# KINDS
# ============================================================================

NOTES = CollectionKind(
    name="notes",
    key="jujuhub-notes",
    fields=(Field("title"), Field("content")),
    tracks_updated_at=True,
    search_fields=("title", "content"),
)

DIARY = CollectionKind(
    name="diary",
    key="jujuhub-diary",
    fields=(Field("content"), Field("mood")),
    created_field="date",
    search_fields=("content",),
    filter_field="mood",
)

BOOKS = CollectionKind(
    name="books",
    key="jujuhub-books",
    fields=(
        Field("title"),
        Field("author"),
        Field("coverUrl"),
        Field("status", "to-read"),  # 'to-read' | 'reading' | 'done'
        Field("notes"),
    ),
    created_field="addedAt",
    status_pairs=(StatusPair("status", "completedAt", "done"),),
    search_fields=("title", "author"),
    filter_field="status",
)

MUSIC = CollectionKind(
    name="music",
    key="jujuhub-music",
    fields=(
        Field("title"),
        Field("artist"),
        Field("vibe"),  # 'chill', 'upbeat', 'romantic', ...
        Field("link"),
    ),
    created_field="addedAt",
    search_fields=("title", "artist"),
    filter_field="vibe",
)

WATCHLIST = CollectionKind(
    name="watchlist",
    key="jujuhub-watchlist",
    fields=(
        Field("title"),
        Field("type"),  # 'movie' | 'tvshow' | 'anime' | 'documentary'
        Field("imageUrl"),
        Field("trailerUrl"),
        Field("notes"),
        Field("watched", False),
    ),
    created_field="addedAt",
    status_pairs=(StatusPair("watched", "watchedAt", True),),
    search_fields=("title", "notes"),
    filter_field="type",
)

BUCKET_LIST = CollectionKind(
    name="bucketlist",
    key="jujuhub-bucketlist",
    fields=(
        Field("title"),
        Field("description"),
        Field("priority", "medium"),  # 'high' | 'medium' | 'low'
        Field("dueDate", None),
        Field("completed", False),
    ),
    status_pairs=(StatusPair("completed", "completedAt", True),),
    manual_order=True,
    search_fields=("title", "description"),
    filter_field="priority",
)

MEMORIES = CollectionKind(
    name="memories",
    key="jujuhub-memories",
    fields=(
        Field("title"),
        Field("photoUrl"),
        Field("caption"),
        Field("date", NOW, now_if_empty=True),
    ),
    manual_order=True,
    search_fields=("title", "caption"),
)

ALL_KINDS: tuple[CollectionKind, ...] = (
    NOTES,
    DIARY,
    BOOKS,
    MUSIC,
    WATCHLIST,
    BUCKET_LIST,
    MEMORIES,
)


def get_kind(name: str) -> CollectionKind:
    """Look up a kind by name.

    Raises:
        KeyError: If no kind has that name
    """
    for kind in ALL_KINDS:
        if kind.name == name:
            return kind
    raise KeyError(f"Unknown collection kind: {name}")
