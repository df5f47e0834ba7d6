"""Composition root for JujuHub.

A Hub owns one PersistedCollection per entity kind, all sharing one storage
backend, clock and id generator. Build it once at application start and pass
it to whatever needs a collection; nothing in the library keeps global state.

USAGE:
    # Application: settings from TOML/env, logging configured
    hub = open_hub()
    book = hub.books.add("Dune", "Herbert", "", "to-read", "")
    hub.books.update(book["id"], {"status": "done"})

    # Tests: isolated in-memory hub
    hub = Hub(MemoryStorage())
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from .config import Settings
from .core import query
from .core.collection import PersistedCollection, generate_id
from .core.kinds import (
    ALL_KINDS,
    BOOKS,
    BUCKET_LIST,
    DIARY,
    MEMORIES,
    MUSIC,
    NOTES,
    WATCHLIST,
)
from .host.logs import configure_logging
from .host.time import now_iso
from .storage import Storage, get_storage

logger = logging.getLogger(__name__)


class Hub:
    """All collections of one user, over one storage backend.

    Attributes:
        storage: Durable mirror shared by every collection
        notes, diary, books, music, watchlist, bucketlist, memories:
            One PersistedCollection per kind
    """

    def __init__(
        self,
        storage: Storage,
        now_fn: Callable[[], str] = now_iso,
        id_fn: Callable[[], str] = generate_id,
    ):
        """Initialize collections (loaded lazily on first access).

        Args:
            storage: Durable mirror shared by all collections
            now_fn: Clock returning ISO 8601 instants
            id_fn: Record id generator
        """
        self.storage = storage

        def build(kind):
            return PersistedCollection(kind, storage, now_fn=now_fn, id_fn=id_fn)

        self.notes = build(NOTES)
        self.diary = build(DIARY)
        self.books = build(BOOKS)
        self.music = build(MUSIC)
        self.watchlist = build(WATCHLIST)
        self.bucketlist = build(BUCKET_LIST)
        self.memories = build(MEMORIES)

    def collections(self) -> dict[str, PersistedCollection]:
        """Map of kind name to collection, in declaration order."""
        return {kind.name: getattr(self, kind.name) for kind in ALL_KINDS}

    def dashboard(self, note_limit: int = 3, entry_limit: int = 2) -> dict[str, Any]:
        """Summary shown on the home screen.

        Returns:
            dict with 'recent_notes', 'recent_entries' (first records in
            stored order) and 'counts' per kind
        """
        return {
            "recent_notes": query.recent(self.notes.all(), note_limit),
            "recent_entries": query.recent(self.diary.all(), entry_limit),
            "counts": {name: len(c) for name, c in self.collections().items()},
        }

    def close(self) -> None:
        """Release the storage backend."""
        self.storage.close()


def open_hub(settings: Settings | None = None) -> Hub:
    """Create a Hub from settings.

    Configures logging, then builds the configured storage backend.

    Args:
        settings: Resolved settings; loaded from TOML/environment if None

    Returns:
        A Hub ready for use

    Examples:
        >>> hub = open_hub()
        >>> hub.notes.add("Groceries", "eggs, milk")
    """
    if settings is None:
        settings = Settings()

    configure_logging(settings.log_level, settings.log_file)
    storage = get_storage(settings)
    logger.info("Opened %s storage", settings.storage_backend)
    return Hub(storage)
