"""Storage protocol for JujuHub backends.

This defines the interface that every durable mirror must implement.
A backend is a flat key → text store, the same shape as browser
localStorage: each collection kind owns one key and rewrites its whole blob
on every mutation.

Currently supported:
- MemoryStorage: dict-backed, for tests and ephemeral sessions
- JsonFileStorage: one JSON file per key in a data directory
- SqliteStorage: one row per key in a local SQLite database
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class Storage(ABC):
    """Abstract interface for durable key → blob storage.

    Implementations raise ``PersistenceError`` for every I/O failure and
    return ``None`` from ``load`` only when the key has never been written
    (or was deleted).
    """

    @abstractmethod
    def load(self, key: str) -> str | None:
        """Return the blob stored under key, or None if absent."""

    @abstractmethod
    def save(self, key: str, data: str) -> None:
        """Replace the blob stored under key."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove key. Returns True if something was removed."""

    @abstractmethod
    def keys(self) -> list[str]:
        """List stored keys in sorted order."""

    def close(self) -> None:
        """Release any held resources. Default: nothing to release."""
