"""
JujuHub

Local-first collections for a personal lifestyle tracker: notes, diary,
books, music, watchlist, bucket list and photo memories.
"""

__version__ = "0.1.0"

# Core exports
from jujuhub.core import PersistedCollection, CollectionKind, ALL_KINDS, get_kind

# Composition root
from jujuhub.hub import Hub, open_hub

# Storage exports
from jujuhub.storage import Storage, MemoryStorage, JsonFileStorage, SqliteStorage

# Settings
from jujuhub.config import Settings

# Exception exports
from jujuhub import exceptions

__all__ = [
    # Core
    "PersistedCollection",
    "CollectionKind",
    "ALL_KINDS",
    "get_kind",
    # Hub
    "Hub",
    "open_hub",
    # Storage
    "Storage",
    "MemoryStorage",
    "JsonFileStorage",
    "SqliteStorage",
    # Settings
    "Settings",
    # Exceptions module (access as jujuhub.exceptions.PersistenceError, etc.)
    "exceptions",
]
