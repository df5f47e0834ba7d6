"""JujuHub storage backends.

This module provides the durable-mirror abstraction used by collections and
a factory that builds the backend named in Settings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..exceptions import ValidationError
from .base import Storage
from .files import JsonFileStorage
from .memory import MemoryStorage
from .sqlite import SqliteStorage

if TYPE_CHECKING:
    from ..config import Settings

__all__ = [
    "Storage",
    "MemoryStorage",
    "JsonFileStorage",
    "SqliteStorage",
    "get_storage",
]


def get_storage(settings: "Settings") -> Storage:
    """Build the storage backend selected by settings.

    Args:
        settings: Resolved settings

    Returns:
        A ready-to-use Storage

    Raises:
        ValidationError: If the backend name is unknown
    """
    backend = settings.storage_backend
    if backend == "memory":
        return MemoryStorage()
    if backend == "json":
        return JsonFileStorage(settings.storage_path)
    if backend == "sqlite":
        return SqliteStorage(settings.storage_path)
    raise ValidationError(f"Unknown storage backend: {backend}", {"backend": backend})
