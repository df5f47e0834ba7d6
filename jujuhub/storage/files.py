"""JSON file storage backend.

Each key is kept in ``<directory>/<key>.json``. Writes go through a temporary
file and an atomic rename so a crash mid-write leaves the previous blob
intact, and files are created readable by the owner only.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from ..exceptions import PersistenceError, ValidationError
from ..host.filesystem import ensure_dir, write_atomic
from .base import Storage

logger = logging.getLogger(__name__)

# Keys become file names; keep them to a safe alphabet
_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
_SUFFIX = ".json"


class JsonFileStorage(Storage):
    """Storage backed by one JSON file per key.

    Attributes:
        directory: Directory holding the files (created on first write)
    """

    def __init__(self, directory: str | Path) -> None:
        """Initialize storage rooted at a directory.

        Args:
            directory: Where the per-key files live
        """
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValidationError(f"Invalid storage key: {key!r}", {"key": key})
        return self.directory / f"{key}{_SUFFIX}"

    def load(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(
                f"Failed to read {path}: {e}", key=key, details={"path": str(path)}
            ) from e

    def save(self, key: str, data: str) -> None:
        path = self._path(key)
        try:
            ensure_dir(self.directory)
            write_atomic(path, data)
        except OSError as e:
            raise PersistenceError(
                f"Failed to write {path}: {e}", key=key, details={"path": str(path)}
            ) from e
        logger.debug("Wrote %d bytes to %s", len(data), path)

    def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PersistenceError(
                f"Failed to delete {path}: {e}", key=key, details={"path": str(path)}
            ) from e
        return True

    def keys(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(p.name[:-len(_SUFFIX)] for p in self.directory.glob(f"*{_SUFFIX}"))
