"""In-memory storage backend."""

from __future__ import annotations

from .base import Storage


class MemoryStorage(Storage):
    """Dict-backed storage.

    Nothing survives the process. Used in tests as the durable-mirror fake
    and for throwaway sessions (``storage_backend = "memory"``).

    Attributes:
        writes: Number of successful ``save`` calls, so tests can assert
            that no-op operations did not write
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self.writes = 0

    def load(self, key: str) -> str | None:
        return self._data.get(key)

    def save(self, key: str, data: str) -> None:
        self._data[key] = data
        self.writes += 1

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return sorted(self._data)
