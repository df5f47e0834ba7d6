"""Pytest fixtures for jujuhub tests."""

import logging
import os
from datetime import datetime, timedelta, timezone

import pytest

from jujuhub.exceptions import PersistenceError
from jujuhub.host.time import to_timestamp
from jujuhub.hub import Hub
from jujuhub.storage import MemoryStorage


class FakeClock:
    """Deterministic clock: returns the same instant until advanced."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> str:
        return to_timestamp(self.current)

    def advance(self, seconds: float = 60) -> str:
        self.current += timedelta(seconds=seconds)
        return self()


class FailingStorage(MemoryStorage):
    """MemoryStorage whose reads and writes can be switched to fail."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_reads = False
        self.fail_writes = False

    def load(self, key):
        if self.fail_reads:
            raise PersistenceError(f"Storage unavailable for '{key}'", key=key)
        return super().load(key)

    def save(self, key, data):
        if self.fail_writes:
            raise PersistenceError(f"Quota exceeded writing '{key}'", key=key)
        super().save(key, data)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep tests away from the real home directory and JUJUHUB_* variables.

    Runs automatically for every test so that Settings() and
    resolve_context() never read the developer's own configuration.
    """
    for key in list(os.environ):
        if key.startswith("JUJUHUB_"):
            monkeypatch.delenv(key, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    yield home


@pytest.fixture
def clock():
    """A FakeClock starting at 2025-01-01T12:00:00.000Z."""
    return FakeClock()


@pytest.fixture
def storage():
    """Empty in-memory storage."""
    return MemoryStorage()


@pytest.fixture
def failing_storage():
    """In-memory storage with switchable failures."""
    return FailingStorage()


@pytest.fixture
def hub(storage, clock):
    """Hub over in-memory storage with a fake clock."""
    return Hub(storage, now_fn=clock)


@pytest.fixture
def restore_logger():
    """Remove handlers configure_logging() attached to the jujuhub logger."""
    logger = logging.getLogger("jujuhub")
    level = logger.level
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)
