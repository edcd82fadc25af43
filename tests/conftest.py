"""Shared test fixtures for tab-hibernate."""

from datetime import datetime, timezone

import pytest

from tab_hibernate.backends.memory import MemoryHost
from tab_hibernate.core import Settings
from tab_hibernate.service import Hibernator
from tab_hibernate.storage import KeyValueStore, save_settings

START_MS = int(datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc).timestamp() * 1000)
ORIGIN = "chrome-extension://currentinstall"


class FakeClock:
    """A settable millisecond clock."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, minutes: float = 0, seconds: float = 0) -> int:
        self.now += int(minutes * 60_000 + seconds * 1000)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    return KeyValueStore(tmp_path / "storage.sqlite3")


@pytest.fixture
def host():
    """A browser window with a typical mix of tabs."""
    return MemoryHost(
        tabs=[
            {"id": 1, "url": "https://mail.example.com/inbox", "title": "Inbox", "active": True},
            {"id": 2, "url": "https://docs.python.org/3/", "title": "Python docs"},
            {"id": 3, "url": "https://music.example.com", "title": "Music", "audible": True},
            {"id": 4, "url": "https://news.example.com", "title": "News", "pinned": True},
            {"id": 5, "url": "https://example.com", "title": "Example"},
            {"id": 6, "url": "chrome://settings", "title": "Settings"},
        ],
        origin=ORIGIN,
    )


@pytest.fixture
def hibernator(host, store, clock):
    return Hibernator(host, store, clock)


@pytest.fixture
def placeholder_mode(store):
    save_settings(store, Settings(enabled=True, timeout_minutes=5, mode="placeholder"))
