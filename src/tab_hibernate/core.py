"""Core data models for tab-hibernate."""

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from .config import DEFAULT_MODE, DEFAULT_TIMEOUT_MINUTES, STUB_VERSION

Clock = Callable[[], int]  # returns milliseconds since the epoch

MODES = ("discard", "placeholder")


def now_ms() -> int:
    """Return the current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


def date_key(ms: int) -> str:
    """Return the UTC calendar date for a millisecond timestamp as YYYY-MM-DD."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


@dataclass
class Settings:
    """Suspension policy."""

    enabled: bool = True
    timeout_minutes: int = DEFAULT_TIMEOUT_MINUTES
    mode: str = DEFAULT_MODE  # "discard" | "placeholder"

    def to_dict(self) -> dict:
        return {"enabled": self.enabled, "timeoutMinutes": self.timeout_minutes, "mode": self.mode}


@dataclass
class TabSnapshot:
    """A browser tab as reported by the host at one point in time."""

    id: int
    url: str = ""
    title: str = ""
    active: bool = False
    pinned: bool = False
    audible: bool = False
    incognito: bool = False
    window_id: int = 1
    discarded: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "active": self.active,
            "pinned": self.pinned,
            "audible": self.audible,
            "incognito": self.incognito,
            "windowId": self.window_id,
            "discarded": self.discarded,
        }


@dataclass
class SuspendedTabRecord:
    """Restore data for a placeholder-suspended tab."""

    tab_id: int
    url: str
    title: str = ""
    stub_version: int = STUB_VERSION

    def to_dict(self) -> dict:
        return {"tabId": self.tab_id, "url": self.url, "title": self.title, "stubVersion": self.stub_version}

    @classmethod
    def from_dict(cls, data: object) -> Optional["SuspendedTabRecord"]:
        """Build a record from stored data, or None when the shape is wrong."""
        if not isinstance(data, dict):
            return None
        url = data.get("url")
        tab_id = data.get("tabId")
        if not isinstance(url, str) or not url:
            return None
        if not isinstance(tab_id, int) or isinstance(tab_id, bool):
            return None
        title = data.get("title")
        version = data.get("stubVersion", STUB_VERSION)
        return cls(
            tab_id=tab_id,
            url=url,
            title=title if isinstance(title, str) else "",
            stub_version=version if isinstance(version, int) else STUB_VERSION,
        )


@dataclass
class BackupEntry:
    """One URL captured into a day's backup bucket."""

    url: str
    title: str
    ts: int

    def to_dict(self) -> dict:
        return {"url": self.url, "title": self.title, "ts": self.ts}


@dataclass
class ClosedSavedEntry:
    """An entry in the bounded closed-and-saved history list."""

    url: str
    title: str
    saved_at: int

    def to_dict(self) -> dict:
        return {"url": self.url, "title": self.title, "savedAt": self.saved_at}


@dataclass
class BookmarkNode:
    """A bookmark or bookmark folder (url is None for folders)."""

    id: str
    title: str
    url: Optional[str] = None
    parent_id: Optional[str] = None

    @property
    def is_folder(self) -> bool:
        return self.url is None
