"""In-process browser host.

Keeps tabs and a bookmark tree in memory. It is the reference host for the
test-suite and lets the service run standalone without a browser attached.
"""

import itertools
import logging
from dataclasses import replace

from ..config import DEFAULT_ORIGIN
from ..core import BookmarkNode, TabSnapshot
from ..errors import HostError, TabGoneError
from ..host import BrowserHost

logger = logging.getLogger(__name__)

ROOT_FOLDER_ID = "1"


class MemoryHost(BrowserHost):
    """Browser host whose state lives in this process."""

    name = "memory"

    def __init__(self, tabs: list[TabSnapshot | dict] | None = None, origin: str = DEFAULT_ORIGIN):
        self.origin = origin.rstrip("/")
        self.tabs: dict[int, TabSnapshot] = {}
        self.focused_window_id: int | None = None
        self.bookmarks: dict[str, BookmarkNode] = {
            ROOT_FOLDER_ID: BookmarkNode(id=ROOT_FOLDER_ID, title="Other bookmarks"),
        }
        self._bookmark_ids = itertools.count(2)
        for tab in tabs or []:
            self.add_tab(tab)

    # ── Test/seed helpers ────────────────────────────────────────────

    def add_tab(self, tab: TabSnapshot | dict) -> TabSnapshot:
        if isinstance(tab, dict):
            tab = TabSnapshot(
                id=int(tab["id"]),
                url=tab.get("url", ""),
                title=tab.get("title", ""),
                active=bool(tab.get("active", False)),
                pinned=bool(tab.get("pinned", False)),
                audible=bool(tab.get("audible", False)),
                incognito=bool(tab.get("incognito", False)),
                window_id=int(tab.get("windowId", 1)),
            )
        self.tabs[tab.id] = tab
        if self.focused_window_id is None:
            self.focused_window_id = tab.window_id
        return tab

    def bookmarks_in(self, parent_id: str) -> list[BookmarkNode]:
        return [b for b in self.bookmarks.values() if b.parent_id == parent_id]

    # ── BrowserHost ──────────────────────────────────────────────────

    async def query_tabs(self) -> list[TabSnapshot]:
        return [replace(t) for t in self.tabs.values()]

    async def get_tab(self, tab_id: int) -> TabSnapshot | None:
        tab = self.tabs.get(tab_id)
        return replace(tab) if tab else None

    async def get_active_tab(self) -> TabSnapshot | None:
        for tab in self.tabs.values():
            if tab.active and tab.window_id == self.focused_window_id:
                return replace(tab)
        return None

    async def discard_tab(self, tab_id: int) -> None:
        tab = self._require(tab_id)
        if tab.active:
            raise HostError(f"Cannot discard active tab {tab_id}", {"tab_id": tab_id})
        tab.discarded = True
        logger.debug("Discarded tab %s", tab_id)

    async def navigate_tab(self, tab_id: int, url: str) -> None:
        tab = self._require(tab_id)
        tab.url = url
        tab.discarded = False

    async def close_tabs(self, tab_ids: list[int]) -> None:
        for tab_id in tab_ids:
            self.tabs.pop(tab_id, None)

    async def create_tab(self, url: str) -> TabSnapshot:
        tab_id = max(self.tabs, default=0) + 1
        return replace(self.add_tab(TabSnapshot(id=tab_id, url=url, title=url)))

    async def bookmark_root_id(self) -> str:
        return ROOT_FOLDER_ID

    async def bookmark_children(self, parent_id: str) -> list[BookmarkNode]:
        if parent_id not in self.bookmarks:
            raise HostError(f"Unknown bookmark folder {parent_id}", {"parent_id": parent_id})
        return [replace(b) for b in self.bookmarks_in(parent_id)]

    async def create_bookmark(self, parent_id: str, title: str, url: str | None = None) -> BookmarkNode:
        parent = self.bookmarks.get(parent_id)
        if parent is None or not parent.is_folder:
            raise HostError(f"Unknown bookmark folder {parent_id}", {"parent_id": parent_id})
        node = BookmarkNode(id=str(next(self._bookmark_ids)), title=title, url=url, parent_id=parent_id)
        self.bookmarks[node.id] = node
        return replace(node)

    # ── Private helpers ──────────────────────────────────────────────

    def _require(self, tab_id: int) -> TabSnapshot:
        tab = self.tabs.get(tab_id)
        if tab is None:
            raise TabGoneError(tab_id)
        return tab
