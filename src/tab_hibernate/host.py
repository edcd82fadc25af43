"""Abstract base class for browser hosts."""

from abc import ABC, abstractmethod

from .core import BookmarkNode, TabSnapshot


class BrowserHost(ABC):
    """Base class for the browser the hibernator drives.

    Each backend implements this interface to expose tabs, navigation,
    tab unloading and bookmarks. Operations raise HostError on failure and
    TabGoneError when the tab no longer exists.
    No timeout is applied to these calls.
    """

    name: str  # "memory", ...
    origin: str  # current installation identity, e.g. "chrome-extension://<id>"

    @abstractmethod
    async def query_tabs(self) -> list[TabSnapshot]:
        """Return every open tab."""
        ...

    @abstractmethod
    async def get_tab(self, tab_id: int) -> TabSnapshot | None:
        """Return a fresh snapshot of one tab, or None if it is closed."""
        ...

    @abstractmethod
    async def get_active_tab(self) -> TabSnapshot | None:
        """Return the active tab of the focused window."""
        ...

    @abstractmethod
    async def discard_tab(self, tab_id: int) -> None:
        """Unload a tab's content while keeping it in the tab strip."""
        ...

    @abstractmethod
    async def navigate_tab(self, tab_id: int, url: str) -> None:
        """Point an existing tab at a new URL."""
        ...

    @abstractmethod
    async def close_tabs(self, tab_ids: list[int]) -> None:
        """Close the given tabs."""
        ...

    @abstractmethod
    async def create_tab(self, url: str) -> TabSnapshot:
        """Open a new tab."""
        ...

    @abstractmethod
    async def bookmark_root_id(self) -> str:
        """Return the id of the folder backups are filed under."""
        ...

    @abstractmethod
    async def bookmark_children(self, parent_id: str) -> list[BookmarkNode]:
        """Return the direct children of a bookmark folder."""
        ...

    @abstractmethod
    async def create_bookmark(self, parent_id: str, title: str, url: str | None = None) -> BookmarkNode:
        """Create a bookmark, or a folder when url is None."""
        ...
